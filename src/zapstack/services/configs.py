"""Configuration models for the session and the forum.

All models are Pydantic ``BaseModel`` instances with field constraints, so a
partial YAML file overrides only what it names and inherits the rest.
[ZapstackConfig][zapstack.services.configs.ZapstackConfig] is the top-level
model read by the CLI from ``config/zapstack.yaml``.

Examples:
    ```yaml
    session:
      relay_url: wss://relay.damus.io
      transport:
        eose_timeout: 3.0
    forum:
      namespace: zapstack_test
    keys_env: PRIVATE_KEY
    ```
"""

from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import Any, Self

from pydantic import BaseModel, Field, ValidationError

from zapstack.core.exceptions import ConfigurationError
from zapstack.core.yaml import load_yaml
from zapstack.models.constants import DEFAULT_NAMESPACE, DEFAULT_RELAY_URL
from zapstack.utils.keys import ENV_PRIVATE_KEY
from zapstack.utils.transport import TransportConfig


class SessionConfig(BaseModel):
    """Relay endpoint and transport settings for a [Session][zapstack.services.session.Session]."""

    relay_url: str = Field(
        default=DEFAULT_RELAY_URL,
        pattern=r"^wss?://",
        description="WebSocket URL of the relay",
    )
    transport: TransportConfig = Field(default_factory=TransportConfig)


class ForumConfig(BaseModel):
    """Settings for [Forum][zapstack.services.forum.Forum] operations.

    Attributes:
        namespace: Value of the ``t`` tag grouping all forum events.
        zap_wait_timeout: Default seconds ``wait_for_zap()`` waits for a
            receipt; ``None`` waits indefinitely.
    """

    namespace: str = Field(default=DEFAULT_NAMESPACE, min_length=1)
    zap_wait_timeout: float | None = Field(default=None, gt=0)


class ZapstackConfig(BaseModel):
    """Top-level configuration for the command-line client."""

    session: SessionConfig = Field(default_factory=SessionConfig)
    forum: ForumConfig = Field(default_factory=ForumConfig)
    keys_env: str = Field(default=ENV_PRIVATE_KEY, min_length=1)

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> Self:
        """Load from a YAML file via [load_yaml()][zapstack.core.yaml.load_yaml].

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the YAML or its values are invalid.
        """
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Validate a pre-parsed configuration dictionary.

        Raises:
            ConfigurationError: If a value violates its constraints.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"invalid configuration: {e}") from e
