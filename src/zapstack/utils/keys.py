"""Nostr key management.

Private-key custody lives outside this package: the session consumes keys
through the [KeyManager][zapstack.utils.keys.KeyManager] protocol. Two
implementations are provided, [StaticKeyManager][zapstack.utils.keys.StaticKeyManager]
for keys already in memory and [KeysConfig][zapstack.utils.keys.KeysConfig]
which loads them from an environment variable at validation time.

Warning:
    Private keys must **never** be stored in configuration files, source code,
    or logged to any output. Always use environment variables or a secure
    secret management system.

Examples:
    ```python
    import os

    os.environ["PRIVATE_KEY"] = generate_private_key()  # pragma: allowlist secret
    keys = load_keys_from_env("PRIVATE_KEY")
    manager = StaticKeyManager(keys)
    manager.public_key()  # 64-char hex
    ```
"""

from __future__ import annotations

import os
from typing import Any, Protocol, runtime_checkable

from nostr_sdk import Keys, NostrSdkError
from pydantic import BaseModel, Field, model_validator

from zapstack.core.exceptions import ConfigurationError


ENV_PRIVATE_KEY = "PRIVATE_KEY"  # pragma: allowlist secret  # Default env var name


@runtime_checkable
class KeyManager(Protocol):
    """Source of the identity used to sign events."""

    def public_key(self) -> str:
        """Return the 64-char hex public key."""
        ...

    def private_key(self) -> str:
        """Return the 64-char hex private key."""
        ...


def is_valid_private_key(value: str) -> bool:
    """Return ``True`` if ``value`` parses as a hex or nsec private key."""
    if not isinstance(value, str) or not value:
        return False
    try:
        Keys.parse(value)
    except NostrSdkError:
        return False
    return True


def generate_private_key() -> str:
    """Return a freshly generated private key as 64-char hex."""
    return Keys.generate().secret_key().to_hex()


class StaticKeyManager:
    """[KeyManager][zapstack.utils.keys.KeyManager] backed by ``nostr_sdk.Keys`` held in memory."""

    def __init__(self, keys: Keys) -> None:
        self._keys = keys

    @classmethod
    def from_private_key(cls, private_key: str) -> StaticKeyManager:
        """Build a manager from a hex or nsec private key.

        Raises:
            nostr_sdk.NostrSdkError: If the key is malformed.
        """
        return cls(Keys.parse(private_key))

    @property
    def keys(self) -> Keys:
        return self._keys

    def public_key(self) -> str:
        return self._keys.public_key().to_hex()

    def private_key(self) -> str:
        return self._keys.secret_key().to_hex()


def load_keys_from_env(env_var: str) -> Keys:
    """Load Nostr keys from an environment variable.

    Parses a private key (nsec1 bech32 or 64-char hex) and returns a ``Keys``
    object containing both the private and derived public key.

    Raises:
        ConfigurationError: If the variable is unset, empty, or malformed.
    """
    value = os.getenv(env_var)

    if not value:
        raise ConfigurationError(
            f"{env_var} environment variable is required. Generate one with: zapstack keygen"
        )

    try:
        return Keys.parse(value)
    except NostrSdkError as e:
        raise ConfigurationError(f"{env_var} does not contain a valid private key") from e


class KeysConfig(BaseModel):
    """Pydantic model that auto-loads Nostr keys from an environment variable.

    The ``keys`` field is populated during validation from the variable
    named by ``keys_env``, so a missing key fails at startup rather than at
    the first signature. Also satisfies the
    [KeyManager][zapstack.utils.keys.KeyManager] protocol.

    Attributes:
        keys_env: Environment variable name for the private key.
        keys: Loaded ``nostr_sdk.Keys`` instance.

    Warning:
        The ``keys`` field contains a live private key. Do not serialize
        this model to logs, JSON, or any persistent storage.
    """

    model_config = {"arbitrary_types_allowed": True}

    keys_env: str = Field(
        default=ENV_PRIVATE_KEY,
        min_length=1,
        description="Environment variable name for private key",
    )
    keys: Keys = Field(description="Keys loaded from keys_env (required)")

    @model_validator(mode="before")
    @classmethod
    def _load_keys_from_env(cls, data: Any) -> Any:
        """Auto-populate the ``keys`` field from the environment variable."""
        if isinstance(data, dict) and "keys" not in data:
            env_var = data.get("keys_env", ENV_PRIVATE_KEY)
            data = {**data, "keys": load_keys_from_env(env_var)}
        return data

    def public_key(self) -> str:
        return self.keys.public_key().to_hex()

    def private_key(self) -> str:
        return self.keys.secret_key().to_hex()
