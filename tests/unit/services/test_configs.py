"""Unit tests for services.configs models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from zapstack.core.exceptions import ConfigurationError
from zapstack.models.constants import DEFAULT_NAMESPACE, DEFAULT_RELAY_URL
from zapstack.services.configs import ForumConfig, SessionConfig, ZapstackConfig


class TestSessionConfig:
    def test_defaults(self) -> None:
        config = SessionConfig()
        assert config.relay_url == DEFAULT_RELAY_URL
        assert config.transport.verify_signatures is True
        assert config.transport.eose_timeout is None

    @pytest.mark.parametrize("url", ["ws://localhost:7777", "wss://relay.example.com"])
    def test_valid_urls(self, url: str) -> None:
        assert SessionConfig(relay_url=url).relay_url == url

    @pytest.mark.parametrize("url", ["https://relay.example.com", "relay.example.com"])
    def test_invalid_url(self, url: str) -> None:
        with pytest.raises(ValidationError):
            SessionConfig(relay_url=url)

    def test_transport_timeouts_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SessionConfig(transport={"publish_timeout": 0})  # type: ignore[arg-type]


class TestForumConfig:
    def test_defaults(self) -> None:
        config = ForumConfig()
        assert config.namespace == DEFAULT_NAMESPACE
        assert config.zap_wait_timeout is None

    def test_empty_namespace_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ForumConfig(namespace="")


class TestZapstackConfig:
    def test_defaults(self) -> None:
        config = ZapstackConfig()
        assert config.keys_env == "PRIVATE_KEY"
        assert config.forum.namespace == DEFAULT_NAMESPACE

    def test_from_dict_partial(self) -> None:
        config = ZapstackConfig.from_dict({"session": {"transport": {"eose_timeout": 3.0}}})
        assert config.session.transport.eose_timeout == 3.0
        assert config.session.relay_url == DEFAULT_RELAY_URL

    def test_from_dict_invalid(self) -> None:
        with pytest.raises(ConfigurationError, match="invalid configuration"):
            ZapstackConfig.from_dict({"forum": {"namespace": ""}})

    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "zapstack.yaml"
        path.write_text(
            "session:\n"
            "  relay_url: ws://localhost:7777\n"
            "forum:\n"
            "  namespace: my_forum\n"
            "  zap_wait_timeout: 30\n"
            "keys_env: MY_KEY\n"
        )
        config = ZapstackConfig.from_yaml(path)
        assert config.session.relay_url == "ws://localhost:7777"
        assert config.forum.namespace == "my_forum"
        assert config.forum.zap_wait_timeout == 30.0
        assert config.keys_env == "MY_KEY"

    def test_from_yaml_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            ZapstackConfig.from_yaml(tmp_path / "nope.yaml")

    def test_shipped_config_is_valid(self) -> None:
        path = Path(__file__).parents[3] / "config" / "zapstack.yaml"
        config = ZapstackConfig.from_yaml(path)
        assert config.session.relay_url.startswith("wss://")
