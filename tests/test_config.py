"""
aichat-stream - Configuration Tests
"""

import pytest

from aichat_stream.config import DEFAULT_BASE_URL, ClientConfig
from aichat_stream.retry import RetryPolicy


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("AICHAT_BASE_URL", "AICHAT_TIMEOUT", "AICHAT_RETRY_BACKOFF", "AICHAT_STREAM_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestClientConfig:
    """Tests for ClientConfig."""

    def test_defaults(self):
        config = ClientConfig()

        assert config.base_url == DEFAULT_BASE_URL
        assert config.timeout == 30.0
        assert config.retry == RetryPolicy()
        assert config.debug is False

    def test_trailing_slash_stripped(self):
        assert ClientConfig(base_url="https://chat.example.com/api/").base_url == "https://chat.example.com/api"

    def test_reads_never_time_out(self):
        timeout = ClientConfig(timeout=5.0).http_timeout()

        assert timeout.read is None
        assert timeout.connect == 5.0


class TestFromEnv:
    """Tests for environment configuration."""

    def test_defaults_without_env(self, clean_env):
        assert ClientConfig.from_env() == ClientConfig()

    def test_reads_env(self, clean_env):
        clean_env.setenv("AICHAT_BASE_URL", "https://chat.example.com/api")
        clean_env.setenv("AICHAT_TIMEOUT", "12.5")
        clean_env.setenv("AICHAT_RETRY_BACKOFF", "0.5")
        clean_env.setenv("AICHAT_STREAM_DEBUG", "true")

        config = ClientConfig.from_env()

        assert config.base_url == "https://chat.example.com/api"
        assert config.timeout == 12.5
        assert config.retry.backoff == 0.5
        assert config.debug is True

    def test_overrides_win(self, clean_env):
        clean_env.setenv("AICHAT_TIMEOUT", "12.5")

        config = ClientConfig.from_env(timeout=3.0, base_url=None)

        assert config.timeout == 3.0
        assert config.base_url == DEFAULT_BASE_URL

    def test_invalid_number(self, clean_env):
        clean_env.setenv("AICHAT_TIMEOUT", "soon")

        with pytest.raises(ValueError, match="AICHAT_TIMEOUT"):
            ClientConfig.from_env()

    @pytest.mark.parametrize("value", ["0", "no", "off", ""])
    def test_debug_falsy(self, clean_env, value):
        clean_env.setenv("AICHAT_STREAM_DEBUG", value)

        assert ClientConfig.from_env().debug is False
