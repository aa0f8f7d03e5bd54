# tests/unit/test_settings.py
"""
Unit tests for configuration loading
"""
import pytest
from unittest.mock import patch

from config.settings import ENV_OVERRIDES, Settings, load_settings
from utils.constants import API_BASE_URL
from utils.errors import ConfigurationError


@pytest.mark.unit
class TestLoadSettings:
    """Test cases for load_settings"""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for env_var in ENV_OVERRIDES:
            monkeypatch.delenv(env_var, raising=False)
        with patch("config.settings.load_dotenv"):
            yield

    def test_defaults(self):
        settings = load_settings()

        assert settings.api.base_url == API_BASE_URL
        assert settings.storage.backend == "file"
        assert settings.logging.level == "INFO"
        assert settings.display.transactions_per_page == 15

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "api:\n"
            "  base_url: http://localhost:8080/api/\n"
            "  rate_limit: 10\n"
            "storage:\n"
            "  backend: MEMORY\n"
            "logging:\n"
            "  level: debug\n"
            "  format: json\n"
        )

        settings = load_settings(str(path))

        assert settings.api.base_url == "http://localhost:8080/api"
        assert settings.api.rate_limit == 10
        assert settings.storage.backend == "memory"
        assert settings.logging.level == "DEBUG"
        assert settings.logging.format == "json"

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("storage:\n  backend: memory\n")
        monkeypatch.setenv("RUGPLAY_STORAGE_BACKEND", "redis")
        monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/2")
        monkeypatch.setenv("RUGPLAY_HOLDERS_LIMIT", "25")

        settings = load_settings(str(path))

        assert settings.storage.backend == "redis"
        assert settings.storage.redis_url == "redis://localhost:6379/2"
        assert settings.api.holders_limit == 25

    def test_empty_env_value_ignored(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "")
        assert load_settings().logging.level == "INFO"

    def test_empty_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_settings(str(path)) == Settings()

    @pytest.mark.parametrize("content", [
        "api:\n  rate_limit: 0\n",
        "api:\n  base_url: ftp://example.com\n",
        "storage:\n  backend: sqlite\n",
        "logging:\n  level: LOUD\n",
        "logging:\n  format: xml\n",
        "display:\n  transactions_per_page: 0\n",
        "- just\n- a list\n",
        "api: 5\n",
        "api: [unclosed\n",
    ])
    def test_invalid_file(self, tmp_path, content):
        path = tmp_path / "config.yaml"
        path.write_text(content)

        with pytest.raises(ConfigurationError):
            load_settings(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(str(tmp_path / "missing.yaml"))

    def test_invalid_environment_value(self, monkeypatch):
        monkeypatch.setenv("RUGPLAY_RATE_LIMIT", "lots")

        with pytest.raises(ConfigurationError):
            load_settings()
