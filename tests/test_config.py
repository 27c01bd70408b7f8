"""Tests for configuration loading and the connection check."""
from unittest.mock import Mock, patch

import pytest
import requests

from config import (
    CONFIG_FILE_NAME,
    ConfigError,
    MealieConfig,
    load_config,
    validate_mealie_connection,
)


class TestLoadConfig:

    @pytest.mark.readonly
    def test_loads_file(self, write_config):
        path = write_config({"mealieUrl": "https://mealie.example", "apiToken": "tok"})
        config = load_config(path)

        assert config == MealieConfig(mealie_url="https://mealie.example", api_token="tok")
        assert config.api_base == "https://mealie.example/api"

    @pytest.mark.readonly
    def test_strips_trailing_slash(self, write_config):
        path = write_config({"mealieUrl": "https://mealie.example/", "apiToken": "tok"})
        assert load_config(path).mealie_url == "https://mealie.example"

    @pytest.mark.readonly
    def test_default_path_is_working_directory(self, write_config, monkeypatch, tmp_path):
        write_config({"mealieUrl": "http://localhost:9925", "apiToken": "tok"})
        monkeypatch.chdir(tmp_path)
        assert load_config().mealie_url == "http://localhost:9925"

    @pytest.mark.readonly
    def test_missing_file_shows_sample(self, tmp_path):
        with pytest.raises(ConfigError) as excinfo:
            load_config(tmp_path / CONFIG_FILE_NAME)

        message = str(excinfo.value)
        assert "Config file not found" in message
        assert '"mealieUrl"' in message
        assert '"apiToken"' in message

    @pytest.mark.readonly
    def test_missing_url(self, write_config):
        path = write_config({"apiToken": "tok"})
        with pytest.raises(ConfigError, match="mealieUrl is required"):
            load_config(path)

    @pytest.mark.readonly
    def test_missing_token(self, write_config):
        path = write_config({"mealieUrl": "https://mealie.example"})
        with pytest.raises(ConfigError, match="apiToken is required"):
            load_config(path)

    @pytest.mark.readonly
    def test_malformed_file(self, write_config):
        path = write_config('{"mealieUrl": "https://mealie.example", ')
        with pytest.raises(ConfigError, match="not valid JSON"):
            load_config(path)

    @pytest.mark.readonly
    def test_non_object_file(self, write_config):
        path = write_config('["https://mealie.example"]')
        with pytest.raises(ConfigError, match="must contain a JSON object"):
            load_config(path)

    @pytest.mark.readonly
    def test_empty_file(self, write_config):
        path = write_config("")
        with pytest.raises(ConfigError, match="empty"):
            load_config(path)

    @pytest.mark.readonly
    def test_env_overrides_file(self, write_config, monkeypatch):
        path = write_config({"mealieUrl": "https://file.example", "apiToken": "file-token"})
        monkeypatch.setenv("MEALIE_TOKEN", "env-token")

        config = load_config(path)
        assert config.mealie_url == "https://file.example"
        assert config.api_token == "env-token"

    @pytest.mark.readonly
    def test_env_only_needs_no_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MEALIE_URL", "https://env.example/")
        monkeypatch.setenv("MEALIE_TOKEN", "env-token")

        config = load_config(tmp_path / CONFIG_FILE_NAME)
        assert config.mealie_url == "https://env.example"

    @pytest.mark.readonly
    def test_repr_hides_token(self):
        config = MealieConfig(mealie_url="https://mealie.example", api_token="secret")
        assert "secret" not in repr(config)

    @pytest.mark.readonly
    def test_recipe_url(self):
        config = MealieConfig(mealie_url="https://mealie.example", api_token="tok")
        assert config.recipe_url("tuna-salad") == "https://mealie.example/recipe/tuna-salad"

    @pytest.mark.readonly
    def test_load_logs_without_token(self, write_config, caplog):
        path = write_config({"mealieUrl": "https://mealie.example", "apiToken": "secret-token"})
        with caplog.at_level("DEBUG", logger="config"):
            load_config(path)

        assert "Loaded Mealie config: https://mealie.example" in caplog.text
        assert "secret-token" not in caplog.text


class TestValidateMealieConnection:

    CONFIG = MealieConfig(mealie_url="https://mealie.example", api_token="tok")

    @pytest.mark.readonly
    def test_ok(self):
        with patch("config.requests.get", return_value=Mock(status_code=200)) as get:
            assert validate_mealie_connection(self.CONFIG) is True

        args, kwargs = get.call_args
        assert args[0] == "https://mealie.example/api/app/about"
        assert kwargs["headers"] == {"Authorization": "Bearer tok"}

    @pytest.mark.readonly
    def test_unauthorized(self):
        with patch("config.requests.get", return_value=Mock(status_code=401)):
            assert validate_mealie_connection(self.CONFIG) is False

    @pytest.mark.readonly
    def test_connection_error(self):
        with patch("config.requests.get", side_effect=requests.exceptions.ConnectionError("refused")):
            assert validate_mealie_connection(self.CONFIG) is False

    @pytest.mark.readonly
    def test_timeout(self):
        with patch("config.requests.get", side_effect=requests.exceptions.Timeout()):
            assert validate_mealie_connection(self.CONFIG) is False
