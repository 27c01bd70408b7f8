"""
Configuration module for the Mealie MCP bridge
==============================================

This module centralizes configuration for the bridge that lets an AI agent
save recipes into a self-hosted Mealie instance:
- Mealie connection (base URL + API token)
- Logging (dictConfig, stderr console, optional rotating file)

CONFIGURATION:
- .mealie-mcp.json: Mealie URL and API token, read from the working directory
  (or the path given with --config)
- MEALIE_URL / MEALIE_TOKEN: environment overrides for the file values

Usage:
    from config import load_config, ConfigError

    config = load_config()
    print(config.mealie_url)

The loaded MealieConfig is immutable and is passed explicitly to
MealieClient; nothing in this module holds connection state.
"""

import os
import logging
import logging.handlers
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import requests
import yaml

from utils.url_utils import recipe_view_url

# Use standard logging for config.py (foundational module)
logger = logging.getLogger(__name__)


# =============================================================================
# PATHS & CONSTANTS
# =============================================================================

# Config file name, looked up in the current working directory
CONFIG_FILE_NAME = ".mealie-mcp.json"

# Sample body shown to operators when the config file is missing
SAMPLE_CONFIG = (
    '{\n'
    '  "mealieUrl": "https://your-mealie-instance.com",\n'
    '  "apiToken": "your-api-token"\n'
    '}'
)

# Timeout (seconds) for the synchronous connection check
MEALIE_TIMEOUT = 10


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ConfigError(Exception):
    """Raised when the configuration file is missing, malformed or incomplete."""
    pass


# =============================================================================
# MEALIE CONNECTION CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class MealieConfig:
    """Connection settings for one Mealie instance.

    Attributes:
        mealie_url: Base URL without trailing slash (e.g. "http://localhost:9925")
        api_token: Mealie API token sent as a bearer credential
    """
    mealie_url: str
    api_token: str

    @property
    def api_base(self) -> str:
        return f"{self.mealie_url}/api"

    def recipe_url(self, slug: str) -> str:
        """URL where a saved recipe can be viewed in the Mealie UI."""
        return recipe_view_url(self.mealie_url, slug)

    def __repr__(self) -> str:
        # Never print the token
        return f"MealieConfig(mealie_url={self.mealie_url!r}, api_token='***')"


def get_config_path() -> Path:
    """Get the default config path: .mealie-mcp.json in the working directory."""
    return Path.cwd() / CONFIG_FILE_NAME


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Parse the config file.

    The file is JSON; it is parsed with yaml.safe_load, which accepts JSON
    as well as hand-edited YAML.

    Raises:
        ConfigError: If the file cannot be parsed or is not a mapping
    """
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Config file {config_path} is not valid JSON: {e}"
        ) from e

    if data is None:
        raise ConfigError(
            f"Config file {config_path} is empty. Expected format:\n{SAMPLE_CONFIG}"
        )
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file {config_path} must contain a JSON object, got {type(data).__name__}"
        )
    return data


def load_config(config_path: Optional[Union[str, Path]] = None) -> MealieConfig:
    """
    Load Mealie connection settings.

    Priority order for each field:
    1. Environment variable (MEALIE_URL, MEALIE_TOKEN)
    2. Config file (mealieUrl, apiToken)

    The config file may be absent only when both environment variables are
    set.

    Args:
        config_path: Path to the config file (default: ./.mealie-mcp.json)

    Returns:
        MealieConfig with the trailing slash stripped from the URL

    Raises:
        ConfigError: If the file is missing, malformed or lacks a required field
    """
    path = Path(config_path) if config_path else get_config_path()

    env_url = os.getenv("MEALIE_URL", "").strip()
    env_token = os.getenv("MEALIE_TOKEN", "").strip()

    file_data: Dict[str, Any] = {}
    if path.exists():
        file_data = _read_config_file(path)
    elif not (env_url and env_token):
        raise ConfigError(
            f"Config file not found at {path}. "
            f"Please create a {CONFIG_FILE_NAME} file in the current directory "
            f"with the following format:\n{SAMPLE_CONFIG}"
        )
    else:
        logger.debug(f"No config file at {path}, using MEALIE_URL/MEALIE_TOKEN from environment")

    mealie_url = env_url or file_data.get("mealieUrl")
    api_token = env_token or file_data.get("apiToken")

    if not mealie_url or not isinstance(mealie_url, str):
        raise ConfigError(f"mealieUrl is required in config file {path}")
    if not api_token or not isinstance(api_token, str):
        raise ConfigError(f"apiToken is required in config file {path}")

    config = MealieConfig(mealie_url=mealie_url.rstrip('/'), api_token=api_token)
    logger.debug(f"🔧 Loaded Mealie config: {config.mealie_url} (token length: {len(api_token)})")
    return config


# =============================================================================
# CONNECTION VALIDATION
# =============================================================================

def validate_mealie_connection(config: MealieConfig) -> bool:
    """
    Validate that Mealie server is reachable and the token is accepted.

    Args:
        config: Loaded Mealie configuration

    Returns:
        bool: True if Mealie is accessible, False otherwise
    """
    try:
        headers = {"Authorization": f"Bearer {config.api_token}"}
        response = requests.get(
            f"{config.api_base}/app/about",
            headers=headers,
            timeout=MEALIE_TIMEOUT
        )

        if response.status_code == 200:
            logger.info(f"✅ Mealie connection successful: {config.mealie_url}")
            return True
        elif response.status_code == 401:
            logger.error("❌ ERROR: Mealie authentication failed (401 Unauthorized)")
            logger.error("   Check your apiToken is valid")
            return False
        else:
            logger.error(f"❌ ERROR: Mealie returned status code {response.status_code}")
            return False

    except requests.exceptions.ConnectionError:
        logger.error(f"❌ ERROR: Cannot connect to Mealie at {config.mealie_url}")
        logger.error("   Is the Mealie server running?")
        return False
    except requests.exceptions.Timeout:
        logger.error(f"❌ ERROR: Mealie connection timed out after {MEALIE_TIMEOUT} seconds")
        return False
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ ERROR: Unexpected error connecting to Mealie: {e}")
        return False


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
# stdout carries the MCP protocol, so console logs go to stderr.

LOG_LEVEL = os.getenv("MEALIE_MCP_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("MEALIE_MCP_LOG_FILE", "").strip()

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
        "detailed": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": LOG_LEVEL,
            "formatter": "standard",
            "stream": "ext://sys.stderr"
        }
    },
    "root": {
        "level": "DEBUG",
        "handlers": ["console"]
    }
}

if LOG_FILE:
    LOGGING_CONFIG["handlers"]["file"] = {
        "class": "logging.handlers.RotatingFileHandler",
        "level": "DEBUG",
        "formatter": "detailed",
        "filename": LOG_FILE,
        "maxBytes": 10485760,  # 10MB
        "backupCount": 5
    }
    LOGGING_CONFIG["root"]["handlers"].append("file")
