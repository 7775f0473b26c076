"""
Configuration loader for the Tuition Agent
"""
import copy
import json
import logging
import os
import sys
from typing import Dict, Any

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 3000},
    "gemini": {
        "api_key": None,
        "model_name": "gemini-2.5-flash",
        "temperature": 0.7,
        "max_tokens": 1000,
        "top_p": 0.8,
        "top_k": 40,
    },
    "tuition": {"api_url": None, "timeout": 15.0},
    "firebase": {"service_account": None, "collection": "chats"},
    "app": {"debug": False, "log_level": "INFO", "log_dir": "logs", "shutdown_timeout": 10.0},
}


class ConfigError(ValueError):
    """Raised when a required setting is missing or malformed"""


def load_config(config_path: str = "config.json") -> Dict[str, Any]:
    """
    Load configuration from an optional JSON file with environment variable overrides

    Args:
        config_path: Path to the configuration file. A missing file is not an
            error; defaults and environment variables are used instead.

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file is invalid JSON or a required field is missing
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file {config_path}: {str(e)}")
        for section, values in file_config.items():
            config.setdefault(section, {}).update(values or {})

    config = _override_with_env_vars(config)
    _validate_config(config)
    return config


def load_config_or_exit(config_path: str = "config.json") -> Dict[str, Any]:
    """Load configuration, terminating the process if it is unusable."""
    try:
        return load_config(config_path)
    except ConfigError as e:
        logger.critical(f"Configuration error: {str(e)}")
        print(f"Configuration error: {str(e)}", file=sys.stderr)
        sys.exit(1)


def _override_with_env_vars(config: Dict[str, Any]) -> Dict[str, Any]:
    """Override config values with environment variables"""

    # Server settings
    if "PORT" in os.environ:
        try:
            config["server"]["port"] = int(os.environ["PORT"])
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got {os.environ['PORT']!r}")

    if "HOST" in os.environ:
        config["server"]["host"] = os.environ["HOST"]

    # Tuition backend
    if "API_URL" in os.environ:
        config["tuition"]["api_url"] = os.environ["API_URL"]

    if "TUITION_TIMEOUT" in os.environ:
        try:
            config["tuition"]["timeout"] = float(os.environ["TUITION_TIMEOUT"])
        except ValueError:
            raise ConfigError(f"TUITION_TIMEOUT must be a number, got {os.environ['TUITION_TIMEOUT']!r}")

    # Gemini settings
    if "GEMINI_API_KEY" in os.environ:
        config["gemini"]["api_key"] = os.environ["GEMINI_API_KEY"]

    if "GEMINI_MODEL" in os.environ:
        config["gemini"]["model_name"] = os.environ["GEMINI_MODEL"]

    # Firebase settings
    if "FIREBASE_SERVICE_ACCOUNT" in os.environ:
        config["firebase"]["service_account"] = os.environ["FIREBASE_SERVICE_ACCOUNT"]

    if "FIREBASE_COLLECTION" in os.environ:
        config["firebase"]["collection"] = os.environ["FIREBASE_COLLECTION"]

    # App settings
    if "DEBUG" in os.environ:
        config["app"]["debug"] = os.environ["DEBUG"].lower() in ("true", "1", "yes")

    if "LOG_LEVEL" in os.environ:
        config["app"]["log_level"] = os.environ["LOG_LEVEL"].upper()

    return config


def _validate_config(config: Dict[str, Any]) -> None:
    """Validate that required configuration fields are present"""

    service_account = config["firebase"].get("service_account")
    if not service_account:
        raise ConfigError("Missing FIREBASE_SERVICE_ACCOUNT (firebase.service_account)")

    # Inline JSON is decoded here so a malformed key fails at startup
    if isinstance(service_account, str) and service_account.lstrip().startswith("{"):
        try:
            config["firebase"]["service_account"] = json.loads(service_account)
        except json.JSONDecodeError as e:
            raise ConfigError(f"FIREBASE_SERVICE_ACCOUNT is not valid JSON: {str(e)}")
    elif isinstance(service_account, str) and not os.path.exists(service_account):
        raise ConfigError(f"Service account file not found: {service_account}")

    for section, field in (("gemini", "api_key"), ("tuition", "api_url")):
        value = config[section].get(field)
        if not value or str(value).startswith("YOUR_"):
            logger.warning(f"{section}.{field} is not set; related calls will fail at runtime")


def get_server_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get HTTP server configuration"""
    return config.get("server", {})


def get_gemini_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get Gemini-specific configuration"""
    return config.get("gemini", {})


def get_tuition_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get tuition backend configuration"""
    return config.get("tuition", {})


def get_firebase_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get Firebase configuration"""
    return config.get("firebase", {})


def get_app_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get application-specific configuration"""
    return config.get("app", {})
