"""Configuration loader for gamecloud-toolkit."""
import os
import logging
from pathlib import Path
from typing import Dict, Any
import yaml

from .preferences import CONFIG_PATH_KEY, default_config_path, get_preference

logger = logging.getLogger(__name__)

# Per-service sections; each is optional but must be a mapping when present
SERVICE_SECTIONS = ("storage", "documents", "queue", "identity", "functions")


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def _get_config_path() -> str:
    """
    Get config file path using XDG Base Directory standard.

    Priority order:
    1. User preference (stored in ~/.config/gamecloud-toolkit/preferences.json)
    2. Default location: ~/.config/gamecloud-toolkit/config.yml

    Returns:
        Absolute path to config file

    Raises:
        FileNotFoundError: If config file doesn't exist in any location
    """
    config_path_pref = get_preference(CONFIG_PATH_KEY)
    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            logger.info(f"Using config from preference: {config_path}")
            return str(config_path)
        logger.warning(f"Config path from preference doesn't exist: {config_path}")

    default_config = default_config_path()
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return str(default_config)

    raise FileNotFoundError(
        "Configuration file not found. Please set up your config file using one of these methods:\n\n"
        "1. Use the default location:\n"
        f"   mkdir -p {default_config.parent}\n"
        f"   cp /path/to/your/config.yml {default_config}\n\n"
        "2. Point to an existing config file:\n"
        "   gamecloud config set-path /path/to/your/config.yml\n\n"
        "3. Run interactive setup:\n"
        "   gamecloud config init\n"
    )


def _validate_secret_store(config: Dict[str, Any], config_path: str) -> None:
    """Check the 'authentication' and 'gcp' sections that configure Secret Manager."""
    if 'authentication' not in config:
        raise ConfigError(
            f"Missing 'authentication' section in config at {config_path}\n"
            f"Required format:\n"
            f"authentication:\n"
            f"  type: service_account\n"
            f"  service_account_path: /path/to/service-account.json"
        )

    auth = config['authentication']

    if not isinstance(auth, dict) or 'type' not in auth:
        raise ConfigError("Missing 'authentication.type' in config")

    if auth['type'] != 'service_account':
        raise ConfigError(
            f"Unsupported authentication type: {auth['type']}\n"
            f"Only 'service_account' is supported."
        )

    if 'service_account_path' not in auth:
        raise ConfigError(
            "Missing 'authentication.service_account_path' in config\n"
            "Please specify the absolute path to your service account JSON file."
        )

    service_account_path = auth['service_account_path']

    if not os.path.exists(service_account_path):
        raise ConfigError(
            f"Service account file not found at: {service_account_path}\n"
            f"Please ensure the file exists or update the path in {config_path}"
        )

    if not os.path.isfile(service_account_path):
        raise ConfigError(
            f"Service account path is not a file: {service_account_path}"
        )

    if not isinstance(config.get('gcp'), dict):
        raise ConfigError(
            f"Missing 'gcp' section in config at {config_path}\n"
            f"Required format:\n"
            f"gcp:\n"
            f"  project_id: your-project-id"
        )

    if 'project_id' not in config['gcp']:
        raise ConfigError("Missing 'gcp.project_id' in config")

    logger.debug(f"Using service account: {service_account_path}")
    logger.debug(f"Using project ID: {config['gcp']['project_id']}")


def load_config(require_secret_store: bool = True) -> Dict[str, Any]:
    """
    Load and validate configuration from YAML file.

    Args:
        require_secret_store: When False, a missing or unusable
            'authentication'/'gcp' setup is logged and both sections are
            dropped from the result instead of raising. Service sections
            with literal credentials keep working; secret references then
            resolve to nothing.

    Returns:
        Dict containing configuration with keys:
        - authentication: dict with type and service_account_path
        - gcp: dict with project_id
        - storage, documents, queue, identity, functions: optional service sections

    Raises:
        FileNotFoundError: If no config file exists
        ConfigError: If the config file is invalid or the service account file doesn't exist
    """
    # Resolved on every call so preference changes apply without a restart
    config_path = _get_config_path()

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if not config:
        raise ConfigError(f"Config file at {config_path} is empty")

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping at the top level")

    for section in SERVICE_SECTIONS:
        value = config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(f"Section '{section}' in config at {config_path} must be a mapping")

    try:
        _validate_secret_store(config, config_path)
    except ConfigError as e:
        if require_secret_store:
            raise
        logger.warning(f"Secret Manager not configured, secret references will not resolve: {e}")
        config = {key: value for key, value in config.items() if key not in ('authentication', 'gcp')}

    logger.info(f"Configuration loaded successfully from {config_path}")
    return config


def load_config_or_empty() -> Dict[str, Any]:
    """
    Load configuration for building services.

    Returns {} when no config file exists. The secret store sections are
    optional here, so clients with literal credentials still initialize and
    the rest start in uninitialized mode. Unreadable or malformed files still
    raise ConfigError.
    """
    try:
        return load_config(require_secret_store=False)
    except FileNotFoundError:
        logger.warning("No configuration file found; services will run in uninitialized mode")
        return {}
