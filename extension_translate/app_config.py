"""Tool settings: how to translate, as opposed to what to translate."""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from extension_translate.logging_config import setup_logger
from extension_translate.translation_client import MAX_STRINGS_PER_REQUEST


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    project_root: str

    # Translation service
    translation_service: str
    google_credentials_file: Optional[str]
    model_name: str

    # Request limits
    max_strings_per_request: int
    max_concurrent_api_calls: int
    rate_limit: float
    rate_period: float
    max_retries: int
    retry_base_delay: float

    # Processing settings
    dry_run: bool
    show_progress: bool


def _compute_project_root() -> str:
    """The directory containing the extension_translate package."""
    package_dir = os.path.dirname(os.path.realpath(__file__))
    return os.path.abspath(os.path.join(package_dir, os.pardir))


def _dotenv_candidates(project_root: str) -> List[str]:
    return [
        os.path.join(project_root, '.env'),
        os.path.join(project_root, 'docker', '.env'),
    ]


def _load_dotenv_files(project_root: str) -> Optional[str]:
    """Load the first .env file found. Returns its path, or None."""
    for dotenv_path in _dotenv_candidates(project_root):
        if os.path.exists(dotenv_path):
            load_dotenv(dotenv_path)
            return dotenv_path
    return None


def _warn(message: str) -> None:
    # Settings are read before logging is configured.
    print(message, file=sys.stderr)


def _load_yaml_config(project_root: str) -> Dict[str, Any]:
    """
    Read the YAML settings file named by TRANSLATOR_CONFIG_FILE, or config.yaml in the project root.

    A missing, unreadable, empty or malformed file is reported on stderr and
    an empty mapping is returned so every setting takes its default.
    """
    config_file = os.path.abspath(
        os.environ.get('TRANSLATOR_CONFIG_FILE', os.path.join(project_root, 'config.yaml'))
    )

    if not os.path.exists(config_file):
        _warn(f"Warning: Settings file '{config_file}' not found. Using default settings.")
        return {}
    if not os.access(config_file, os.R_OK):
        _warn(f"Error: Settings file '{config_file}' is not readable. Using default settings.")
        return {}

    try:
        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
    except yaml.YAMLError as e:
        _warn(f"Error: Invalid YAML in settings file '{config_file}': {e}. Using default settings.")
        return {}
    except OSError as e:
        _warn(f"Error: Could not read settings file '{config_file}': {e}. Using default settings.")
        return {}

    if loaded_config is None:
        _warn(f"Warning: Settings file '{config_file}' is empty. Using default settings.")
        return {}
    if not isinstance(loaded_config, dict):
        _warn(f"Error: Settings file '{config_file}' must contain a YAML mapping. Using default settings.")
        return {}
    return loaded_config


def _setting(config: Dict[str, Any], key: str, default: Any,
             env_var: Optional[str] = None, cast: Callable[[Any], Any] = lambda value: value) -> Any:
    """Look up ``key``, letting ``env_var`` override the file when it is set."""
    if env_var and os.environ.get(env_var):
        return cast(os.environ[env_var])
    value = config.get(key)
    return default if value is None else cast(value)


def _setup_logger_from_config(config: Dict[str, Any]) -> logging.Logger:
    log_config = config.get('logging') or {}
    return setup_logger(
        str(log_config.get('log_level', 'INFO')).upper(),
        log_config.get('log_file_path', 'logs/translation_log.log'),
        log_config.get('log_to_console', True)
    )


def load_app_config() -> AppConfig:
    """
    Load tool settings from .env, the YAML settings file and the environment.

    Returns:
        AppConfig: The loaded settings.
    """
    project_root = _compute_project_root()
    dotenv_path = _load_dotenv_files(project_root)
    config = _load_yaml_config(project_root)

    logger = _setup_logger_from_config(config)
    if dotenv_path:
        logger.info("Loaded environment variables from: %s", dotenv_path)
    else:
        logger.info("No .env file found in %s. Relying on system environment variables if any.",
                    ' or '.join(_dotenv_candidates(project_root)))

    return AppConfig(
        project_root=project_root,
        translation_service=_setting(config, 'translation_service', 'google', 'TRANSLATION_SERVICE', str.lower),
        google_credentials_file=config.get('google_credentials_file'),
        model_name=_setting(config, 'model_name', 'gpt-4o-mini', 'MODEL_NAME'),
        max_strings_per_request=_setting(config, 'max_strings_per_request', MAX_STRINGS_PER_REQUEST, cast=int),
        max_concurrent_api_calls=_setting(config, 'max_concurrent_api_calls', 4, cast=int),
        rate_limit=_setting(config, 'rate_limit', 10, cast=float),
        rate_period=_setting(config, 'rate_period', 1.0, cast=float),
        max_retries=_setting(config, 'max_retries', 1, 'MAX_RETRIES', int),
        retry_base_delay=_setting(config, 'retry_base_delay', 1.0, cast=float),
        dry_run=bool(config.get('dry_run', False)),
        show_progress=bool(config.get('show_progress', True))
    )
