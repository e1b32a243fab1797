"""
Engine settings loaded from YAML, merged over defaults, with environment overrides.
"""
import os
import logging
import yaml

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = 'http://localhost:3001/api'


def get_default_settings():
    """Return default settings."""
    return {
        'api_base_url': DEFAULT_API_BASE_URL,
        'api_timeout_seconds': 30,
        'api_token': None,
        'highlight_top_n': None,
        'log_level': 'INFO',
    }


def normalize_base_url(url: str) -> str:
    return url.rstrip('/')


def load_settings(path: str = None) -> dict:
    """
    Load settings from YAML file, merging with defaults.

    The file is `path` or $ENGINE_SETTINGS_FILE. Environment variables
    TOURNAMENT_API_URL, TOURNAMENT_API_TIMEOUT and TOURNAMENT_API_TOKEN win
    over the file.
    """
    settings = get_default_settings()
    path = path or os.environ.get('ENGINE_SETTINGS_FILE')

    if path and os.path.exists(path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
            if isinstance(data, dict):
                for key, value in data.items():
                    if key in settings:
                        settings[key] = value
                    else:
                        logger.warning(f'Ignoring unknown setting {key!r} in {path}')
        except yaml.YAMLError as e:
            logger.warning(f'Failed to parse {path}: {e}')

    env_url = os.environ.get('TOURNAMENT_API_URL')
    if env_url:
        settings['api_base_url'] = env_url
    env_timeout = os.environ.get('TOURNAMENT_API_TIMEOUT')
    if env_timeout:
        try:
            settings['api_timeout_seconds'] = float(env_timeout)
        except ValueError:
            logger.warning(f'Invalid TOURNAMENT_API_TIMEOUT {env_timeout!r}, using {settings["api_timeout_seconds"]}')
    env_token = os.environ.get('TOURNAMENT_API_TOKEN')
    if env_token:
        settings['api_token'] = env_token

    settings['api_base_url'] = normalize_base_url(settings['api_base_url'] or DEFAULT_API_BASE_URL)
    return settings
