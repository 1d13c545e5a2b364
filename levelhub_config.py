"""
LevelHub configuration and logging setup.

All settings come from the environment; a ``.env`` file in the working
directory is loaded first (python-dotenv) without overriding variables that
are already set.
"""

import logging
import os
from typing import Dict, List, Optional

from dotenv import load_dotenv


def setup_logging(level: str = 'INFO') -> logging.Logger:
    """Configure the root LevelHub logger.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Returns:
        Configured logger instance.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger('levelhub')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(levelname)s] %(name)s: %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(numeric)
    return logger


class ConfigError(Exception):
    """Raised when the configuration cannot be used to start the server."""


DEFAULTS: Dict[str, object] = {
    'session_secret': '',
    'client_id': '',
    'client_secret': '',
    'redirect_uri': '',
    'host': '127.0.0.1',
    'port': 3000,
    'data_file': 'data.json',
    'universe_id': '6742973974',
    'static_dir': 'static',
    'http_timeout': 10,
    'session_ttl_seconds': 24 * 60 * 60,
    'log_level': 'INFO',
}

# config key -> environment variable
ENV_VARS = {
    'session_secret': 'SESSION_SECRET',
    'client_id': 'CLIENT_ID',
    'client_secret': 'CLIENT_SECRET',
    'redirect_uri': 'REDIRECT_URI',
    'host': 'HOST',
    'port': 'PORT',
    'data_file': 'DATA_FILE',
    'universe_id': 'UNIVERSE_ID',
    'static_dir': 'STATIC_DIR',
    'http_timeout': 'HTTP_TIMEOUT',
    'session_ttl_seconds': 'SESSION_TTL_SECONDS',
    'log_level': 'LEVELHUB_LOG_LEVEL',
}

_INT_KEYS = ('port', 'http_timeout', 'session_ttl_seconds')
_REQUIRED_KEYS = ('session_secret', 'client_id', 'client_secret', 'redirect_uri')

_PLACEHOLDER_VALUES = {'YOUR_CLIENT_ID', 'YOUR_CLIENT_SECRET', 'YOUR_SESSION_SECRET',
                       'CHANGE_ME', 'changeme'}


def is_placeholder_value(value) -> bool:
    """Return True if *value* is empty or an unfilled template placeholder."""
    return not value or str(value).strip() in _PLACEHOLDER_VALUES


def load_config(env_file: Optional[str] = '.env', environ=None) -> Dict[str, object]:
    """Build the configuration dict from defaults and the environment.

    Environment variables take precedence over the defaults:

    - SESSION_SECRET, CLIENT_ID, CLIENT_SECRET, REDIRECT_URI
    - HOST, PORT (default 3000), DATA_FILE (default data.json)
    - UNIVERSE_ID, STATIC_DIR, HTTP_TIMEOUT, SESSION_TTL_SECONDS
    - LEVELHUB_LOG_LEVEL

    Args:
        env_file: ``.env`` file to load first; ``None`` skips it.
        environ:  Mapping to read instead of ``os.environ`` (tests).

    Raises:
        ConfigError: An integer setting is not a number.
    """
    if environ is None:
        if env_file and os.path.exists(env_file):
            load_dotenv(env_file, override=False)
        environ = os.environ

    config = dict(DEFAULTS)
    for key, var in ENV_VARS.items():
        value = environ.get(var)
        if value is None or value == '':
            continue
        if key in _INT_KEYS:
            try:
                value = int(value)
            except ValueError as exc:
                raise ConfigError(f"{var} must be an integer, got {value!r}") from exc
        config[key] = value
    return config


def validate_config(config: Dict[str, object]) -> List[str]:
    """Return a list of human-readable problems; empty when the config is usable."""
    errors = []
    for key in _REQUIRED_KEYS:
        if is_placeholder_value(config.get(key)):
            errors.append(f"{ENV_VARS[key]} is required")
    port = config.get('port')
    if not isinstance(port, int) or not 0 < port < 65536:
        errors.append(f"PORT must be between 1 and 65535, got {port!r}")
    return errors
