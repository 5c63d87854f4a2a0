import logging
import os

import yaml

logger = logging.getLogger(__name__)

DEFAULT_REGEX_TIMEOUT_MS = 500
DEFAULT_STRATEGY = "auto"
DEFAULT_LOG_LEVEL = "info"

_VALID_STRATEGIES = {"pattern", "automaton", "auto"}


def _config_path():
    return os.environ.get(
        'ONVIF_SCOPES_CONFIG_FILE',
        os.path.join(os.path.dirname(__file__), 'config.yaml')
    )


def load_options(config_path=None):
    """Read the ``options`` mapping from config.yaml.

    Missing or unreadable files yield an empty mapping; callers fall back to
    built-in defaults.
    """
    config_path = config_path or _config_path()
    try:
        if not os.path.exists(config_path):
            return {}

        with open(config_path, 'r', encoding='utf-8') as handle:
            parsed = yaml.safe_load(handle) or {}
    except Exception:
        logger.debug("Unable to read options from %s; using defaults.", config_path, exc_info=True)
        return {}

    options = parsed.get('options', {}) if isinstance(parsed, dict) else {}
    if not isinstance(options, dict):
        logger.warning("Config options at %s are not a mapping; using defaults.", config_path)
        return {}
    return options


def resolve_regex_timeout_ms(config_path=None):
    """Resolve the per-match regex execution cap in milliseconds.

    Priority:
    1) ONVIF_SCOPES_REGEX_TIMEOUT_MS environment variable
    2) config.yaml option: options.regex_timeout_ms
    3) default 500
    """
    raw_value = os.environ.get('ONVIF_SCOPES_REGEX_TIMEOUT_MS')
    source = "environment"
    if raw_value is None:
        raw_value = load_options(config_path).get('regex_timeout_ms')
        source = "config.yaml"

    if raw_value is None:
        return DEFAULT_REGEX_TIMEOUT_MS

    try:
        timeout_ms = int(str(raw_value).strip())
    except (TypeError, ValueError):
        logger.warning("Invalid regex timeout %r from %s; using %s ms.", raw_value, source, DEFAULT_REGEX_TIMEOUT_MS)
        return DEFAULT_REGEX_TIMEOUT_MS

    if timeout_ms <= 0:
        logger.warning("Regex timeout must be positive, got %s from %s; using %s ms.", timeout_ms, source, DEFAULT_REGEX_TIMEOUT_MS)
        return DEFAULT_REGEX_TIMEOUT_MS
    return timeout_ms


def resolve_strategy(config_path=None):
    """Resolve the default extraction strategy name (pattern, automaton or auto)."""
    raw_value = os.environ.get('ONVIF_SCOPES_STRATEGY')
    if raw_value is None:
        raw_value = load_options(config_path).get('strategy')

    if raw_value is None:
        return DEFAULT_STRATEGY

    normalized = str(raw_value).strip().lower()
    if normalized not in _VALID_STRATEGIES:
        logger.warning("Unknown extraction strategy %r; using %s.", raw_value, DEFAULT_STRATEGY)
        return DEFAULT_STRATEGY
    return normalized


def resolve_log_level_name(config_path=None):
    env_value = os.environ.get('LOG_LEVEL')
    if env_value and env_value.strip():
        return env_value.strip()

    configured = load_options(config_path).get('log_level')
    if isinstance(configured, str) and configured.strip():
        return configured.strip()
    return DEFAULT_LOG_LEVEL
