import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from scopes_settings import resolve_log_level_name

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'

_LOG_LEVEL_MAP = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.FATAL,
}

logger = logging.getLogger(__name__)


def resolve_log_level(level_name: str | None) -> int:
    """Map a configured log level string to a numeric logging level."""
    if not level_name:
        return logging.INFO
    return _LOG_LEVEL_MAP.get(str(level_name).strip().lower(), logging.INFO)


class _ScopesStreamHandler(logging.StreamHandler):
    """Marker type so repeated configuration does not stack handlers."""


def configure_logging(level_name: str | None = None, log_file: str | Path | None = None) -> int:
    """Attach handlers and set the root logger level once.

    Returns the numeric level that was applied.
    """
    root_logger = logging.getLogger()
    configured_level_name = level_name or resolve_log_level_name()
    configured_level = resolve_log_level(configured_level_name)

    if not any(isinstance(handler, _ScopesStreamHandler) for handler in root_logger.handlers):
        stream_handler = _ScopesStreamHandler()
        stream_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root_logger.addHandler(stream_handler)

    if log_file is not None:
        log_path = Path(log_file)
        if not any(
            isinstance(handler, RotatingFileHandler)
            and Path(getattr(handler, "baseFilename", "")).resolve() == log_path.resolve()
            for handler in root_logger.handlers
        ):
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_path,
                maxBytes=1_500_000,
                backupCount=1,
                encoding='utf-8'
            )
            file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
            root_logger.addHandler(file_handler)

    root_logger.setLevel(configured_level)
    logger.info(
        "[LOG] Root logger level set to %s (%s)",
        logging.getLevelName(configured_level),
        configured_level_name,
    )
    return configured_level
