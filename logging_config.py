"""
Centralized Logging Configuration

Console output plus an optional rotating file under LOG_DIR. Partner portal
credentials (invite tokens in URLs, bearer tokens) are masked before any
handler writes them.
"""
import re
import logging
import logging.handlers
from pathlib import Path

MASK = '***'

_SECRET_PATTERNS = [
    re.compile(r'(/partner-portal/invite/)[^/\s?"]+'),
    re.compile(r'(Bearer\s+)\S+', re.IGNORECASE),
    re.compile(r'(X-Partner-Token[:=]\s*)\S+', re.IGNORECASE),
]

# Chatty libraries that only matter when something is wrong
QUIET_LOGGERS = ('werkzeug', 'sqlalchemy.engine', 'alembic.runtime.migration', 'httpx', 'anthropic')


def mask_secrets(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + MASK, text)
    return text


class SecretMaskingFilter(logging.Filter):
    """Rewrites a record's message with portal tokens masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_secrets(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def _handler(handler: logging.Handler, level: int, log_format: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format))
    handler.addFilter(SecretMaskingFilter())
    return handler


def setup_logging(app):
    """
    Setup application-wide logging

    Args:
        app: Flask application instance

    Returns:
        The configured root logger
    """
    log_level = getattr(logging, app.config['LOG_LEVEL'].upper(), logging.INFO)
    log_format = app.config['LOG_FORMAT']

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []
    root_logger.addHandler(_handler(logging.StreamHandler(), log_level, log_format))

    if app.config.get('LOG_TO_FILE', True):
        log_dir = Path(app.config.get('LOG_DIR', 'logs'))
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / app.config['LOG_FILE']

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=app.config.get('LOG_MAX_BYTES', 10 * 1024 * 1024),
            backupCount=app.config.get('LOG_BACKUP_COUNT', 5)
        )
        root_logger.addHandler(_handler(file_handler, log_level, log_format))
        app.logger.info(f"Log file: {log_path}")

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.info(f"Logging initialized at {logging.getLevelName(log_level)} level")

    return root_logger
