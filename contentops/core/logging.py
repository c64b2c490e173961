"""
Centralized Logging Configuration

Provides standardized logging setup with JSON formatting for structured logs.
The console layer itself only ever calls ``logging.getLogger(__name__)``;
the embedding application calls ``setup_logging`` once at startup.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Optional

from contentops.core.config import Settings, get_settings

# Extra attributes copied into JSON log entries when present on the record
CONTEXT_FIELDS = ('action', 'entity', 'record_id', 'status_code', 'reason')


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        """Format log record as JSON."""
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        return json.dumps(log_entry, default=str)


def setup_logging(
    settings: Optional[Settings] = None,
    level: Optional[str] = None,
    format_type: Optional[str] = None,
    service_name: str = 'contentops'
) -> logging.Logger:
    """
    Setup centralized logging configuration.

    Args:
        settings: Settings to read defaults from (defaults to cached settings)
        level: Log level override (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'json' for structured JSON logs, 'standard' for human-readable
        service_name: Service logger name returned to the caller

    Returns:
        The service-level logger
    """
    settings = settings or get_settings()
    level = (level or settings.log_level).upper()
    format_type = format_type or settings.log_format

    numeric_level = getattr(logging, level, logging.INFO)

    use_json = format_type == 'json' or settings.environment.lower() == 'production'

    if use_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if settings.log_file:
        file_handler = logging.FileHandler(settings.log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Noisy third-party libraries
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('redis').setLevel(logging.WARNING)

    return logging.getLogger(service_name)


def setup_test_logging() -> logging.Logger:
    """Setup logging for test environment."""
    return setup_logging(
        settings=Settings(log_level='WARNING', log_format='standard', environment='test'),
        service_name='contentops-test'
    )
