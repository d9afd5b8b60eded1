"""
Logging Configuration Module
Centralized logging setup for the Magic Place engine.

Library modules only fetch loggers via get_logger(); handlers are
installed when the host application calls setup_logging().
"""
import os
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOG_DIR = os.getenv('LOG_DIR', os.path.join(os.getcwd(), 'logs'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-25s | %(request_id)-10s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

ROOT_LOGGER_NAME = 'magic_place'


class RequestIdFilter(logging.Filter):
    """Injects request_id into log records if not present"""
    def filter(self, record):
        if not hasattr(record, 'request_id'):
            record.request_id = 'system'
        return True


class RequestAdapter(logging.LoggerAdapter):
    """Adapter that injects request_id into log messages"""
    def process(self, msg, kwargs):
        kwargs.setdefault('extra', {})['request_id'] = self.extra.get('request_id', 'system')
        return msg, kwargs


_initialized = False

# Silent unless the host configures logging
logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def setup_logging(app_name: str = 'magic_place', log_dir: str = None) -> logging.Logger:
    """
    Set up engine logging with file rotation.

    Args:
        app_name: Base name for log files
        log_dir: Directory for log files (default LOG_DIR)

    Returns:
        Root logger for the engine
    """
    global _initialized

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _initialized:
        return logger

    log_dir = log_dir or LOG_DIR
    Path(log_dir).mkdir(parents=True, exist_ok=True)

    logger.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))

    # Clear existing handlers
    logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    # File handler with 7-day rotation (midnight rotation)
    log_file = os.path.join(log_dir, f'{app_name}.log')
    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when='midnight',
        interval=1,
        backupCount=7,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    file_handler.addFilter(RequestIdFilter())

    # Console handler for development
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(RequestIdFilter())

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.propagate = False

    _initialized = True
    logger.info(f"Logging initialized: level={LOG_LEVEL}, dir={log_dir}")

    return logger


def get_logger(module_name: str) -> logging.Logger:
    """
    Get a child logger for a specific module.

    Args:
        module_name: Name of the module (e.g., 'heatmap', 'cache', 'placer')

    Returns:
        Logger instance for the module
    """
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{module_name}')


def get_request_logger(module_name: str, request_id: str) -> RequestAdapter:
    """
    Get a logger adapter with request_id for tracking.

    Args:
        module_name: Name of the module
        request_id: Caller-supplied ID for one placement run

    Returns:
        RequestAdapter with request_id injected
    """
    logger = get_logger(module_name)
    return RequestAdapter(logger, {'request_id': request_id})
