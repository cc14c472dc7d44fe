# src/fixturekit/common/logging_config.py

import logging
import logging.config
import os
import sys
from typing import Optional, Union

from ..models.config import LoggingConfig

BASE_LOGGER_NAME = "fixturekit"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    console_output: bool = True,
    json_format: bool = False,
    base_logger_name: str = BASE_LOGGER_NAME,
) -> logging.Logger:
    """
    Configure fixturekit logging declaratively with dictConfig.

    Args:
        level: Minimum level for the fixturekit loggers.
        log_file: Path of a rotating log file; no file handler when None.
        console_output: Emit colored logs to stderr.
        json_format: Use the JSON formatter for the file handler.
        base_logger_name: Root of the logger hierarchy to configure.
    """
    if isinstance(level, str):
        numeric_level = getattr(logging, level.upper(), logging.INFO)
    else:
        numeric_level = level

    handlers = {}
    if console_output:
        handlers['console'] = {
            'class': 'logging.StreamHandler',
            'level': numeric_level,
            'formatter': 'color_console',
            'stream': sys.stderr,
        }
    if log_file:
        log_directory = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_directory, exist_ok=True)
        handlers['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'level': numeric_level,
            'formatter': 'json' if json_format else 'standard',
            'filename': log_file,
            'maxBytes': 10485760, # 10MB
            'backupCount': 5,
            'encoding': 'utf8',
        }

    LOGGING_CONFIG = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'color_console': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s - %(name)s - %(levelname)s - %(message)s%(reset)s',
                'datefmt': '%Y-%m-%d %H:%M:%S',
                'log_colors': {
                    'DEBUG':    'cyan',
                    'INFO':     'green',
                    'WARNING':  'yellow',
                    'ERROR':    'red',
                    'CRITICAL': 'bold_red',
                }
            },
            'json': {
                '()': 'pythonjsonlogger.json.JsonFormatter',
                'format': '%(asctime)s %(levelname)s %(name)s %(message)s'
            }
        },
        'handlers': handlers,
        'loggers': {
            base_logger_name: {
                'handlers': list(handlers),
                'level': numeric_level,
                'propagate': False
            },
        },
    }

    logging.config.dictConfig(LOGGING_CONFIG)

    # asyncio is chatty about task creation at DEBUG
    if numeric_level > logging.DEBUG:
        logging.getLogger('asyncio').setLevel(logging.WARNING)

    main_logger = logging.getLogger(base_logger_name)
    main_logger.debug(f"Logging configured. Level: {logging.getLevelName(numeric_level)}")
    return main_logger


def configure_from(config: LoggingConfig) -> logging.Logger:
    """Apply a LoggingConfig model."""
    return setup_logging(
        level=config.level,
        log_file=config.file,
        console_output=config.console,
        json_format=config.json_format,
    )
