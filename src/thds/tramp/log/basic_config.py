"""Contains the basic configuration for our logger. By importing thds.tramp.log, you import
and 'use' this configuration, unless something has already configured the root logger.
"""

import logging
import logging.config

from .kw_formatter import ThdsCompactFormatter

_BASE_LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {"default": {"()": ThdsCompactFormatter}},
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "default"}},
    "root": {"handlers": ["console"]},
}


if not logging.getLogger().hasHandlers():
    logging.config.dictConfig(_BASE_LOG_CONFIG)
