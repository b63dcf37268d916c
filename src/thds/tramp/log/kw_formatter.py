"""The keyword-formatting log formatter. Installed by basic_config.py
when nothing else has configured the root logger.
"""

import logging
import typing as ty

from .. import config
from .kw_logger import th_keyvals_from_record

MAX_MODULE_NAME_LEN = config.item("thds.tramp.log.max_module_name_len", 40, parse=int)

_RESET_FG = "\033[39m"
_RESET_BG = "\033[49m"
_BRIGHT = "\033[1m"
_NORMAL = "\033[22m"
_COLOR_LEVEL_MAP = {
    "low": "\033[34m{}" + _RESET_FG,
    "info": "\033[32m{}" + _RESET_FG,
    "warning": "\033[33m" + _BRIGHT + "{}" + _NORMAL + _RESET_FG,
    "error": "\033[48;5;196m" + _BRIGHT + "{}" + _NORMAL + _RESET_BG,
    "critical": "\033[45m" + _BRIGHT + "{}" + _NORMAL + _RESET_BG,
}


def log_level_color(levelno: int, base_levelname: str) -> str:
    if levelno < logging.INFO:
        return _COLOR_LEVEL_MAP["low"].format(base_levelname.lower())
    elif levelno < logging.WARNING:
        return _COLOR_LEVEL_MAP["info"].format(base_levelname.lower())
    elif levelno < logging.ERROR:
        return _COLOR_LEVEL_MAP["warning"].format(base_levelname)
    elif levelno < logging.CRITICAL:
        return _COLOR_LEVEL_MAP["error"].format(base_levelname)
    return _COLOR_LEVEL_MAP["critical"].format(base_levelname)


class ThdsCompactFormatter(logging.Formatter):
    @staticmethod
    def format_module_name(name: str) -> str:
        max_len = MAX_MODULE_NAME_LEN()
        compressed_name = (
            name
            if len(name) <= max_len
            else name[: max_len // 2 - 2] + "..." + name[-max_len // 2 + 1 :]
        )
        assert len(compressed_name) <= max_len
        return compressed_name.ljust(max_len)

    def _format_exception_and_trace(self, record: logging.LogRecord) -> str:
        formatted = ""
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            formatted += "\n" + record.exc_text
        if record.stack_info:
            formatted += "\n" + self.formatStack(record.stack_info)
        return formatted

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        levelname = log_level_color(record.levelno, f"{record.levelname:7}")
        th_ctx: ty.Any = th_keyvals_from_record(record) or "()"
        short_name = self.format_module_name(record.name)
        return (
            f"{self.formatTime(record)} {levelname}  {short_name} {th_ctx} {record.message}"
            + self._format_exception_and_trace(record)
        )
