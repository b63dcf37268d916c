"""A logger which allows passing of arbitrary keyword arguments to the end of a logger call,
such that that context gets embedded directly into the output.
"""

import contextlib
import logging
from copy import copy
from typing import Any, Dict, MutableMapping, Optional

from .. import config
from ..dynamic_var import DynamicVariable

LOGLEVEL = config.item("thds.tramp.log.level", logging.INFO, parse=logging.getLevelName)
_LOGGING_KWARGS = ("exc_info", "stack_info", "stacklevel", "extra")
# anything passed with these names goes straight to the logging call;
# everything else is keyword context.

TH_REC_CTXT = "th_context"
# names the dict on each LogRecord holding the keyword context.


class _THContext(Dict[str, Any]):
    def __str__(self):
        return "(" + ",".join(map("%s=%s".__mod__, self.items())) + ")" if self else "()"


_LOG_CONTEXT: DynamicVariable[_THContext] = DynamicVariable(
    "TH_LOG_CONTEXT", _THContext(), capture="share"
)


@contextlib.contextmanager
def logger_context(**kwargs):
    """Put some key-value pairs into the keyword-based logger context."""
    with _LOG_CONTEXT.set(_THContext(_LOG_CONTEXT(), **kwargs)):
        yield


def _embed_th_context_in_extra_kw(kwargs: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    th_context = _LOG_CONTEXT()
    th_kwargs = [k for k in kwargs if k not in _LOGGING_KWARGS]
    if th_kwargs:
        th_context = copy(th_context)
        th_context.update((k, kwargs.pop(k)) for k in th_kwargs)
    extra = kwargs["extra"] = kwargs.get("extra", dict())
    extra[TH_REC_CTXT] = th_context
    return kwargs


class KwLogger(logging.LoggerAdapter):
    """Allows logging of extra keyword arguments straight through without
    needing an "extras" dictionary.
    """

    def process(self, msg, kwargs):
        return msg, _embed_th_context_in_extra_kw(kwargs)


def th_keyvals_from_record(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    return getattr(record, TH_REC_CTXT, None)


def getLogger(name: Optional[str] = None) -> logging.LoggerAdapter:
    """Pass key/value context at the end of your logging statements, e.g.
    `logger.info("my message", key1=value1, key2=value2)`.
    """
    logger = logging.getLogger(name)
    if logger.level == logging.NOTSET:
        logger.setLevel(LOGLEVEL())
    return KwLogger(logger, dict())

