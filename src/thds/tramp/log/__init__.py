"""Keyword-argument logging for thds.tramp.

You can add keyword arguments to your log statements and they will
get formatted nicely in the logging message. You can also add context
(via keyword arguments) to logs at any time by entering a
logger_context; that context accompanies all logging statements
further down the stack, but not once it has been exited.

```
logger = getLogger("FooF")
logger.info("testing 2", two=3, eight="nine")
# 2022-02-18 10:01:16,826 info     FooF (two=3,eight=nine) testing 2
with logger_context(App='bat', override='me'):
    logger.info("testing 4", override='you')
# 2022-02-18 10:01:16,828 info     FooF (App=bat,override=you) testing 4
```
"""

from . import basic_config  # noqa: F401
from .kw_formatter import ThdsCompactFormatter  # noqa: F401
from .kw_logger import KwLogger, getLogger, logger_context  # noqa: F401
