"""Overlay several DynamicVariables at once.

```
with overlay({FOO: 1, BAR: "A"}):
    assert FOO() == 1 and BAR() == "A"
```

is exactly

```
with FOO.set(1):
    with BAR.set("A"):
        ...
```

FOO is installed first and restored last. Every restoration that has
been registered fires no matter how the block (or a later install)
exits.
"""

import contextlib
import inspect
import logging
import sys
import typing as ty
from collections.abc import Mapping
from functools import wraps

from .dynamic_var import DynamicVariable, confined
from .log import getLogger

if sys.version_info >= (3, 10):
    from typing import ParamSpec
else:
    from typing_extensions import ParamSpec

P = ParamSpec("P")
R = ty.TypeVar("R")
F = ty.TypeVar("F", bound=ty.Callable)

logger = getLogger(__name__)


class OverlayBinding(ty.NamedTuple):
    variable: DynamicVariable
    value: ty.Any


Bindings = ty.Union[
    ty.Mapping[DynamicVariable, ty.Any],
    ty.Iterable[ty.Tuple[DynamicVariable, ty.Any]],
]


def bindings_of(bindings: Bindings) -> ty.Tuple[OverlayBinding, ...]:
    """Normalizes a mapping or an iterable of pairs, in order.

    Nothing is installed if any key isn't a DynamicVariable.
    """
    pairs = bindings.items() if isinstance(bindings, Mapping) else bindings
    normalized = tuple(OverlayBinding(*pair) for pair in pairs)
    for binding in normalized:
        if not isinstance(binding.variable, DynamicVariable):
            raise TypeError(f"Can only overlay a DynamicVariable, not {binding.variable!r}")
    return normalized


class Overlay:
    """A context manager for the bindings, which may also decorate a
    function. The bindings are read once, up front, so one Overlay can
    decorate a function that gets called many times, recursively, or
    from several threads.

    As a context manager, use each Overlay in one thread only.
    Decorating a generator function covers every step of the
    generator, confined so that the bindings are invisible to whoever
    is iterating it.
    """

    def __init__(self, bindings: ty.Tuple[OverlayBinding, ...]):
        self.bindings = bindings
        self._restorations: ty.List[contextlib.ExitStack] = list()

    def __enter__(self) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Overlaying", variables=",".join(b.variable.name for b in self.bindings))
        with contextlib.ExitStack() as restorations:
            for variable, value in self.bindings:
                restorations.enter_context(variable.set(value))
            self._restorations.append(restorations.pop_all())

    def __exit__(self, *exc_info) -> bool:
        return self._restorations.pop().__exit__(*exc_info)

    def __call__(self, func: F) -> F:
        bindings = self.bindings

        if inspect.isgeneratorfunction(func):

            def __overlaid_generator(*args, **kwargs):
                with Overlay(bindings):
                    return (yield from func(*args, **kwargs))

            @wraps(func)
            def __overlaid_generator_wrap(*args, **kwargs):
                return (yield from confined(__overlaid_generator(*args, **kwargs)))

            return ty.cast(F, __overlaid_generator_wrap)

        @wraps(func)
        def __overlaid_wrap(*args, **kwargs):
            with Overlay(bindings):
                return func(*args, **kwargs)

        return ty.cast(F, __overlaid_wrap)


def overlay(bindings: Bindings) -> Overlay:
    return Overlay(bindings_of(bindings))


def tramp(bindings: Bindings, block: ty.Callable[P, R], *args: P.args, **kwargs: P.kwargs) -> R:
    """Call block with the bindings in place, and return what it returns."""
    with overlay(bindings):
        return block(*args, **kwargs)
