"""Overlays (and any other ContextManager) covering the rest of a
function body, without invasive and git-diff-increasing "with"
statements.

This is essentially a decorator-driven `defer` in Go or `scope` in D,
except that the scope is not necessarily the nearest function call -
whatever you enter is exited when the nearest `bound` function on the
stack returns (or raises).

```
@scope.bound
def handle(request):
    scope.overlay({USER: request.user, TRACE_ID: request.trace_id})
    # ...everything called from here on sees the overlaid values
    return respond()
    # and they are restored right after the return.
```
"""

import contextlib
import inspect
import typing as ty
from functools import wraps
from uuid import uuid4

from .composer import Bindings
from .composer import overlay as _overlay
from .dynamic_var import DynamicVariable, confined
from .log import getLogger

F = ty.TypeVar("F", bound=ty.Callable)
M = ty.TypeVar("M")

_KEYED_SCOPES: ty.Dict[str, DynamicVariable[ty.Optional[contextlib.ExitStack]]] = dict()


class NoScopeFound(Exception):
    pass


def _bound(key: str, func: F) -> F:
    """Establishes a boundary at which everything entered into the
    scope with this key will be exited.
    """
    boundary = _KEYED_SCOPES[key]

    if inspect.isgeneratorfunction(func):

        def __scope_boundary_generator(*args, **kwargs):
            with contextlib.ExitStack() as exit_stack, boundary.set(exit_stack):
                return (yield from func(*args, **kwargs))

        @wraps(func)
        def __scope_boundary_generator_wrap(*args, **kwargs):
            # confined, so that nothing entered into the scope leaks out between steps
            return (yield from confined(__scope_boundary_generator(*args, **kwargs)))

        return ty.cast(F, __scope_boundary_generator_wrap)

    @wraps(func)
    def __scope_boundary_wrap(*args, **kwargs):
        with contextlib.ExitStack() as exit_stack, boundary.set(exit_stack):
            return func(*args, **kwargs)

    return ty.cast(F, __scope_boundary_wrap)


def _exit_stack(key: str) -> contextlib.ExitStack:
    exit_stack = _KEYED_SCOPES[key]()
    if exit_stack is None:
        raise NoScopeFound(f"No scope with the key {key} was found - did you call .bound()?")
    return exit_stack


class Scope:
    """Most of the time the default Scope, created below, is all you need.

    Make your own if you want orthogonal scopes that can be entered
    further down the stack and exited at a precise point further up.
    Keys must be unique; you do not need to provide one.
    """

    def __init__(self, key: str = ""):
        self.key = key or uuid4().hex
        if self.key in _KEYED_SCOPES:
            getLogger(__name__).warning(
                f"Scope with key '{self.key}' already exists! If this is not importlib.reload, you have a problem."
            )
        else:
            _KEYED_SCOPES[self.key] = DynamicVariable("scope " + self.key, None, capture="share")

    def bound(self, func: F) -> F:
        return _bound(self.key, func)

    def enter(self, context: ty.ContextManager[M]) -> M:
        """Enter the provided Context with a future exit at the nearest boundary for this Scope."""
        return _exit_stack(self.key).enter_context(context)

    def defer(self, func: ty.Callable[..., ty.Any], *args: ty.Any, **kwargs: ty.Any) -> None:
        _exit_stack(self.key).callback(func, *args, **kwargs)

    def overlay(self, bindings: Bindings) -> None:
        """Overlay until the nearest boundary exits."""
        self.enter(_overlay(bindings))


default = Scope("__default_scope_stack")
bound = default.bound
enter = default.enter
defer = default.defer
overlay = default.overlay
