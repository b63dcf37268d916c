"""Allows avoiding tramp data: values threaded through many layers of
functions purely so that something near the bottom of the stack can
read them.

Instead, declare a DynamicVariable at module level, and use a with
statement to overlay its value for everything below the current place
on the stack. The previous value comes back when the with block exits,
however it exits.

Only affects your thread.

```
USER = DynamicVariable("user", "nobody")

def deep_down_the_stack():
    return f"hello {USER()}"

with USER.set("peter"):
    assert deep_down_the_stack() == "hello peter"
assert deep_down_the_stack() == "hello nobody"
```
"""

import contextlib as cl
import contextvars as cv
import copy
import typing as ty

T = ty.TypeVar("T")

Capture = ty.Union[ty.Literal["copy", "deepcopy", "share"], ty.Callable[[T], T]]

_CAPTURES: ty.Dict[str, ty.Callable[[ty.Any], ty.Any]] = {
    "copy": copy.copy,
    "deepcopy": copy.deepcopy,
    "share": lambda x: x,
}


class OverlayActiveError(RuntimeError):
    pass


def _capture_func(capture: Capture) -> ty.Callable[[T], T]:
    if callable(capture):
        return capture
    try:
        return _CAPTURES[capture]
    except KeyError:
        raise ValueError(
            f"'{capture}' is not a capture policy. Use one of {sorted(_CAPTURES)} or a callable."
        )


class DynamicVariable(ty.Generic[T]):
    """A named slot holding one value per thread, which may only be
    overlaid in a stack-frame limited manner.

    These should be created at a module/global level, just like the
    underlying ContextVar.

    The capture policy decides what gets remembered when an overlay is
    installed: 'copy' (the default) keeps a shallow copy of the
    previous value, so that in-place mutation of that object inside
    the overlay is undone when it exits. 'deepcopy' goes further.

    Two consequences of copying:

    - values that cannot be copied (locks, sockets, open files,
      generators) make every overlay of the variable fail with
      the TypeError raised by `copy.copy`, before anything is installed.
    - once an overlay exits, the variable holds the copy, not the
      original object, so other references to the original no longer
      track the variable.

    Use capture="share" to keep a plain reference instead, which is
    what you want for locks, clients, executors and the like.
    """

    def __init__(self, name: str, initial: T, *, capture: Capture = "copy"):
        self.name = name
        self.initial = initial
        self._capture = _capture_func(capture)
        self._contextvar = cv.ContextVar(name, default=initial)
        self._depth = cv.ContextVar(name + "+depth", default=0)

    def __call__(self) -> T:
        return self._contextvar.get()

    read = __call__

    def install(self, value: T) -> T:
        """Replaces the current value for this thread, returning an
        independently owned capture of the previous one.
        """
        old = self._capture(self._contextvar.get())
        self._contextvar.set(value)
        return old

    def restore(self, previous: T) -> None:
        self._contextvar.set(previous)

    @cl.contextmanager
    def set(self, value: T) -> ty.Iterator[T]:
        old = self.install(value)
        depth = self._depth.get()
        self._depth.set(depth + 1)
        try:
            yield value
        finally:
            self._depth.set(depth)
            self.restore(old)

    def set_root(self, value: T) -> None:
        """Permanently (for this thread) replace the base value.

        Not allowed underneath an active overlay of this variable,
        because that overlay would throw the new value away on exit.
        """
        if self._depth.get():
            raise OverlayActiveError(
                f"Cannot set the root value of '{self.name}' while it is overlaid"
                f" {self._depth.get()} level(s) deep."
            )
        self._contextvar.set(value)

    def depth(self) -> int:
        """0 means this thread sees the root value."""
        return self._depth.get()

    def __repr__(self) -> str:
        return f"DynamicVariable({self.name!r}, {self()!r})"


Y = ty.TypeVar("Y")
S = ty.TypeVar("S")
R = ty.TypeVar("R")


def confined(gen: ty.Generator[Y, S, R]) -> ty.Generator[Y, S, R]:
    """Drives gen so that every step of it runs in a private copy of
    the current context.

    A plain generator runs in its caller's context, so anything it
    overlays would be visible to the caller between steps, and would be
    unwound out of order with the caller's own overlays. Confined, its
    overlays are invisible outside of it. The copy is taken when the
    first step runs, so the generator sees the values its caller had
    overlaid at that point.
    """
    context = cv.copy_context()
    try:
        item = context.run(next, gen)
    except StopIteration as stop:
        return stop.value
    while True:
        try:
            sent = yield item
        except GeneratorExit:
            context.run(gen.close)
            raise
        except BaseException as exc:
            try:
                item = context.run(gen.throw, exc)
            except StopIteration as stop:
                return stop.value
        else:
            try:
                item = context.run(gen.send, sent)
            except StopIteration as stop:
                return stop.value
