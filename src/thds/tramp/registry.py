"""Declaration of DynamicVariables.

Every variable is declared once, with a unique name and an initial
value, before anything can overlay it. Declaring through a registry
makes variables discoverable and lets call sites refer to them by
name:

```
from thds import tramp

_declare = tramp.in_module(__name__)
USER = _declare("user", "nobody")

tramp.registry.default.tramp({"mymodule.user": "peter"}, handle_request)
```

Tests can make their own VariableRegistry and leave the default one
alone.
"""

import threading
import typing as ty
from collections.abc import Mapping

from . import config
from .composer import Bindings, Overlay, overlay, tramp
from .dynamic_var import Capture, DynamicVariable

T = ty.TypeVar("T")
R = ty.TypeVar("R")
NamedBindings = ty.Union[Bindings, ty.Mapping[str, ty.Any]]

CAPTURE = config.item("thds.tramp.capture", "copy")
# the capture policy for variables declared without one.


class VariableNameCollisionError(KeyError):
    pass


class UnknownVariableError(KeyError):
    pass


class VariableRegistry:
    def __init__(self, name: str = ""):
        self.name = name
        self._variables: ty.Dict[str, DynamicVariable] = dict()
        self._lock = threading.Lock()

    def declare(
        self, name: str, initial: T, *, capture: ty.Optional[Capture] = None
    ) -> DynamicVariable[T]:
        with self._lock:
            if name in self._variables:
                raise VariableNameCollisionError(f"Variable {name} has already been declared!")
            variable = DynamicVariable(name, initial, capture=capture or CAPTURE())
            self._variables[name] = variable
            return variable

    def __getitem__(self, name: str) -> DynamicVariable:
        try:
            return self._variables[name]
        except KeyError:
            raise UnknownVariableError(f"No variable named {name} in registry '{self.name}'")

    def __contains__(self, name: object) -> bool:
        return name in self._variables

    def __iter__(self) -> ty.Iterator[DynamicVariable]:
        return iter(list(self._variables.values()))

    def __len__(self) -> int:
        return len(self._variables)

    def snapshot(self) -> ty.Dict[str, ty.Any]:
        """Current values, as seen by this thread, in declaration order."""
        return {name: variable() for name, variable in self._variables.items()}

    def _resolve(self, bindings: NamedBindings) -> ty.List[ty.Tuple[DynamicVariable, ty.Any]]:
        pairs = bindings.items() if isinstance(bindings, Mapping) else bindings
        return [(self[key] if isinstance(key, str) else key, value) for key, value in pairs]

    def overlay(self, bindings: NamedBindings) -> Overlay:
        """Like composer.overlay, but variables may also be named."""
        return overlay(self._resolve(bindings))

    def tramp(
        self,
        bindings: NamedBindings,
        block: ty.Callable[..., R],
        *args: ty.Any,
        **kwargs: ty.Any,
    ) -> R:
        return tramp(self._resolve(bindings), block, *args, **kwargs)


default = VariableRegistry("default")


def declare(name: str, initial: T, *, capture: ty.Optional[Capture] = None) -> DynamicVariable[T]:
    return default.declare(name, initial, capture=capture)


class DeclareP(ty.Protocol):
    def __call__(
        self, name: str, initial: T, *, capture: ty.Optional[Capture] = None
    ) -> DynamicVariable[T]:
        ...


def in_module(module_name: str) -> DeclareP:
    """`in_module(__name__)` is the preferred way of declaring
    variables in the default registry, since it avoids name collisions
    between modules.
    """

    def _module(name: str, initial: T, *, capture: ty.Optional[Capture] = None) -> DynamicVariable[T]:
        return default.declare(f"{module_name}.{name}", initial, capture=capture)

    return ty.cast(DeclareP, _module)


def variable_by_name(name: str) -> DynamicVariable:
    """This is a dynamic interface - in general, prefer using the DynamicVariable object directly."""
    return default[name]


def show_all() -> ty.Dict[str, ty.Any]:
    return default.snapshot()
