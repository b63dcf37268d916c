"""Dynamically scoped variables, for avoiding tramp data.

Tramp data is pass-through data not used by intermediary functions:

```
def f(a): g(a)
def g(a): h(a)
def h(a): i(a)
def i(a): print("Only i uses", a)

f(10)
```

A cleaner way of doing this may be:

```
from thds import tramp

A = tramp.declare("A", 0)

def f(): g()
def g(): h()
def h(): i(A())
def i(a): print("Only i uses", a)

tramp.tramp({A: 10}, f)
```

This is useful for deep call chains when objects can't store the value
for you. The intermediate functions are much cleaner.
"""

from . import composer, config, dynamic_var, log, registry, scope  # noqa: F401
from .composer import Overlay, OverlayBinding, overlay, tramp  # noqa: F401
from .dynamic_var import DynamicVariable, OverlayActiveError  # noqa: F401
from .registry import (  # noqa: F401
    UnknownVariableError,
    VariableNameCollisionError,
    VariableRegistry,
    declare,
    in_module,
    show_all,
    variable_by_name,
)
