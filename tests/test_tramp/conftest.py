import typing as ty

import pytest

from thds.tramp import DynamicVariable, VariableRegistry


@pytest.fixture
def registry() -> VariableRegistry:
    return VariableRegistry("test")


@pytest.fixture
def foo_bar(registry: VariableRegistry) -> ty.Tuple[DynamicVariable[int], DynamicVariable[str]]:
    return registry.declare("FOO", 0), registry.declare("BAR", "")
