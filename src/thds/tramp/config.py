"""Configuration for thds.tramp itself.

- Configuration is always accessible and configurable via normal Python code.
- Configuration is type-safe.
- All active configuration is 'registered' and therefore discoverable.
- Config can be temporarily overridden for the current thread.
- Config can be set via a known environment variable.

The basic usage is as follows:

```
from thds.tramp import config

LEVEL = config.item("thds.tramp.log.level", logging.INFO, parse=logging.getLevelName)

LEVEL.set_global(logging.DEBUG)
with LEVEL.set_local(logging.WARNING):
    assert LEVEL() == logging.WARNING
assert LEVEL() == logging.DEBUG
```

and as an environment variable:

export THDS_TRAMP_LOG_LEVEL=DEBUG
"""

import typing as ty
from os import getenv

from .dynamic_var import DynamicVariable

_NOT_CONFIGURED = object()


class UnconfiguredError(ValueError):
    pass


class ConfigNameCollisionError(KeyError):
    pass


def _sanitize_env(env_var_name: str) -> str:
    return env_var_name.replace("-", "_").replace(".", "_")


def _getenv(env_var_name: str) -> ty.Optional[str]:
    return (
        getenv(env_var_name)
        or getenv(_sanitize_env(env_var_name))
        or getenv(_sanitize_env(env_var_name).upper())
    )


T = ty.TypeVar("T")


class ConfigItem(ty.Generic[T]):
    """Should only ever be constructed at a module level."""

    def __init__(
        self,
        name: str,
        default: T = ty.cast(T, _NOT_CONFIGURED),
        *,
        parse: ty.Callable[[ty.Any], T] = lambda x: x,
        allow_env_var: bool = True,
    ):
        if name in _REGISTRY:
            raise ConfigNameCollisionError(f"Config item {name} has already been registered!")
        _REGISTRY[name] = self
        self.name = name
        self.parse = parse
        env_value = _getenv(name) if allow_env_var else None
        # env var is only applicable at initial creation.
        self.global_value = parse(env_value) if env_value else default
        self._local: DynamicVariable[T] = DynamicVariable(
            "config " + name, ty.cast(T, _NOT_CONFIGURED), capture="share"
        )

    def set_global(self, value: T):
        """Global to the current process."""
        self.global_value = self.parse(value)

    def set_local(self, value: T) -> ty.ContextManager[T]:
        """Local to the current thread, for the extent of the with block."""
        return self._local.set(self.parse(value))

    def __call__(self) -> T:
        local = self._local()
        if local is not _NOT_CONFIGURED:
            return local
        if self.global_value is _NOT_CONFIGURED:
            raise UnconfiguredError(f"Config item '{self.name}' has not been configured!")
        return self.global_value


def item(
    name: str,
    default: T = ty.cast(T, _NOT_CONFIGURED),
    *,
    parse: ty.Callable[[ty.Any], T] = lambda x: x,
    allow_env_var: bool = True,
) -> ConfigItem[T]:
    return ConfigItem(name, default, parse=parse, allow_env_var=allow_env_var)


_REGISTRY: ty.Dict[str, ConfigItem] = dict()


def config_by_name(name: str) -> ConfigItem:
    return _REGISTRY[name]


def set_global_defaults(config: ty.Dict[str, ty.Any]):
    """Any config-file parser can create a dictionary of only the
    items it managed to read, and then all of those can be set at once
    via this function. Nested dicts are joined with dots.
    """
    for name, value in config.items():
        if isinstance(value, dict):
            set_global_defaults({f"{name}.{key}": val for key, val in value.items()})
            continue
        try:
            _REGISTRY[name].set_global(value)
        except KeyError as kerr:
            raise KeyError(f"Config item {name} is not registered") from kerr


def show_all_config() -> ty.Dict[str, ty.Any]:
    return {k: v() for k, v in _REGISTRY.items()}
