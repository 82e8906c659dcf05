"""
Configuration sources for the enablement gate.

The gate asks one question: "is ``namespace.group.name`` switched on?".
Two sources answer it out of the box:

- ``MappingConfig`` walks a nested mapping (usually loaded from a TOML or
  YAML file) along the dotted path.
- ``EnvConfig`` reads ``TASKSPINE_CFG__<NAMESPACE>__<GROUP>__<NAME>``.

Both raise ``MissingConfigError`` for an undefined path, which the gate
treats as "enabled", and ``InvalidConfigError`` for a value that is not a
boolean, which the gate does not.

Examples:
    >>> config = MappingConfig({"taskspine": {"reports": {"daily": False}}})
    >>> config.get_required_bool("taskspine.reports.daily")
    False

    A TOML file with the same content::

        [taskspine.reports]
        daily = false
        weekly = true

Tags:
    configuration, enablement, toml, yaml, environment, taskspine
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from taskspine.core.errors import InvalidConfigError, MissingConfigError

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


def _coerce_bool(path: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise InvalidConfigError(f"config value at {path} is not a boolean: {value!r}").with_context(path=path)


class MappingConfig:
    """Nested-mapping config source addressed by dotted paths."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: Mapping[str, Any] = data or {}

    @classmethod
    def from_file(cls, path: str | Path) -> MappingConfig:
        """Load a ``.toml``, ``.yaml`` or ``.yml`` file.

        Raises:
            InvalidConfigError: If the suffix is unknown or the document is
                not a mapping at the top level.
        """
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix == ".toml":
            with path.open("rb") as fh:
                data = tomllib.load(fh)
        elif suffix in (".yaml", ".yml"):
            with path.open(encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        else:
            raise InvalidConfigError(f"unsupported config file type: {path.name}").with_context(path=str(path))

        if not isinstance(data, Mapping):
            raise InvalidConfigError(f"config file {path.name} must contain a mapping").with_context(path=str(path))
        return cls(data)

    def get(self, path: str) -> Any:
        """Return the raw value at *path* or raise ``MissingConfigError``."""
        node: Any = self._data
        for part in path.split("."):
            if not isinstance(node, Mapping) or part not in node:
                raise MissingConfigError(path)
            node = node[part]
        return node

    def get_required_bool(self, path: str) -> bool:
        return _coerce_bool(path, self.get(path))

    def __repr__(self) -> str:
        return f"MappingConfig(keys={sorted(self._data)})"


class EnvConfig:
    """
    Environment-variable config source.

    ``taskspine.reports.daily`` maps to ``TASKSPINE_CFG__TASKSPINE__REPORTS__DAILY``.
    Dashes and dots inside a segment become underscores.
    """

    def __init__(self, prefix: str = "TASKSPINE_CFG", environ: Mapping[str, str] | None = None) -> None:
        self.prefix = prefix
        self._environ = environ if environ is not None else os.environ

    def variable_for(self, path: str) -> str:
        parts = [part.replace("-", "_").upper() for part in path.split(".")]
        return "__".join([self.prefix, *parts])

    def get_required_bool(self, path: str) -> bool:
        variable = self.variable_for(path)
        if variable not in self._environ:
            raise MissingConfigError(path).with_context(variable=variable)
        return _coerce_bool(path, self._environ[variable])
