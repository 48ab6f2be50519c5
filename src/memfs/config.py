# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Host configuration consumed by the in-memory filesystem.

The engine treats configuration as an opaque string mapping owned by the
host. It writes a handful of keys when a configuration is first prepared
(see ``MemoryFileSystem.configure``) and afterwards only reads the context
id back. The remaining keys exist for host-side dispatch.

``load_configuration`` builds a ``Configuration`` from a TOML or YAML file
(or an in-memory mapping). Nested tables flatten into dotted keys, so::

    [memory.fs]
    context = "shared"

yields ``{"memory.fs.context": "shared"}``. The ``MEMFS_CONTEXT`` environment
variable, when set, pins the context id.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterator, Mapping, MutableMapping
from pathlib import Path
from typing import Any, Final, cast

import yaml

from .errors import ConfigurationError

__all__ = [
    "CONFIG_IMPL_CLASS_KEY",
    "CONTEXT_KEY",
    "DISABLE_CACHE_KEY",
    "ENV_CONTEXT",
    "FS_DEFAULT_NAME_KEY",
    "Configuration",
    "load_configuration",
]

FS_DEFAULT_NAME_KEY: Final[str] = "fs.default.name"
CONTEXT_KEY: Final[str] = "memory.fs.context"
CONFIG_IMPL_CLASS_KEY: Final[str] = "fs.memory.impl"
DISABLE_CACHE_KEY: Final[str] = "fs.memory.impl.disable.cache"

ENV_CONTEXT: Final[str] = "MEMFS_CONTEXT"


class Configuration(Mapping[str, str]):
    """Mutable ``str -> str`` settings shared between filesystem instances.

    Filesystem instances built from the same configuration share the context
    id stored under :data:`CONTEXT_KEY`, and therefore share one tree.

    Example::

        conf = Configuration()
        fs = MemoryFileSystem.get(conf)
        peer = MemoryFileSystem(conf)  # sees everything ``fs`` writes
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(values) if values is not None else {}

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Configuration({self._values!r})"

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        self._values[key] = value

    def unset(self, key: str) -> None:
        """Remove ``key`` if present."""
        _ = self._values.pop(key, None)

    def copy(self) -> Configuration:
        """Return an independent copy, including any context id."""
        return Configuration(self._values)


def load_configuration(
    source: Path | str | Mapping[str, Any],
    *,
    env: Mapping[str, str] | None = None,
) -> Configuration:
    """Load settings from a TOML/YAML file or a mapping.

    Parameters
    ----------
    source:
        Path to a ``.toml``, ``.yaml`` or ``.yml`` file. Tests may pass an
        in-memory mapping to skip filesystem I/O.
    env:
        Optional environment mapping. Defaults to :data:`os.environ`.

    Returns
    -------
    Configuration
        Flattened settings with environment overrides applied.
    """

    env_map = os.environ if env is None else env
    if isinstance(source, Mapping):
        raw = cast(Mapping[str, Any], source)
    else:
        raw = _load_file(Path(source))

    values: dict[str, str] = {}
    _flatten(raw, prefix="", into=values)
    context = env_map.get(ENV_CONTEXT)
    if context:
        values[CONTEXT_KEY] = context
    return Configuration(values)


def _load_file(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise FileNotFoundError(msg)

    suffix = path.suffix.lower()
    data: object
    if suffix == ".toml":
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    elif suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    else:
        msg = f"Unsupported configuration format: {path.suffix}"
        raise ConfigurationError(msg)

    if not isinstance(data, MutableMapping):
        msg = "Configuration file must contain a mapping at the root."
        raise ConfigurationError(msg)
    return cast(Mapping[str, Any], data)


def _flatten(raw: Mapping[str, Any], *, prefix: str, into: dict[str, str]) -> None:
    for key, value in raw.items():
        if not isinstance(key, str):
            msg = f"Configuration keys must be strings (got {key!r})."
            raise ConfigurationError(msg)
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            _flatten(cast(Mapping[str, Any], value), prefix=f"{dotted}.", into=into)
        elif isinstance(value, bool):
            into[dotted] = "true" if value else "false"
        elif value is None:
            continue
        elif isinstance(value, str | int | float):
            into[dotted] = str(value)
        else:
            msg = f"Unsupported value for {dotted!r}: {type(value).__name__}"
            raise ConfigurationError(msg)
