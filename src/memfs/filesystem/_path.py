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

"""Path values and resolution helpers.

``FsPath`` is the only path representation the engine works with. Strings
handed to public operations are parsed into an ``FsPath`` first, so two
spellings of one location (``"/a//b/"``, ``"/a/./b"``, ``"memory:///a/b"``)
always end up under the same store key.

Functions:
    normalize_path_string: Collapse empty, "." and ".." segments
    as_path: Coerce a ``str | FsPath`` argument, rejecting ``None``
    make_absolute: Resolve a path against a working directory
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from ..errors import InvalidArgumentError

__all__ = [
    "ROOT",
    "FsPath",
    "PathLike",
    "as_path",
    "make_absolute",
    "normalize_path_string",
]

SEPARATOR: Final[str] = "/"

_SCHEME_PATTERN: Final[re.Pattern[str]] = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):(//[^/]*)?")


def normalize_path_string(path: str) -> str:
    """Normalize a slash-separated path, keeping it absolute or relative.

    This function:
    - Removes empty segments and "." entries
    - Resolves ".." against the preceding segment (never climbing above "/")
    - Keeps leading ".." segments of relative paths for later resolution

    Args:
        path: The path string to normalize.

    Returns:
        ``"/"`` for the root, ``"."`` for an empty relative path, otherwise
        the cleaned path.

    Examples:
        >>> normalize_path_string("/foo//bar/")
        '/foo/bar'
        >>> normalize_path_string("foo/../bar")
        'bar'
        >>> normalize_path_string("/..")
        '/'
    """
    absolute = path.startswith(SEPARATOR)
    result: list[str] = []
    for segment in path.split(SEPARATOR):
        if not segment or segment == ".":
            continue
        if segment == "..":
            if result and result[-1] != "..":
                _ = result.pop()
            elif not absolute:
                result.append(segment)
            continue
        result.append(segment)
    joined = SEPARATOR.join(result)
    if absolute:
        return SEPARATOR + joined
    return joined or "."


@dataclass(slots=True, frozen=True, init=False)
class FsPath:
    """An immutable, normalized filesystem path with an optional scheme.

    Attributes:
        path: Normalized path, absolute (``"/a/b"``) or relative (``"a/b"``).
        scheme: URI scheme such as ``"memory"``, or None when unqualified.

    Example::

        FsPath("memory:///data/in.txt").parent  # FsPath("memory:///data")
        FsPath("/data") / "in.txt"              # FsPath("/data/in.txt")
    """

    path: str
    scheme: str | None

    def __init__(self, value: str, scheme: str | None = None) -> None:
        if not isinstance(value, str):
            msg = f"path must be a string, got {type(value).__name__}"
            raise InvalidArgumentError(msg)
        match = _SCHEME_PATTERN.match(value)
        if match is not None:
            if scheme is None:
                scheme = match.group(1)
            value = value[match.end() :] or SEPARATOR
        object.__setattr__(self, "path", normalize_path_string(value))
        object.__setattr__(self, "scheme", scheme)

    @property
    def is_absolute(self) -> bool:
        return self.path.startswith(SEPARATOR)

    @property
    def is_root(self) -> bool:
        return self.path == SEPARATOR

    @property
    def key(self) -> str:
        """Canonical string used to address this location in the store."""
        return self.path

    @property
    def parts(self) -> tuple[str, ...]:
        """Path segments without separators; empty for the root."""
        return tuple(segment for segment in self.path.split(SEPARATOR) if segment and segment != ".")

    @property
    def name(self) -> str:
        """Final segment, or ``""`` for the root."""
        parts = self.parts
        return parts[-1] if parts else ""

    @property
    def parent(self) -> FsPath | None:
        """Containing directory, or None for the root and for ``"."``."""
        parts = self.parts
        if not parts:
            return None
        if self.is_absolute:
            return FsPath(SEPARATOR + SEPARATOR.join(parts[:-1]), self.scheme)
        return FsPath(SEPARATOR.join(parts[:-1]), self.scheme)

    def ancestors(self) -> tuple[FsPath, ...]:
        """Return every ancestor, nearest first, ending with the root."""
        chain: list[FsPath] = []
        current = self.parent
        while current is not None:
            chain.append(current)
            current = current.parent
        return tuple(chain)

    def __truediv__(self, other: str | FsPath) -> FsPath:
        child = other if isinstance(other, FsPath) else FsPath(other)
        if child.is_absolute:
            return child
        return FsPath(f"{self.path}{SEPARATOR}{child.path}", self.scheme)

    def __str__(self) -> str:
        if self.scheme is None:
            return self.path
        return f"{self.scheme}://{self.path}"

    def __repr__(self) -> str:
        return f"FsPath({str(self)!r})"


type PathLike = str | FsPath

ROOT: Final[FsPath] = FsPath(SEPARATOR)


def as_path(value: PathLike | None, *, name: str = "path") -> FsPath:
    """Coerce ``value`` to an ``FsPath``.

    Raises:
        InvalidArgumentError: If ``value`` is None.
    """
    if value is None:
        msg = f"{name} == None not allowed!"
        raise InvalidArgumentError(msg)
    if isinstance(value, FsPath):
        return value
    return FsPath(value)


def make_absolute(value: PathLike | None, working_directory: FsPath, *, name: str = "path") -> FsPath:
    """Resolve ``value`` against ``working_directory`` unless already absolute.

    Raises:
        InvalidArgumentError: If ``value`` is None.
    """
    path = as_path(value, name=name)
    if path.is_absolute:
        return path
    resolved = working_directory / FsPath(path.path)
    if path.scheme is not None:
        return FsPath(resolved.path, path.scheme)
    return resolved
