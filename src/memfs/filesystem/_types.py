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

"""Permission and status types for the in-memory filesystem.

Types are organized into:

- **Permission types**: ``FsAction`` (one ``rwx`` triple as flags) and
  ``FsPermission`` (owner, group and other triples)
- **Result types**: ``FileStatus`` - returned by ``get_file_status`` and
  ``list_status``

Constants:

- ``DEFAULT_PERMISSION``: ``rwxrwxrwx`` (0777), applied when no permission
  is supplied
- ``DEFAULT_USER`` / ``DEFAULT_GROUP``: ``"root"``
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from typing import Final

from ..errors import InvalidArgumentError
from ._path import FsPath

__all__ = [
    "DEFAULT_GROUP",
    "DEFAULT_PERMISSION",
    "DEFAULT_USER",
    "DEFAULT_USER_GROUPS",
    "FileStatus",
    "FsAction",
    "FsPermission",
]

DEFAULT_USER: Final[str] = "root"
DEFAULT_GROUP: Final[str] = "root"
DEFAULT_USER_GROUPS: Final[frozenset[str]] = frozenset({DEFAULT_GROUP})


class FsAction(IntFlag):
    """Read/write/execute bits for one class of user."""

    NONE = 0
    EXECUTE = 1
    WRITE = 2
    WRITE_EXECUTE = 3
    READ = 4
    READ_EXECUTE = 5
    READ_WRITE = 6
    ALL = 7

    def implies(self, action: FsAction) -> bool:
        """True when every bit of ``action`` is also set here."""
        return (self & action) == action

    @property
    def symbol(self) -> str:
        """The ``ls``-style ``rwx`` rendering, e.g. ``"r-x"``."""
        return "".join(
            char if self & bit else "-"
            for char, bit in (("r", FsAction.READ), ("w", FsAction.WRITE), ("x", FsAction.EXECUTE))
        )


@dataclass(slots=True, frozen=True)
class FsPermission:
    """Owner/group/other permission triple.

    Attributes:
        user: Actions granted to the owning user.
        group: Actions granted to members of the owning group.
        other: Actions granted to everybody else.

    Example::

        perm = FsPermission.from_mode(0o640)
        str(perm)   # "rw-r-----"
        perm.mode   # 0o640
    """

    user: FsAction
    group: FsAction
    other: FsAction

    @classmethod
    def from_mode(cls, mode: int) -> FsPermission:
        """Build a permission from an octal mode such as ``0o755``."""
        if not 0 <= mode <= 0o777:
            msg = f"Permission mode out of range: {mode:#o}"
            raise InvalidArgumentError(msg)
        return cls(
            user=FsAction((mode >> 6) & 0o7),
            group=FsAction((mode >> 3) & 0o7),
            other=FsAction(mode & 0o7),
        )

    @property
    def mode(self) -> int:
        return (int(self.user) << 6) | (int(self.group) << 3) | int(self.other)

    def __str__(self) -> str:
        return f"{self.user.symbol}{self.group.symbol}{self.other.symbol}"


DEFAULT_PERMISSION: Final[FsPermission] = FsPermission.from_mode(0o777)


@dataclass(slots=True, frozen=True)
class FileStatus:
    """Metadata for a file or directory.

    Returned by ``get_file_status()`` and ``list_status()`` without touching
    the file contents or the open flag.

    Attributes:
        path: Absolute path of the entry.
        length: Content size in bytes (0 for directories).
        is_directory: True for directories, False for files.
        permission: Permission triple of the entry.
        owner: Owning user name.
        group: Owning group name.

    Example::

        for status in fs.list_status("/data"):
            if status.is_file:
                print(status.path.name, status.length)
    """

    path: FsPath
    length: int
    is_directory: bool
    permission: FsPermission
    owner: str
    group: str

    @property
    def is_file(self) -> bool:
        return not self.is_directory
