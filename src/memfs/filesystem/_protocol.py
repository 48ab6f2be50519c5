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

"""Host filesystem protocol.

This module describes the operation set a hosting framework expects from a
filesystem: namespace manipulation, byte streams and metadata. Code written
against ``FileSystem`` works with any backend that provides these methods.

Implementations:

- ``memfs.filesystem.MemoryFileSystem``: Context-scoped in-memory storage

Paths are accepted either as ``FsPath`` values or as plain strings; relative
paths resolve against the working directory of the instance.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ._path import FsPath, PathLike
from ._streams import MemoryInputStream, MemoryOutputStream
from ._types import FileStatus, FsPermission

__all__ = ["FileSystem"]


@runtime_checkable
class FileSystem(Protocol):
    """Operation set of a hierarchical, permission-checked filesystem.

    Example::

        def read_text(fs: FileSystem, path: str) -> str:
            with fs.open(path) as stream:
                return stream.read().decode("utf-8")
    """

    # --- Identity ---

    @property
    def uri(self) -> str:
        """URI naming the filesystem, e.g. ``"memory:///"``."""
        ...

    @property
    def scheme(self) -> str:
        """Scheme accepted in qualified paths."""
        ...

    # --- Namespace Operations ---

    def mkdirs(self, path: PathLike, permission: FsPermission | None = None) -> bool:
        """Create ``path`` and any missing ancestors.

        Returns:
            True, including when ``path`` already exists.

        Raises:
            PermissionError: Write access to the nearest existing ancestor denied.
            NotADirectoryError: An ancestor of ``path`` is a file.
        """
        ...

    def create(
        self,
        path: PathLike,
        permission: FsPermission | None = None,
        *,
        overwrite: bool = True,
    ) -> MemoryOutputStream:
        """Create (or truncate) a file and return a stream writing to it.

        Raises:
            FileExistsError: ``path`` is a directory, or a file and not ``overwrite``.
            PermissionError: Write access to the nearest existing ancestor denied.
            OSError: The file is already open.
        """
        ...

    def open(self, path: PathLike) -> MemoryInputStream:
        """Open an existing file for reading.

        Raises:
            FileNotFoundError: ``path`` does not exist.
            IsADirectoryError: ``path`` is a directory.
            PermissionError: Read access denied.
            OSError: The file is already open.
        """
        ...

    def append(self, path: PathLike) -> MemoryOutputStream:
        """Open an existing file for appending."""
        ...

    def delete(self, path: PathLike, *, recursive: bool = False) -> bool:
        """Delete a file or directory.

        Raises:
            FileNotFoundError: ``path`` does not exist.
            OSError: The directory is not empty and ``recursive`` is False, or
                a file to delete is open.
            PermissionError: Write access denied.
        """
        ...

    def rename(self, src: PathLike, dst: PathLike) -> bool:
        """Move ``src`` to ``dst``, creating missing ancestors of ``dst``."""
        ...

    # --- Metadata ---

    def list_status(self, path: PathLike) -> list[FileStatus]:
        """Statuses of a directory's children, or of the file itself."""
        ...

    def get_file_status(self, path: PathLike) -> FileStatus:
        """Metadata for ``path``."""
        ...

    def exists(self, path: PathLike) -> bool: ...

    def is_file(self, path: PathLike) -> bool: ...

    def is_directory(self, path: PathLike) -> bool: ...

    def set_owner(self, path: PathLike, user: str | None, group: str | None) -> None:
        """Change the owning user and group of ``path``."""
        ...

    def set_permission(self, path: PathLike, permission: FsPermission | None) -> None:
        """Change the permission triple of ``path``."""
        ...

    # --- Working Directory ---

    def set_working_directory(self, path: PathLike) -> None: ...

    def get_working_directory(self) -> FsPath: ...
