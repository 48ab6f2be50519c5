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

"""In-memory filesystem engine, its protocol and value types.

Example usage::

    from memfs.config import Configuration
    from memfs.filesystem import FileSystem, MemoryFileSystem

    def read_text(fs: FileSystem, path: str) -> str:
        with fs.open(path) as stream:
            return stream.read().decode("utf-8")

    fs = MemoryFileSystem.get(Configuration())
    MemoryFileSystem.create_file(fs, "/greeting.txt", "hello")
    assert read_text(fs, "/greeting.txt") == "hello"
"""

from __future__ import annotations

from ._memory import DEFAULT_SCHEME, MemoryFileSystem
from ._nodes import DirectoryData, FileData, Node, NodeData
from ._path import ROOT, FsPath, PathLike, as_path, make_absolute, normalize_path_string
from ._permissions import PERMISSION_DENIED, check_permission, permits
from ._protocol import FileSystem
from ._store import DEFAULT_STORE, Namespace, NamespaceStore
from ._streams import DEFAULT_CHUNK_SIZE, EOF, MemoryInputStream, MemoryOutputStream
from ._types import (
    DEFAULT_GROUP,
    DEFAULT_PERMISSION,
    DEFAULT_USER,
    DEFAULT_USER_GROUPS,
    FileStatus,
    FsAction,
    FsPermission,
)

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_GROUP",
    "DEFAULT_PERMISSION",
    "DEFAULT_SCHEME",
    "DEFAULT_STORE",
    "DEFAULT_USER",
    "DEFAULT_USER_GROUPS",
    "EOF",
    "PERMISSION_DENIED",
    "ROOT",
    "DirectoryData",
    "FileData",
    "FileStatus",
    "FileSystem",
    "FsAction",
    "FsPath",
    "FsPermission",
    "MemoryFileSystem",
    "MemoryInputStream",
    "MemoryOutputStream",
    "Namespace",
    "NamespaceStore",
    "Node",
    "NodeData",
    "PathLike",
    "as_path",
    "check_permission",
    "make_absolute",
    "normalize_path_string",
    "permits",
]
