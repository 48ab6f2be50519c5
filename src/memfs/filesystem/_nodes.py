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

"""Node model for the in-memory tree.

A node is one entry of a namespace: the shared metadata (name, parent link,
permission, owner, group) plus a payload that is exactly one of
``DirectoryData`` or ``FileData``. Callers branch on the payload with
``match node.data`` rather than on the node's class.

Nodes do not store their absolute path. A node knows its ``name`` and the id
of its parent; ``Namespace.path_of`` rebuilds the path on demand, so moving a
directory never has to touch its descendants.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import ResourceBusyError
from ._types import DEFAULT_GROUP, DEFAULT_PERMISSION, DEFAULT_USER, FsPermission

__all__ = [
    "DirectoryData",
    "FileData",
    "Node",
    "NodeData",
]


def _empty_children() -> dict[str, int]:
    return {}


@dataclass(slots=True)
class DirectoryData:
    """Directory payload: child node ids keyed by entry name."""

    children: dict[str, int] = field(default_factory=_empty_children)


@dataclass(slots=True)
class FileData:
    """File payload: the committed bytes and the single-stream open flag."""

    content: bytes = b""
    open: bool = False

    def acquire(self, path: object) -> None:
        """Mark the file open, failing if a stream already holds it.

        Raises:
            ResourceBusyError: If the open flag is already set.
        """
        if self.open:
            msg = f"File already open: {path}"
            raise ResourceBusyError(msg)
        self.open = True

    def release(self) -> None:
        self.open = False


type NodeData = DirectoryData | FileData


@dataclass(slots=True)
class Node:
    """One file or directory in a namespace arena.

    ``permission`` is never None: passing None at construction (or to
    ``set_permission``) falls back to :data:`DEFAULT_PERMISSION`.
    """

    node_id: int
    name: str
    parent_id: int | None
    data: NodeData
    permission: FsPermission = DEFAULT_PERMISSION
    owner: str = DEFAULT_USER
    group: str = DEFAULT_GROUP

    def __post_init__(self) -> None:
        self.set_permission(self.permission)

    def set_permission(self, permission: FsPermission | None) -> None:
        self.permission = permission if permission is not None else DEFAULT_PERMISSION

    @property
    def is_directory(self) -> bool:
        return isinstance(self.data, DirectoryData)

    @property
    def length(self) -> int:
        match self.data:
            case FileData(content=content):
                return len(content)
            case DirectoryData():
                return 0
