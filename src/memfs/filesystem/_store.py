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

"""Namespace store: every tree the engine knows about, grouped by context.

The store maps ``context id -> filesystem URI -> Namespace``. A context is
one isolated world: filesystem instances configured with the same context id
(and URI) operate on the same ``Namespace``, while different contexts never
see each other.

A ``Namespace`` is an arena of nodes keyed by integer id. Directories link
to their children by id and every node links back to its parent, so paths
are resolved by walking from the root and a rename is a single re-link.

Thread safety:
    One ``RLock`` per store guards every read and mutation of the arenas.
    This keeps interleaved use of several filesystem instances consistent,
    but the engine is not designed for concurrent mutation of one context
    from several threads.
"""

from __future__ import annotations

from itertools import count
from threading import RLock

from ..errors import IllegalStateError, NotADirectoryPathError, NotFoundError
from ..logging import StructuredLogger, get_logger
from ._nodes import DirectoryData, FileData, Node
from ._path import FsPath
from ._types import DEFAULT_PERMISSION

__all__ = [
    "DEFAULT_STORE",
    "Namespace",
    "NamespaceStore",
]

logger: StructuredLogger = get_logger(__name__, context={"component": "namespace_store"})


class Namespace:
    """The tree of one ``(context, filesystem URI)`` pair.

    The root directory (``"/"``, mode 0777, owned by ``root:root``) exists
    from construction and can never be removed.
    """

    __slots__ = ("_ids", "_lock", "_nodes", "_root_id", "context", "fs_uri")

    def __init__(self, context: str, fs_uri: str, lock: RLock) -> None:
        self.context = context
        self.fs_uri = fs_uri
        self._lock = lock
        self._ids = count(start=0)
        root = Node(
            node_id=next(self._ids),
            name="",
            parent_id=None,
            data=DirectoryData(),
            permission=DEFAULT_PERMISSION,
        )
        self._nodes: dict[int, Node] = {root.node_id: root}
        self._root_id = root.node_id

    @property
    def root(self) -> Node:
        return self._nodes[self._root_id]

    def __len__(self) -> int:
        return len(self._nodes)

    def new_node_id(self) -> int:
        with self._lock:
            return next(self._ids)

    def node(self, node_id: int) -> Node | None:
        with self._lock:
            return self._nodes.get(node_id)

    def get(self, path: FsPath) -> Node | None:
        """Walk ``path`` from the root; None if any segment is missing."""
        with self._lock:
            current = self.root
            for part in path.parts:
                match current.data:
                    case DirectoryData(children=children):
                        child_id = children.get(part)
                    case FileData():
                        return None
                if child_id is None:
                    return None
                current = self._nodes[child_id]
            return current

    def contains(self, path: FsPath) -> bool:
        return self.get(path) is not None

    def path_of(self, node: Node) -> FsPath:
        """Rebuild the absolute path of ``node`` from its parent links."""
        with self._lock:
            names: list[str] = []
            current: Node | None = node
            while current is not None and current.parent_id is not None:
                names.append(current.name)
                current = self._nodes.get(current.parent_id)
            return FsPath("/" + "/".join(reversed(names)))

    def children(self, node: Node) -> list[Node]:
        """Immediate children of a directory, directories first."""
        with self._lock:
            match node.data:
                case DirectoryData(children=children):
                    entries = [self._nodes[child_id] for child_id in children.values()]
                case FileData():
                    return []
            return [n for n in entries if n.is_directory] + [n for n in entries if not n.is_directory]

    def subdirectories(self, node: Node) -> list[Node]:
        return [child for child in self.children(node) if child.is_directory]

    def files(self, node: Node) -> list[Node]:
        return [child for child in self.children(node) if not child.is_directory]

    def put(self, path: FsPath, node: Node) -> None:
        """Link ``node`` at ``path``, replacing whatever was there.

        Raises:
            NotFoundError: If the parent directory does not exist.
            NotADirectoryPathError: If the parent is a file.
        """
        with self._lock:
            parent = self._parent_directory(path)
            children = self._children_of(parent)
            previous = children.get(path.name)
            if previous is not None:
                self._discard(previous)
            node.name = path.name
            node.parent_id = parent.node_id
            self._nodes[node.node_id] = node
            children[path.name] = node.node_id

    def remove(self, path: FsPath) -> Node | None:
        """Unlink the node at ``path`` and drop its subtree from the arena.

        Removing the root empties it instead. Returns the removed node, or
        None when nothing lives at ``path``.
        """
        with self._lock:
            node = self.get(path)
            if node is None:
                return None
            if node.node_id == self._root_id:
                children = self._children_of(node)
                for child_id in list(children.values()):
                    self._discard(child_id)
                children.clear()
                return node
            self._unlink(node)
            self._discard(node.node_id)
            return node

    def move(self, node: Node, destination: FsPath) -> None:
        """Re-link ``node`` under ``destination``'s parent with its new name.

        Descendants keep their ids and follow automatically.

        Raises:
            NotFoundError: If the destination parent does not exist.
            NotADirectoryPathError: If the destination parent is a file,
                or lies inside ``node`` itself.
        """
        with self._lock:
            parent = self._parent_directory(destination)
            if self._is_within(parent, node):
                msg = f"Cannot move '{self.path_of(node)}' beneath itself: {destination}"
                raise NotADirectoryPathError(msg)
            self._unlink(node)
            node.name = destination.name
            node.parent_id = parent.node_id
            self._children_of(parent)[destination.name] = node.node_id

    def commit(self, node_id: int, content: bytes) -> bool:
        """Store ``content`` on a file and clear its open flag.

        Returns False when the node is no longer a file in this arena and
        the content was dropped.
        """
        with self._lock:
            node = self._nodes.get(node_id)
            match node.data if node is not None else None:
                case FileData() as data:
                    data.content = content
                    data.release()
                    return True
                case _:
                    return False

    def release(self, node_id: int) -> None:
        """Clear the open flag of a file, if it still exists."""
        with self._lock:
            node = self._nodes.get(node_id)
            if node is not None and isinstance(node.data, FileData):
                node.data.release()

    def walk(self, node: Node | None = None) -> list[Node]:
        """Return ``node`` (default: root) and all its descendants, depth first."""
        with self._lock:
            visited: list[Node] = []
            stack = [node if node is not None else self.root]
            while stack:
                current = stack.pop()
                visited.append(current)
                stack.extend(reversed(self.children(current)))
            return visited

    def _parent_directory(self, path: FsPath) -> Node:
        parent_path = path.parent
        if parent_path is None:
            msg = f"'{path}' has no parent directory!"
            raise NotADirectoryPathError(msg)
        parent = self.get(parent_path)
        if parent is None:
            msg = f"'{parent_path}' not found!"
            raise NotFoundError(msg)
        if not parent.is_directory:
            msg = f"'{parent_path}' is not a directory!"
            raise NotADirectoryPathError(msg)
        return parent

    def _children_of(self, directory: Node) -> dict[str, int]:
        match directory.data:
            case DirectoryData(children=children):
                return children
            case FileData():
                msg = f"'{self.path_of(directory)}' is not a directory!"
                raise NotADirectoryPathError(msg)

    def _unlink(self, node: Node) -> None:
        if node.parent_id is None:
            return
        parent = self._nodes.get(node.parent_id)
        if parent is not None:
            children = self._children_of(parent)
            if children.get(node.name) == node.node_id:
                del children[node.name]

    def _discard(self, node_id: int) -> None:
        stack = [node_id]
        while stack:
            node = self._nodes.pop(stack.pop(), None)
            if node is not None and isinstance(node.data, DirectoryData):
                stack.extend(node.data.children.values())

    def _is_within(self, candidate: Node, ancestor: Node) -> bool:
        current: Node | None = candidate
        while current is not None:
            if current.node_id == ancestor.node_id:
                return True
            current = self._nodes.get(current.parent_id) if current.parent_id is not None else None
        return False


class NamespaceStore:
    """Caller-owned registry of contexts and their namespaces.

    Most callers share :data:`DEFAULT_STORE`; tests that want complete
    isolation construct their own store and pass it to ``MemoryFileSystem``.

    Example::

        store = NamespaceStore()
        ns = store.namespace("ctx-1", "memory:///")
        store.contains("ctx-1", "memory:///", FsPath("/"))  # True
        store.reset("ctx-1")
    """

    __slots__ = ("_context_ids", "_contexts", "_lock")

    def __init__(self) -> None:
        self._lock = RLock()
        self._contexts: dict[str, dict[str, Namespace]] = {}
        self._context_ids = count(start=0)

    @property
    def lock(self) -> RLock:
        """The single lock serializing all mutation of this store."""
        return self._lock

    def new_context_id(self) -> str:
        """Allocate a context id that is not currently registered."""
        with self._lock:
            while True:
                candidate = str(next(self._context_ids))
                if candidate not in self._contexts:
                    return candidate

    def register(self, context: str) -> None:
        """Ensure ``context`` exists, without creating any namespace yet."""
        with self._lock:
            if context not in self._contexts:
                self._contexts[context] = {}
                logger.info(
                    "Registered filesystem context.",
                    event="memfs.context.registered",
                    context={"fs_context": context},
                )

    def is_registered(self, context: str) -> bool:
        with self._lock:
            return context in self._contexts

    def contexts(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._contexts)

    def namespace(self, context: str | None, fs_uri: str) -> Namespace:
        """Return the namespace for ``(context, fs_uri)``, creating it lazily.

        Raises:
            IllegalStateError: If ``context`` is None.
        """
        if context is None:
            msg = (
                "The filesystem has not been properly configured! "
                "The configuration has no in-memory file system context."
            )
            raise IllegalStateError(msg)
        with self._lock:
            namespaces = self._contexts.setdefault(context, {})
            namespace = namespaces.get(fs_uri)
            if namespace is None:
                namespace = Namespace(context, fs_uri, self._lock)
                namespaces[fs_uri] = namespace
            return namespace

    def get(self, context: str | None, fs_uri: str, path: FsPath) -> Node | None:
        return self.namespace(context, fs_uri).get(path)

    def put(self, context: str | None, fs_uri: str, path: FsPath, node: Node) -> None:
        self.namespace(context, fs_uri).put(path, node)

    def contains(self, context: str | None, fs_uri: str, path: FsPath) -> bool:
        return self.namespace(context, fs_uri).contains(path)

    def remove(self, context: str | None, fs_uri: str, path: FsPath) -> Node | None:
        return self.namespace(context, fs_uri).remove(path)

    def reset(self, context: str | None) -> None:
        """Drop every namespace of ``context``; unknown contexts are a no-op.

        Streams still open on the dropped trees keep working, but whatever
        they commit is unreachable.

        Raises:
            IllegalStateError: If ``context`` is None.
        """
        if context is None:
            raise IllegalStateError("The configuration has no in-memory file system context.")
        with self._lock:
            namespaces = self._contexts.pop(context, None)
            if namespaces is None:
                return
            logger.info(
                "Reset filesystem context.",
                event="memfs.context.reset",
                context={
                    "fs_context": context,
                    "namespaces": sorted(namespaces),
                    "nodes": sum(len(ns) for ns in namespaces.values()),
                },
            )


DEFAULT_STORE: NamespaceStore = NamespaceStore()
