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

"""In-memory filesystem engine.

This module provides ``MemoryFileSystem``, an implementation of the
``FileSystem`` protocol whose tree lives in a ``NamespaceStore``. Instances
configured with the same context share one tree; each instance keeps its own
acting user, groups and working directory.

Example usage::

    from memfs.config import Configuration
    from memfs.filesystem import MemoryFileSystem

    conf = Configuration()
    fs = MemoryFileSystem.get(conf)

    with fs.create("/data/in.txt") as out:
        out.write(b"hello")

    with fs.open("/data/in.txt") as stream:
        assert stream.read() == b"hello"

    MemoryFileSystem.reset_state(conf)
"""

from __future__ import annotations

from functools import partial
from typing import Final

from ..config import (
    CONFIG_IMPL_CLASS_KEY,
    CONTEXT_KEY,
    DISABLE_CACHE_KEY,
    FS_DEFAULT_NAME_KEY,
    Configuration,
)
from ..errors import (
    AlreadyExistsError,
    DirectoryNotEmptyError,
    IllegalStateError,
    InvalidArgumentError,
    NotADirectoryPathError,
    NotAFileError,
    NotFoundError,
    ResourceBusyError,
)
from ..logging import StructuredLogger, get_logger
from ._nodes import DirectoryData, FileData, Node
from ._path import ROOT, FsPath, PathLike, make_absolute
from ._permissions import check_permission
from ._protocol import FileSystem
from ._store import DEFAULT_STORE, Namespace, NamespaceStore
from ._streams import MemoryInputStream, MemoryOutputStream
from ._types import (
    DEFAULT_USER,
    DEFAULT_USER_GROUPS,
    FileStatus,
    FsAction,
    FsPermission,
)

__all__ = ["DEFAULT_SCHEME", "MemoryFileSystem"]

DEFAULT_SCHEME: Final[str] = "memory"

logger: StructuredLogger = get_logger(__name__, context={"component": "memory_filesystem"})


class MemoryFileSystem:
    """Permission-checked filesystem backed by a shared in-memory tree.

    The tree is looked up on every operation from the store, keyed by the
    context id found in the configuration and by this instance's URI, so a
    ``reset_state`` takes effect for every instance of the context at once.

    Args:
        conf: Configuration carrying the context id under ``CONTEXT_KEY``.
            Operations raise ``IllegalStateError`` while it has none.
        scheme: Scheme of this filesystem's URI (``"<scheme>:///"``).
        store: Store holding the trees; defaults to ``DEFAULT_STORE``.
    """

    __slots__ = ("_conf", "_groups", "_scheme", "_store", "_uri", "_user", "_working_directory")

    def __init__(
        self,
        conf: Configuration | None = None,
        *,
        scheme: str = DEFAULT_SCHEME,
        store: NamespaceStore | None = None,
    ) -> None:
        if not scheme:
            raise InvalidArgumentError("scheme must not be empty.")
        self._conf = conf
        self._scheme = scheme
        self._uri = f"{scheme}:///"
        self._store = store if store is not None else DEFAULT_STORE
        self._user = DEFAULT_USER
        self._groups: frozenset[str] = DEFAULT_USER_GROUPS
        self._working_directory = ROOT

    def __repr__(self) -> str:
        return f"MemoryFileSystem(uri={self._uri!r}, context={self.context!r}, user={self._user!r})"

    # --- Identity ---

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def scheme(self) -> str:
        return self._scheme

    @property
    def conf(self) -> Configuration | None:
        return self._conf

    @property
    def store(self) -> NamespaceStore:
        return self._store

    @property
    def context(self) -> str | None:
        """Context id read from the configuration, if any."""
        if self._conf is None:
            return None
        return self._conf.get(CONTEXT_KEY)

    def get_user(self) -> str:
        return self._user

    def get_user_groups(self) -> frozenset[str]:
        return self._groups

    def set_user(self, user: str | None, *groups: str | None) -> None:
        """Act as ``user``; replace the group set only when groups are given.

        Raises:
            InvalidArgumentError: If ``user`` or any group is None, or a
                group is empty.
        """
        if user is None:
            raise InvalidArgumentError("user == None not allowed!")
        validated: set[str] = set()
        for group in groups:
            if group is None:
                raise InvalidArgumentError("groups[i] == None not allowed!")
            if not group:
                raise InvalidArgumentError("groups[i].length() == 0 not allowed!")
            validated.add(group)
        self._user = user
        if validated:
            self._groups = frozenset(validated)

    # --- Working Directory ---

    def get_working_directory(self) -> FsPath:
        return self._working_directory

    def set_working_directory(self, path: PathLike | None) -> None:
        """Resolve ``path`` and make it the base for relative paths.

        Raises:
            InvalidArgumentError: If the path is missing or is a file.
        """
        target = self._resolve(path)
        with self._store.lock:
            node = self._namespace().get(target)
        if node is None:
            msg = f"'{target}' not found!"
            raise InvalidArgumentError(msg)
        if not node.is_directory:
            msg = f"'{target}' is not a directory!"
            raise InvalidArgumentError(msg)
        self._working_directory = target

    # --- Namespace Operations ---

    def mkdirs(self, path: PathLike | None, permission: FsPermission | None = None) -> bool:
        """Create ``path`` and its missing ancestors, owned by the acting user.

        An existing entry of either kind counts as success.
        """
        target = self._resolve(path)
        with self._store.lock:
            namespace = self._namespace()
            if namespace.contains(target):
                return True
            self._check_ancestor_write(namespace, target)
            created = self._materialize_directories(namespace, target, permission)
            logger.debug(
                "Created directories.",
                event="memfs.mkdirs",
                context=self._log_context(target, created=[str(p) for p in created]),
            )
        return True

    def create(
        self,
        path: PathLike | None,
        permission: FsPermission | None = None,
        *,
        overwrite: bool = True,
    ) -> MemoryOutputStream:
        """Create (or truncate) a file and return a stream writing to it.

        Missing parent directories are created with ``permission``. The
        returned stream holds the file open until it is closed.

        Raises:
            InvalidArgumentError: If the path names another scheme.
            AlreadyExistsError: If the path is a directory, or an existing
                file and ``overwrite`` is False.
            ResourceBusyError: If an existing file to overwrite is open.
            PermissionDeniedError: Without write access to the nearest
                existing ancestor directory.
        """
        target = self._resolve(path, check_scheme=True)
        with self._store.lock:
            namespace = self._namespace()
            self._check_ancestor_write(namespace, target)
            existing = namespace.get(target)
            match existing.data if existing is not None else None:
                case DirectoryData():
                    msg = f"Can't overwrite a directory with a file: {target}"
                    raise AlreadyExistsError(msg)
                case FileData() if not overwrite:
                    msg = f"File already exists: {target}"
                    raise AlreadyExistsError(msg)
                case FileData(open=True):
                    msg = f"File already open: {target}"
                    raise ResourceBusyError(msg)
                case _:
                    pass

            parent = target.parent
            if parent is not None and not namespace.contains(parent):
                _ = self._materialize_directories(namespace, parent, permission)

            data = FileData()
            node = Node(
                node_id=namespace.new_node_id(),
                name=target.name,
                parent_id=None,
                data=data,
                permission=permission,
                owner=self._user,
            )
            namespace.put(target, node)
            data.acquire(target)
            logger.debug(
                "Created file.",
                event="memfs.create",
                context=self._log_context(target, overwrite=overwrite, replaced=existing is not None),
            )
            return MemoryOutputStream.create(
                target,
                on_commit=partial(self._commit, namespace, node.node_id, target),
            )

    def open(self, path: PathLike | None) -> MemoryInputStream:
        """Open a file for reading a snapshot of its current content.

        Raises:
            NotFoundError: If the path does not exist.
            NotAFileError: If the path is a directory.
            PermissionDeniedError: Without read access.
            ResourceBusyError: If the file is already open.
        """
        target = self._resolve(path, check_scheme=True)
        with self._store.lock:
            namespace = self._namespace()
            node, data = self._require_file(namespace, target)
            check_permission(node, FsAction.READ, user=self._user, groups=self._groups)
            data.acquire(target)
            logger.debug(
                "Opened file for reading.",
                event="memfs.open",
                context=self._log_context(target, length=len(data.content)),
            )
            return MemoryInputStream.from_bytes(
                target,
                data.content,
                on_close=partial(self._release, namespace, node.node_id, target),
            )

    def append(self, path: PathLike | None) -> MemoryOutputStream:
        """Open an existing file for appending.

        The stream starts with the current content; closing it replaces the
        file's content with everything written.
        """
        target = self._resolve(path)
        with self._store.lock:
            namespace = self._namespace()
            node, data = self._require_file(namespace, target)
            check_permission(node, FsAction.WRITE, user=self._user, groups=self._groups)
            data.acquire(target)
            logger.debug(
                "Opened file for appending.",
                event="memfs.append",
                context=self._log_context(target, length=len(data.content)),
            )
            return MemoryOutputStream.create(
                target,
                on_commit=partial(self._commit, namespace, node.node_id, target),
                existing_content=data.content,
            )

    def delete(self, path: PathLike | None, *, recursive: bool = False) -> bool:
        """Delete a file or directory.

        A non-recursive delete refuses directories that contain
        sub-directories; directories holding only files are removed with
        them. A recursive delete stops at the first open file it meets and
        leaves whatever it has not reached yet in place.

        Deleting ``/`` removes its content but keeps the root itself.

        Raises:
            NotFoundError: If the path does not exist.
            PermissionDeniedError: Without write access to a directory on
                the way.
            DirectoryNotEmptyError: Non-recursive delete of a directory that
                has sub-directories.
            ResourceBusyError: If a file to delete is open.
        """
        target = self._resolve(path)
        with self._store.lock:
            namespace = self._namespace()
            node = self._require_node(namespace, target)
            self._delete_node(namespace, node, target, recursive=recursive)
            logger.debug(
                "Deleted path.",
                event="memfs.delete",
                context=self._log_context(target, recursive=recursive),
            )
        return True

    def rename(self, src: PathLike | None, dst: PathLike | None) -> bool:
        """Move ``src`` (and its subtree) to ``dst``.

        Missing ancestors of ``dst`` are created first.

        Raises:
            InvalidArgumentError: If either argument is None.
            AlreadyExistsError: If ``dst`` exists.
            NotFoundError: If ``src`` does not exist.
            NotADirectoryPathError: If ``dst`` lies inside ``src``.
            PermissionDeniedError: Without write access to ``src`` or to the
                nearest existing ancestor of ``dst``.
        """
        source = self._resolve(src, name="src")
        destination = self._resolve(dst, name="dst")
        with self._store.lock:
            namespace = self._namespace()
            if namespace.contains(destination):
                msg = f"Rename failed, destination already exists: {destination}"
                raise AlreadyExistsError(msg)
            node = self._require_node(namespace, source)
            check_permission(node, FsAction.WRITE, user=self._user, groups=self._groups)
            self._check_ancestor_write(namespace, destination)
            if any(ancestor.key == source.key for ancestor in destination.ancestors()):
                msg = f"Cannot move '{source}' beneath itself: {destination}"
                raise NotADirectoryPathError(msg)

            parent = destination.parent
            if parent is not None and not namespace.contains(parent):
                _ = self._materialize_directories(namespace, parent, None)
            namespace.move(node, destination)
            logger.debug(
                "Renamed path.",
                event="memfs.rename",
                context=self._log_context(source, destination=str(destination)),
            )
        return True

    # --- Metadata ---

    def list_status(self, path: PathLike | None) -> list[FileStatus]:
        """List a directory's children (directories first), or a file itself."""
        target = self._resolve(path)
        with self._store.lock:
            namespace = self._namespace()
            node = self._require_node(namespace, target)
            check_permission(node, FsAction.READ, user=self._user, groups=self._groups)
            match node.data:
                case FileData():
                    return [self._status(namespace, node)]
                case DirectoryData():
                    return [self._status(namespace, child) for child in namespace.children(node)]

    def get_file_status(self, path: PathLike | None) -> FileStatus:
        """Metadata for ``path``; no permission is required.

        Raises:
            NotFoundError: If the path does not exist.
        """
        target = self._resolve(path)
        with self._store.lock:
            namespace = self._namespace()
            return self._status(namespace, self._require_node(namespace, target))

    def exists(self, path: PathLike | None) -> bool:
        target = self._resolve(path)
        with self._store.lock:
            return self._namespace().contains(target)

    def is_file(self, path: PathLike | None) -> bool:
        target = self._resolve(path)
        with self._store.lock:
            node = self._namespace().get(target)
        return node is not None and not node.is_directory

    def is_directory(self, path: PathLike | None) -> bool:
        target = self._resolve(path)
        with self._store.lock:
            node = self._namespace().get(target)
        return node is not None and node.is_directory

    def set_owner(self, path: PathLike | None, user: str | None, group: str | None) -> None:
        """Change owner and group; a None value leaves that field unchanged.

        Any acting user may change ownership.
        """
        target = self._resolve(path)
        with self._store.lock:
            node = self._require_node(self._namespace(), target)
            if user is not None:
                node.owner = user
            if group is not None:
                node.group = group
            logger.debug(
                "Changed ownership.",
                event="memfs.set_owner",
                context=self._log_context(target, owner=node.owner, group=node.group),
            )

    def set_permission(self, path: PathLike | None, permission: FsPermission | None) -> None:
        """Replace the permission of ``path``; None restores the default."""
        target = self._resolve(path)
        with self._store.lock:
            node = self._require_node(self._namespace(), target)
            node.set_permission(permission)
            logger.debug(
                "Changed permission.",
                event="memfs.set_permission",
                context=self._log_context(target, permission=str(node.permission)),
            )

    # --- Context Management ---

    @staticmethod
    def configure(conf: Configuration | None, *, store: NamespaceStore | None = None) -> str:
        """Prepare ``conf`` for the in-memory filesystem and return its context id.

        A configuration without a context gets a fresh one, together with
        the default-filesystem keys. A configuration that already carries a
        context keeps it.
        """
        if conf is None:
            raise InvalidArgumentError("conf == None not allowed!")
        store = store if store is not None else DEFAULT_STORE
        with store.lock:
            context = conf.get(CONTEXT_KEY)
            if context is None:
                context = store.new_context_id()
                conf.set(FS_DEFAULT_NAME_KEY, f"{DEFAULT_SCHEME}:///")
                conf.set(CONFIG_IMPL_CLASS_KEY, f"{MemoryFileSystem.__module__}.{MemoryFileSystem.__qualname__}")
                conf.set(DISABLE_CACHE_KEY, "true")
                conf.set(CONTEXT_KEY, context)
                logger.info(
                    "Configured in-memory filesystem context.",
                    event="memfs.context.configured",
                    context={"fs_context": context},
                )
            store.register(context)
        return context

    @classmethod
    def get(cls, conf: Configuration | None, *, store: NamespaceStore | None = None) -> MemoryFileSystem:
        """Configure ``conf`` and return an instance bound to it."""
        _ = cls.configure(conf, store=store)
        return cls(conf, store=store)

    @staticmethod
    def reset_state(conf: Configuration | None, *, store: NamespaceStore | None = None) -> None:
        """Discard every tree of the context stored in ``conf``.

        A context the store does not hold (for example one already reset)
        is left alone.

        Raises:
            InvalidArgumentError: If ``conf`` is None.
            IllegalStateError: If ``conf`` has no context.
        """
        if conf is None:
            raise InvalidArgumentError("conf == None not allowed!")
        context = conf.get(CONTEXT_KEY)
        if context is None:
            raise IllegalStateError("The configuration has no in-memory file system context.")
        (store if store is not None else DEFAULT_STORE).reset(context)

    @staticmethod
    def copy(
        src_fs: FileSystem,
        src_path: PathLike | None,
        dst_fs: FileSystem,
        dst_parent: PathLike | None,
    ) -> FsPath:
        """Copy a file or directory tree between two filesystems.

        The copy lands at ``dst_parent / name(src)`` when ``dst_parent`` is
        an existing directory, otherwise at ``dst_parent`` itself. Both sides
        go through public operations, so the acting users' permissions apply.
        Each file is read in full before its copy is created; a failure stops
        the copy and leaves the entries already copied in place.

        Returns:
            The destination path of the copy.

        Raises:
            AlreadyExistsError: If the destination already exists.
            InvalidArgumentError: If the destination lies inside the source
                and both filesystems share one tree (same store, context and URI).
        """
        source = src_fs.get_file_status(src_path)
        destination = make_absolute(dst_parent, dst_fs.get_working_directory(), name="dst")
        if dst_fs.is_directory(destination):
            destination = destination / source.path.name
        if dst_fs.exists(destination):
            msg = f"Target {destination} already exists"
            raise AlreadyExistsError(msg)
        if _shares_tree(src_fs, dst_fs) and (
            destination.key == source.path.key
            or any(ancestor.key == source.path.key for ancestor in destination.ancestors())
        ):
            msg = f"Cannot copy {source.path} to its subdirectory {destination}"
            raise InvalidArgumentError(msg)
        _copy_tree(src_fs, source, dst_fs, destination)
        logger.debug(
            "Copied path.",
            event="memfs.copy",
            context={"source": str(source.path), "destination": str(destination)},
        )
        return destination

    @staticmethod
    def create_file(fs: FileSystem | None, path: PathLike | None, contents: str | bytes | None) -> None:
        """Create (or overwrite) ``path`` holding ``contents``.

        Text is stored UTF-8 encoded.
        """
        if fs is None:
            raise InvalidArgumentError("fs == None not allowed!")
        if contents is None:
            raise InvalidArgumentError("contents == None not allowed!")
        payload = contents.encode("utf-8") if isinstance(contents, str) else contents
        with fs.create(path) as stream:
            _ = stream.write(payload)

    # --- Internals ---

    def _namespace(self) -> Namespace:
        if self._conf is None:
            raise IllegalStateError("The file system configuration is not set!")
        return self._store.namespace(self.context, self._uri)

    def _resolve(self, path: PathLike | None, *, name: str = "path", check_scheme: bool = False) -> FsPath:
        resolved = make_absolute(path, self._working_directory, name=name)
        if check_scheme and resolved.scheme is not None and resolved.scheme != self._scheme:
            msg = f"Wrong file system: {resolved.scheme}, expected: {self._scheme}"
            raise InvalidArgumentError(msg)
        return resolved

    def _require_node(self, namespace: Namespace, path: FsPath) -> Node:
        node = namespace.get(path)
        if node is None:
            msg = f"'{path}' not found!"
            raise NotFoundError(msg)
        return node

    def _require_file(self, namespace: Namespace, path: FsPath) -> tuple[Node, FileData]:
        node = self._require_node(namespace, path)
        match node.data:
            case FileData() as data:
                return node, data
            case DirectoryData():
                msg = f"'{path}' is not a file!"
                raise NotAFileError(msg)

    def _check_ancestor_write(self, namespace: Namespace, path: FsPath) -> None:
        """Require WRITE on the nearest existing ancestor directory of ``path``."""
        for ancestor in path.ancestors():
            node = namespace.get(ancestor)
            if node is None:
                continue
            if not node.is_directory:
                msg = f"'{ancestor}' is not a directory!"
                raise NotADirectoryPathError(msg)
            check_permission(node, FsAction.WRITE, user=self._user, groups=self._groups)
            return

    def _materialize_directories(
        self,
        namespace: Namespace,
        path: FsPath,
        permission: FsPermission | None,
    ) -> list[FsPath]:
        missing = [path]
        for ancestor in path.ancestors():
            if namespace.contains(ancestor):
                break
            missing.append(ancestor)
        missing.reverse()
        for directory in missing:
            namespace.put(
                directory,
                Node(
                    node_id=namespace.new_node_id(),
                    name=directory.name,
                    parent_id=None,
                    data=DirectoryData(),
                    permission=permission,
                    owner=self._user,
                ),
            )
        return missing

    def _delete_node(self, namespace: Namespace, node: Node, path: FsPath, *, recursive: bool) -> None:
        check_permission(node, FsAction.WRITE, user=self._user, groups=self._groups)
        match node.data:
            case DirectoryData() if recursive:
                for child in namespace.subdirectories(node):
                    self._delete_node(namespace, child, namespace.path_of(child), recursive=True)
                for child in namespace.files(node):
                    child_path = namespace.path_of(child)
                    _raise_if_open(child, child_path)
                    _ = namespace.remove(child_path)
            case DirectoryData():
                if namespace.subdirectories(node):
                    msg = f"Directory '{path}' is not empty!"
                    raise DirectoryNotEmptyError(msg)
            case FileData():
                _raise_if_open(node, path)
        _ = namespace.remove(path)

    def _status(self, namespace: Namespace, node: Node) -> FileStatus:
        return FileStatus(
            path=namespace.path_of(node),
            length=node.length,
            is_directory=node.is_directory,
            permission=node.permission,
            owner=node.owner,
            group=node.group,
        )

    def _commit(self, namespace: Namespace, node_id: int, path: FsPath, content: bytes) -> None:
        with self._store.lock:
            committed = namespace.commit(node_id, content)
        if committed:
            logger.debug(
                "Committed file content.",
                event="memfs.stream.committed",
                context=self._log_context(path, length=len(content)),
            )
        else:
            logger.warning(
                "Discarded content written to a file that no longer exists.",
                event="memfs.stream.orphaned",
                context=self._log_context(path, length=len(content)),
            )

    def _release(self, namespace: Namespace, node_id: int, path: FsPath) -> None:
        with self._store.lock:
            namespace.release(node_id)
        logger.debug(
            "Closed input stream.",
            event="memfs.stream.released",
            context=self._log_context(path),
        )

    def _log_context(self, path: FsPath, **extra: object) -> dict[str, object]:
        return {
            "fs_context": self.context,
            "fs_uri": self._uri,
            "user": self._user,
            "path": str(path),
            **extra,
        }


def _raise_if_open(node: Node, path: FsPath) -> None:
    match node.data:
        case FileData(open=True):
            msg = f"Delete failed, resource is in use: {path}"
            raise ResourceBusyError(msg)
        case _:
            pass


def _copy_tree(src_fs: FileSystem, source: FileStatus, dst_fs: FileSystem, destination: FsPath) -> None:
    if source.is_directory:
        _ = dst_fs.mkdirs(destination)
        for child in src_fs.list_status(source.path):
            _copy_tree(src_fs, child, dst_fs, destination / child.path.name)
        return
    with src_fs.open(source.path) as reader:
        content = reader.read()
    with dst_fs.create(destination, overwrite=False) as writer:
        _ = writer.write(content)


def _shares_tree(first: FileSystem, second: FileSystem) -> bool:
    match first, second:
        case MemoryFileSystem(), MemoryFileSystem():
            return (first.store, first.context, first.uri) == (second.store, second.context, second.uri)
        case _:
            return first is second
