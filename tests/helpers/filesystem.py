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

"""Generic validation suite for FileSystem protocol implementations.

This module provides a reusable test suite that validates any implementation
of the FileSystem protocol. Tests are designed to be subclassed with a
concrete filesystem factory.

Example usage::

    from tests.helpers.filesystem import FileSystemValidationSuite

    class TestMyFileSystem(FileSystemValidationSuite):
        @pytest.fixture
        def fs(self) -> MyFileSystem:
            return MyFileSystem()

All tests in the suite will run against the filesystem returned by the
``fs`` fixture. Implementations must provide this fixture, acting as a
user allowed to write to the root directory.
"""

from __future__ import annotations

from abc import abstractmethod

import pytest

from memfs.filesystem import FileSystem, FsPath, FsPermission


def write_bytes(fs: FileSystem, path: str, data: bytes) -> None:
    with fs.create(path) as stream:
        _ = stream.write(data)


def read_bytes(fs: FileSystem, path: str) -> bytes:
    with fs.open(path) as stream:
        return stream.read()


class FileSystemValidationSuite:
    """Abstract test suite for FileSystem protocol compliance.

    Subclasses must implement the ``fs`` fixture to provide a filesystem
    instance to test. The filesystem should be empty at the start of each test.

    This suite validates:
    - Namespace operations (mkdirs, create, open, append, delete, rename)
    - Metadata (exists, list_status, get_file_status, set_owner)
    - Error handling (FileNotFoundError, FileExistsError, IsADirectoryError)

    Permission and context semantics specific to one backend should remain
    in that backend's own test modules.
    """

    @pytest.fixture
    @abstractmethod
    def fs(self) -> FileSystem:
        """Provide a fresh filesystem instance for testing."""
        ...

    # -------------------------------------------------------------------------
    # Protocol
    # -------------------------------------------------------------------------

    def test_satisfies_protocol(self, fs: FileSystem) -> None:
        """The implementation should be recognised as a FileSystem."""
        assert isinstance(fs, FileSystem)

    def test_root_exists_as_directory(self, fs: FileSystem) -> None:
        """The root directory is always present."""
        assert fs.exists("/") is True
        assert fs.is_directory("/") is True
        assert fs.is_file("/") is False

    # -------------------------------------------------------------------------
    # Create / Open
    # -------------------------------------------------------------------------

    def test_create_then_open_round_trips(self, fs: FileSystem) -> None:
        """Bytes written before close are exactly what a reader sees."""
        write_bytes(fs, "/data/in.bin", b"\x00\x01hello\xff")
        assert read_bytes(fs, "/data/in.bin") == b"\x00\x01hello\xff"

    def test_create_makes_missing_parents(self, fs: FileSystem) -> None:
        """create() should materialize every missing ancestor."""
        write_bytes(fs, "/x/y/z/file.txt", b"")
        assert fs.is_directory("/x")
        assert fs.is_directory("/x/y")
        assert fs.is_directory("/x/y/z")
        assert fs.is_file("/x/y/z/file.txt")

    def test_create_overwrite_replaces_content(self, fs: FileSystem) -> None:
        """A second create() replaces the previous content."""
        write_bytes(fs, "/file.txt", b"first version")
        write_bytes(fs, "/file.txt", b"second")
        assert read_bytes(fs, "/file.txt") == b"second"

    def test_create_without_overwrite_rejects_existing_file(self, fs: FileSystem) -> None:
        """create(overwrite=False) must not clobber an existing file."""
        write_bytes(fs, "/file.txt", b"keep")
        with pytest.raises(FileExistsError):
            _ = fs.create("/file.txt", overwrite=False)
        assert read_bytes(fs, "/file.txt") == b"keep"

    def test_create_on_directory_fails(self, fs: FileSystem) -> None:
        """A directory can never be replaced by a file."""
        _ = fs.mkdirs("/dir")
        with pytest.raises(FileExistsError):
            _ = fs.create("/dir")
        assert fs.is_directory("/dir")

    def test_open_missing_file_fails(self, fs: FileSystem) -> None:
        """open() on a missing path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            _ = fs.open("/missing.txt")

    def test_open_directory_fails(self, fs: FileSystem) -> None:
        """open() on a directory raises IsADirectoryError."""
        _ = fs.mkdirs("/dir")
        with pytest.raises(IsADirectoryError):
            _ = fs.open("/dir")

    def test_relative_paths_resolve_against_working_directory(self, fs: FileSystem) -> None:
        """Relative paths start at the working directory."""
        _ = fs.mkdirs("/home/user")
        fs.set_working_directory("/home/user")
        write_bytes(fs, "notes.txt", b"abc")
        assert fs.is_file("/home/user/notes.txt")
        assert fs.get_working_directory() == FsPath("/home/user")

    # -------------------------------------------------------------------------
    # Append
    # -------------------------------------------------------------------------

    def test_append_extends_content(self, fs: FileSystem) -> None:
        """append() keeps existing bytes and adds new ones."""
        write_bytes(fs, "/log.txt", b"one\n")
        with fs.append("/log.txt") as stream:
            _ = stream.write(b"two\n")
        assert read_bytes(fs, "/log.txt") == b"one\ntwo\n"

    def test_append_missing_file_fails(self, fs: FileSystem) -> None:
        """append() requires an existing file."""
        with pytest.raises(FileNotFoundError):
            _ = fs.append("/missing.txt")

    # -------------------------------------------------------------------------
    # Mkdirs
    # -------------------------------------------------------------------------

    def test_mkdirs_is_idempotent(self, fs: FileSystem) -> None:
        """Calling mkdirs() twice never fails and changes nothing the second time."""
        assert fs.mkdirs("/a/b/c") is True
        before = fs.list_status("/a/b")
        assert fs.mkdirs("/a/b/c") is True
        assert fs.list_status("/a/b") == before

    def test_mkdirs_on_existing_file_succeeds(self, fs: FileSystem) -> None:
        """mkdirs() treats any existing entry as success."""
        write_bytes(fs, "/file.txt", b"")
        assert fs.mkdirs("/file.txt") is True
        assert fs.is_file("/file.txt")

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def test_delete_file(self, fs: FileSystem) -> None:
        """delete() removes a closed file and unlinks it from its parent."""
        write_bytes(fs, "/dir/file.txt", b"x")
        assert fs.delete("/dir/file.txt") is True
        assert fs.exists("/dir/file.txt") is False
        assert fs.list_status("/dir") == []

    def test_delete_recursive_removes_descendants(self, fs: FileSystem) -> None:
        """A recursive delete removes the whole subtree."""
        write_bytes(fs, "/src/java/Main.java", b"class Main {}")
        write_bytes(fs, "/src/README", b"readme")
        assert fs.delete("/src", recursive=True) is True
        assert fs.exists("/src") is False
        assert fs.exists("/src/java") is False
        assert fs.exists("/src/java/Main.java") is False

    def test_delete_missing_fails(self, fs: FileSystem) -> None:
        """delete() requires an existing path."""
        with pytest.raises(FileNotFoundError):
            _ = fs.delete("/missing")

    # -------------------------------------------------------------------------
    # Rename
    # -------------------------------------------------------------------------

    def test_rename_file(self, fs: FileSystem) -> None:
        """After rename the old path is gone and the new one has the content."""
        write_bytes(fs, "/old.txt", b"payload")
        assert fs.rename("/old.txt", "/new/place.txt") is True
        assert fs.exists("/old.txt") is False
        assert read_bytes(fs, "/new/place.txt") == b"payload"

    def test_rename_directory_moves_descendants(self, fs: FileSystem) -> None:
        """Every descendant follows a renamed directory."""
        write_bytes(fs, "/src/java/Main.java", b"class Main {}")
        assert fs.rename("/src", "/dst/code") is True
        assert fs.exists("/src/java/Main.java") is False
        assert read_bytes(fs, "/dst/code/java/Main.java") == b"class Main {}"
        assert [s.path.name for s in fs.list_status("/dst/code")] == ["java"]

    def test_rename_onto_existing_fails(self, fs: FileSystem) -> None:
        """rename() never replaces an existing destination."""
        write_bytes(fs, "/a.txt", b"a")
        write_bytes(fs, "/b.txt", b"b")
        with pytest.raises(FileExistsError):
            _ = fs.rename("/a.txt", "/b.txt")
        assert read_bytes(fs, "/a.txt") == b"a"
        assert read_bytes(fs, "/b.txt") == b"b"

    def test_rename_missing_source_fails(self, fs: FileSystem) -> None:
        """rename() requires an existing source."""
        with pytest.raises(FileNotFoundError):
            _ = fs.rename("/missing", "/other")

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def test_list_status_of_file_returns_itself(self, fs: FileSystem) -> None:
        """list_status() on a file yields a single entry for that file."""
        write_bytes(fs, "/file.txt", b"12345")
        statuses = fs.list_status("/file.txt")
        assert len(statuses) == 1
        assert statuses[0].path == FsPath("/file.txt")
        assert statuses[0].length == 5

    def test_list_status_puts_directories_first(self, fs: FileSystem) -> None:
        """Directories are listed before files."""
        write_bytes(fs, "/root/a.txt", b"")
        _ = fs.mkdirs("/root/sub")
        write_bytes(fs, "/root/b.txt", b"")
        kinds = [status.is_directory for status in fs.list_status("/root")]
        assert kinds == [True, False, False]

    def test_get_file_status_reports_metadata(self, fs: FileSystem) -> None:
        """get_file_status() reports type, length and permission."""
        with fs.create("/f.bin", FsPermission.from_mode(0o644)) as stream:
            _ = stream.write(b"abc")
        status = fs.get_file_status("/f.bin")
        assert status.is_file
        assert status.length == 3
        assert status.permission.mode == 0o644

    def test_get_file_status_of_directory_has_zero_length(self, fs: FileSystem) -> None:
        _ = fs.mkdirs("/dir")
        status = fs.get_file_status("/dir")
        assert status.is_directory
        assert status.length == 0

    def test_get_file_status_missing_fails(self, fs: FileSystem) -> None:
        with pytest.raises(FileNotFoundError):
            _ = fs.get_file_status("/missing")

    def test_set_owner_updates_status(self, fs: FileSystem) -> None:
        """set_owner() is reflected by get_file_status()."""
        write_bytes(fs, "/f.txt", b"")
        fs.set_owner("/f.txt", "alice", "staff")
        status = fs.get_file_status("/f.txt")
        assert (status.owner, status.group) == ("alice", "staff")
