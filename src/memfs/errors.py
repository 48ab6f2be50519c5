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

"""Base exception hierarchy for :mod:`memfs`."""

from __future__ import annotations


class MemfsError(Exception):
    """Base class for all memfs exceptions.

    This class serves as the root of the exception hierarchy, allowing callers
    to catch every engine failure with a single handler while letting standard
    Python exceptions propagate normally.

    Example:
        Catch any memfs-specific error::

            try:
                fs.delete("/data", recursive=True)
            except MemfsError as e:
                logger.error("Filesystem error: %s", e)

    Note:
        Subclasses also inherit from the matching builtin exception (e.g.,
        ``FileNotFoundError``, ``PermissionError``) so code written against
        ``os``-style errors keeps working.
    """


class InvalidArgumentError(MemfsError, ValueError):
    """Raised when a required argument is missing or malformed.

    Common causes:
        - ``None`` passed where a path, user or configuration is required
        - An empty group name passed to ``set_user``
        - A path whose scheme does not match the filesystem's scheme
        - A working directory that does not exist or is a file
    """


class NotFoundError(MemfsError, FileNotFoundError):
    """Raised when an operation requires a path that has no node."""


class AlreadyExistsError(MemfsError, FileExistsError):
    """Raised when a create or rename target is already taken.

    ``create`` without ``overwrite`` on an existing file, ``create`` on an
    existing directory, and ``rename`` onto any existing path all raise this.
    """


class NotADirectoryPathError(MemfsError, NotADirectoryError):
    """Raised when a path walks through a file as if it were a directory."""


class NotAFileError(MemfsError, IsADirectoryError):
    """Raised when a file operation targets a directory."""


class DirectoryNotEmptyError(MemfsError, OSError):
    """Raised by a non-recursive delete of a directory with sub-directories."""


class PermissionDeniedError(MemfsError, PermissionError):
    """Raised when the permission engine vetoes an action.

    The message is always ``"Permission denied!"``; the offending path is
    not included.
    """


class ResourceBusyError(MemfsError, OSError):
    """Raised when an operation requires exclusive access to an open file.

    Opening a file that already has a live stream, deleting an open file, or
    overwriting an open file all raise this.

    Warning:
        A recursive delete that meets an open file stops immediately. Entries
        removed before the open file was reached stay removed; there is no
        rollback.
    """


class IllegalStateError(MemfsError, RuntimeError):
    """Raised when the configuration has no filesystem context.

    This indicates the caller built an engine from a configuration that was
    never passed through ``MemoryFileSystem.configure``.
    """


class ClosedStreamError(MemfsError, ValueError):
    """Raised by any stream operation after the stream was closed."""


class ConfigurationError(MemfsError, ValueError):
    """Raised when a configuration file cannot be loaded into settings."""


__all__ = [
    "AlreadyExistsError",
    "ClosedStreamError",
    "ConfigurationError",
    "DirectoryNotEmptyError",
    "IllegalStateError",
    "InvalidArgumentError",
    "MemfsError",
    "NotADirectoryPathError",
    "NotAFileError",
    "NotFoundError",
    "PermissionDeniedError",
    "ResourceBusyError",
]
