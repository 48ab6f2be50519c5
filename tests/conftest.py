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

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from memfs.config import Configuration
from memfs.filesystem import MemoryFileSystem, NamespaceStore


@pytest.fixture
def store() -> NamespaceStore:
    """Return a store isolated from DEFAULT_STORE and other tests."""

    return NamespaceStore()


@pytest.fixture
def conf() -> Configuration:
    return Configuration()


@pytest.fixture
def memory_fs(store: NamespaceStore, conf: Configuration) -> MemoryFileSystem:
    """Return an engine bound to a freshly configured context."""

    return MemoryFileSystem.get(conf, store=store)


@pytest.fixture
def reset_logging_state() -> Iterator[None]:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        yield
    finally:
        for handler in root.handlers:
            if handler not in original_handlers:
                handler.close()
        root.handlers = original_handlers
        root.setLevel(original_level)
