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

"""Tests for the permission engine."""

from __future__ import annotations

import pytest

from memfs.errors import PermissionDeniedError
from memfs.filesystem import FileData, FsAction, FsPermission, Node, check_permission, permits


def _node(mode: int, *, owner: str = "u1", group: str = "g1") -> Node:
    return Node(
        node_id=1,
        name="f",
        parent_id=0,
        data=FileData(),
        permission=FsPermission.from_mode(mode),
        owner=owner,
        group=group,
    )


class TestPermits:
    """Tests for the other -> group -> owner evaluation order."""

    @pytest.mark.parametrize(
        ("user", "groups", "action", "allowed"),
        [
            ("u1", {"g1"}, FsAction.READ, True),
            ("u1", {"g1"}, FsAction.WRITE, True),
            ("u2", {"g1"}, FsAction.READ, True),
            ("u2", {"g1"}, FsAction.WRITE, False),
            ("u3", {"g3"}, FsAction.READ, False),
            ("u3", {"g3"}, FsAction.WRITE, False),
            ("u1", {"g1"}, FsAction.EXECUTE, False),
        ],
    )
    def test_matrix_for_0640(self, user: str, groups: set[str], action: FsAction, allowed: bool) -> None:
        assert permits(_node(0o640), action, user=user, groups=groups) is allowed

    def test_other_bits_allow_everybody(self) -> None:
        assert permits(_node(0o004), FsAction.READ, user="stranger", groups=set())

    def test_group_bits_decide_before_owner_bits(self) -> None:
        """When the group bits grant an action, the owner outside the group is refused."""
        node = _node(0o640)
        assert not permits(node, FsAction.READ, user="u1", groups={"elsewhere"})
        assert permits(node, FsAction.WRITE, user="u1", groups={"elsewhere"})

    def test_owner_bits_require_matching_user(self) -> None:
        node = _node(0o700)
        assert permits(node, FsAction.ALL, user="u1", groups=set())
        assert not permits(node, FsAction.READ, user="u2", groups={"g1"})

    def test_root_has_no_bypass(self) -> None:
        assert not permits(_node(0o000), FsAction.READ, user="root", groups={"root"})

    def test_combined_actions_need_every_bit(self) -> None:
        node = _node(0o600)
        assert permits(node, FsAction.READ_WRITE, user="u1", groups=set())
        assert not permits(node, FsAction.READ_WRITE | FsAction.EXECUTE, user="u1", groups=set())


class TestCheckPermission:
    """Tests for the raising variant."""

    def test_allowed_returns_none(self) -> None:
        check_permission(_node(0o777), FsAction.ALL, user="anyone", groups=set())

    def test_denied_message_is_fixed(self) -> None:
        with pytest.raises(PermissionDeniedError, match="^Permission denied!$"):
            check_permission(_node(0o600), FsAction.READ, user="u2", groups={"g1"})

    def test_denied_is_a_permission_error(self) -> None:
        with pytest.raises(PermissionError):
            check_permission(_node(0o000), FsAction.WRITE, user="u1", groups={"g1"})
