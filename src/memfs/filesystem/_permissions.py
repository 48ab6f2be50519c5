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

"""Permission checks against a node's owner/group/other bits.

The evaluation order is fixed:

1. If the *other* bits grant the action, allow.
2. Otherwise, if the *group* bits grant it, allow only members of the
   node's group.
3. Otherwise allow only the node's owner, and only if the *owner* bits
   grant the action.

There is no superuser bypass: ``root`` is an ordinary user name here.
"""

from __future__ import annotations

from collections.abc import Collection

from ..errors import PermissionDeniedError
from ._nodes import Node
from ._types import FsAction

__all__ = ["PERMISSION_DENIED", "check_permission", "permits"]

PERMISSION_DENIED = "Permission denied!"


def permits(node: Node, action: FsAction, *, user: str, groups: Collection[str]) -> bool:
    """Return True when ``user`` (member of ``groups``) may perform ``action``."""
    permission = node.permission
    if permission.other.implies(action):
        return True
    if permission.group.implies(action):
        return node.group in groups
    return permission.user.implies(action) and node.owner == user


def check_permission(node: Node, action: FsAction, *, user: str, groups: Collection[str]) -> None:
    """Raise unless :func:`permits` allows the action.

    Raises:
        PermissionDeniedError: With the fixed message ``"Permission denied!"``.
    """
    if not permits(node, action, user=user, groups=groups):
        raise PermissionDeniedError(PERMISSION_DENIED)
