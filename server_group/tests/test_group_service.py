from __future__ import annotations

import pathlib
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from server_group import group_service
from server_group.app.eligibility import (
    PERMISSION_SUBSCRIBE,
    PERMISSION_SUBSCRIBE_WITHOUT_APPROVAL,
    AccessResult,
    GroupEntity,
    MembershipState,
    Viewer,
)

GROUP = GroupEntity(entity_type="node", bundle="group", id=7, title="Group A", owner_id=1)


class RecordingCursor:
    def __init__(self, conn: "RecordingConnection") -> None:
        self._conn = conn

    def __enter__(self) -> "RecordingCursor":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None

    def execute(self, query: str, params: Tuple[Any, ...]) -> None:
        self._conn.executed.append((" ".join(query.split()), params))

    def fetchone(self) -> Optional[Dict[str, Any]]:
        return self._conn.rows[0] if self._conn.rows else None

    def fetchall(self) -> List[Dict[str, Any]]:
        return list(self._conn.rows)


class RecordingConnection:
    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None) -> None:
        self.rows = rows or []
        self.executed: List[Tuple[str, Tuple[Any, ...]]] = []

    def cursor(self, cursor_factory=None) -> RecordingCursor:
        return RecordingCursor(self)


def test_fetch_group_and_group_from_row():
    conn = RecordingConnection([{"id": 7, "type": "group", "title": "Group A", "uid": 1}])

    row = group_service.fetch_group(conn, 7)
    group = group_service.group_from_row(row)

    assert conn.executed[0][1] == (7,)
    assert group == GROUP


def test_fetch_group_missing_returns_none():
    assert group_service.fetch_group(RecordingConnection(), 1) is None


def test_membership_store_queries_all_states_by_default():
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    conn = RecordingConnection(
        [
            {
                "id": 3,
                "uid": 2,
                "entity_type": "node",
                "entity_bundle": "group",
                "entity_id": 7,
                "state": "blocked",
                "type": "default",
                "created_utc": created,
            }
        ]
    )
    store = group_service.PostgresMembershipStore(conn)

    record = store.find_membership(2, "node", "group", 7)

    query, params = conn.executed[0]
    assert "FROM og_membership" in query
    assert params == (2, "node", "group", 7, ["active", "pending", "blocked"])
    assert record.state is MembershipState.BLOCKED
    assert record.created_utc == created


def test_membership_store_filters_requested_states():
    conn = RecordingConnection()
    store = group_service.PostgresMembershipStore(conn)

    assert store.find_membership(2, "node", "group", 7, [MembershipState.ACTIVE]) is None
    assert conn.executed[0][1][-1] == ["active"]


def test_create_membership_returns_record():
    conn = RecordingConnection(
        [
            {
                "id": 9,
                "uid": 2,
                "entity_type": "node",
                "entity_bundle": "group",
                "entity_id": 7,
                "state": "pending",
                "type": "default",
                "created_utc": None,
            }
        ]
    )

    record = group_service.create_membership(conn, user_id=2, group=GROUP, state=MembershipState.PENDING)

    query, params = conn.executed[0]
    assert query.startswith("INSERT INTO og_membership")
    assert params == (2, "node", "group", 7, "pending", "default")
    assert record.id == 9
    assert record.state is MembershipState.PENDING


def test_access_policy_uses_non_member_role_permissions():
    conn = RecordingConnection([{"permission": PERMISSION_SUBSCRIBE}])
    policy = group_service.PostgresAccessPolicy(conn)
    viewer = Viewer(id=2, account_name="B", role="user")

    assert policy.check_access(GROUP, PERMISSION_SUBSCRIBE, viewer) is AccessResult.ALLOWED
    assert policy.check_access(GROUP, PERMISSION_SUBSCRIBE_WITHOUT_APPROVAL, viewer) is AccessResult.NEUTRAL
    assert conn.executed[0][1] == ("node", "group", "non-member")


def test_access_policy_allows_site_admins_without_query():
    conn = RecordingConnection()
    policy = group_service.PostgresAccessPolicy(conn)

    result = policy.check_access(GROUP, PERMISSION_SUBSCRIBE_WITHOUT_APPROVAL, Viewer(id=9, account_name="root", role="admin"))

    assert result is AccessResult.ALLOWED
    assert conn.executed == []


def test_identity_lookup():
    conn = RecordingConnection([{"id": 2, "name": "B", "role": "user"}])

    viewer = group_service.PostgresIdentityLookup(conn).load_viewer(2)

    assert viewer == Viewer(id=2, account_name="B", is_authenticated=True, role="user")
    assert group_service.PostgresIdentityLookup(RecordingConnection()).load_viewer(3) is None


def test_configured_group_types():
    group_types = group_service.ConfiguredGroupTypes({("node", "group")})

    assert group_types.is_group_type("node", "group")
    assert not group_types.is_group_type("node", "article")
    assert not group_types.is_group_type("user", "group")
