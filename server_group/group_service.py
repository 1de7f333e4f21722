from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import psycopg2.extras

from server_group.app.eligibility import (
    ALL_MEMBERSHIP_STATES,
    MEMBERSHIP_TYPE_DEFAULT,
    AccessResult,
    GroupEntity,
    MembershipRecord,
    MembershipState,
    Viewer,
)

logger = logging.getLogger("group_service")

NODE_ENTITY_TYPE = "node"
NON_MEMBER_ROLE = "non-member"
SITE_ADMIN_ROLES = {"admin"}


def fetch_group(conn, node_id: int) -> Optional[Dict[str, Any]]:
    with conn.cursor(cursor_factory=psycopg2.extras.DictCursor) as cur:
        cur.execute(
            "SELECT id, type, title, uid FROM node WHERE id = %s LIMIT 1",
            (node_id,),
        )
        row = cur.fetchone()
    return dict(row) if row else None


def group_from_row(row: Dict[str, Any], *, entity_type: str = NODE_ENTITY_TYPE) -> GroupEntity:
    return GroupEntity(
        entity_type=entity_type,
        bundle=row["type"],
        id=int(row["id"]),
        title=row["title"],
        owner_id=row.get("uid"),
    )


def fetch_membership(
    conn,
    user_id: int,
    entity_type: str,
    bundle: str,
    entity_id: int,
    states: Optional[Iterable[MembershipState]] = None,
) -> Optional[Dict[str, Any]]:
    state_values = [MembershipState(state).value for state in (states or ALL_MEMBERSHIP_STATES)]
    with conn.cursor(cursor_factory=psycopg2.extras.DictCursor) as cur:
        cur.execute(
            """
            SELECT id, uid, entity_type, entity_bundle, entity_id, state, type, created_utc
            FROM og_membership
            WHERE uid = %s
              AND entity_type = %s
              AND entity_bundle = %s
              AND entity_id = %s
              AND state = ANY(%s)
            ORDER BY id
            LIMIT 1
            """,
            (user_id, entity_type, bundle, entity_id, state_values),
        )
        row = cur.fetchone()
    return dict(row) if row else None


def membership_from_row(row: Dict[str, Any]) -> MembershipRecord:
    return MembershipRecord(
        id=row.get("id"),
        user_id=int(row["uid"]),
        entity_type=row["entity_type"],
        entity_bundle=row["entity_bundle"],
        entity_id=int(row["entity_id"]),
        state=MembershipState(row["state"]),
        membership_type=row.get("type") or MEMBERSHIP_TYPE_DEFAULT,
        created_utc=row.get("created_utc"),
    )


def create_membership(
    conn,
    *,
    user_id: int,
    group: GroupEntity,
    state: MembershipState,
    membership_type: str = MEMBERSHIP_TYPE_DEFAULT,
) -> MembershipRecord:
    with conn.cursor(cursor_factory=psycopg2.extras.DictCursor) as cur:
        cur.execute(
            """
            INSERT INTO og_membership (uid, entity_type, entity_bundle, entity_id, state, type, created_utc)
            VALUES (%s, %s, %s, %s, %s, %s, NOW())
            RETURNING id, uid, entity_type, entity_bundle, entity_id, state, type, created_utc
            """,
            (user_id, group.entity_type, group.bundle, group.id, MembershipState(state).value, membership_type),
        )
        row = cur.fetchone()
    logger.info(
        "Group membership created",
        extra={"user_id": user_id, "group_id": group.id, "state": MembershipState(state).value},
    )
    return membership_from_row(dict(row))


def fetch_role_permissions(conn, entity_type: str, bundle: str, role: str) -> List[str]:
    with conn.cursor(cursor_factory=psycopg2.extras.DictCursor) as cur:
        cur.execute(
            """
            SELECT permission
            FROM og_role_permission
            WHERE entity_type = %s AND bundle = %s AND role = %s
            ORDER BY permission
            """,
            (entity_type, bundle, role),
        )
        rows = cur.fetchall()
    return [row["permission"] for row in rows]


def fetch_viewer(conn, user_id: int) -> Optional[Dict[str, Any]]:
    with conn.cursor(cursor_factory=psycopg2.extras.DictCursor) as cur:
        cur.execute("SELECT id, name, role FROM users WHERE id = %s", (user_id,))
        row = cur.fetchone()
    return dict(row) if row else None


def is_site_admin(user: Any) -> bool:
    return getattr(user, "role", None) in SITE_ADMIN_ROLES


class ConfiguredGroupTypes:
    """Group type predicate backed by the configured ``entity_type:bundle`` pairs."""

    def __init__(self, group_bundles: Iterable[Tuple[str, str]]) -> None:
        self._group_bundles: FrozenSet[Tuple[str, str]] = frozenset(group_bundles)

    def is_group_type(self, entity_type: str, bundle: str) -> bool:
        return (entity_type, bundle) in self._group_bundles


class PostgresMembershipStore:
    def __init__(self, conn) -> None:
        self._conn = conn

    def find_membership(
        self,
        user_id: int,
        entity_type: str,
        bundle: str,
        entity_id: int,
        states: Sequence[MembershipState] = ALL_MEMBERSHIP_STATES,
    ) -> Optional[MembershipRecord]:
        row = fetch_membership(self._conn, user_id, entity_type, bundle, entity_id, states)
        return membership_from_row(row) if row else None


class PostgresAccessPolicy:
    """Grants group permissions from the non-member role of the group bundle.

    Members never reach the policy, so only the non-member role is consulted.
    Site administrators are allowed everything.
    """

    def __init__(self, conn) -> None:
        self._conn = conn

    def check_access(self, group: GroupEntity, permission: str, viewer: Viewer) -> AccessResult:
        if is_site_admin(viewer):
            return AccessResult.ALLOWED
        granted = fetch_role_permissions(self._conn, group.entity_type, group.bundle, NON_MEMBER_ROLE)
        if permission in granted:
            return AccessResult.ALLOWED
        return AccessResult.NEUTRAL


class PostgresIdentityLookup:
    def __init__(self, conn) -> None:
        self._conn = conn

    def load_viewer(self, user_id: int) -> Optional[Viewer]:
        row = fetch_viewer(self._conn, user_id)
        if row is None:
            return None
        return Viewer(id=int(row["id"]), account_name=row["name"], role=row.get("role"))
