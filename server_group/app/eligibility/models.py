"""Domain models for group subscription eligibility."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

PERMISSION_SUBSCRIBE = "subscribe"
PERMISSION_SUBSCRIBE_WITHOUT_APPROVAL = "subscribe without approval"

MEMBERSHIP_TYPE_DEFAULT = "default"
MEMBERSHIP_TYPES = frozenset({MEMBERSHIP_TYPE_DEFAULT})


class MembershipState(str, Enum):
    """States a group membership can be in."""

    ACTIVE = "active"
    PENDING = "pending"
    BLOCKED = "blocked"


ALL_MEMBERSHIP_STATES = (
    MembershipState.ACTIVE,
    MembershipState.PENDING,
    MembershipState.BLOCKED,
)


class EligibilityOutcome(str, Enum):
    """Result of evaluating a viewer against a group."""

    SKIP = "skip"
    MUST_LOG_IN = "must_log_in"
    OWNER = "owner"
    MEMBER = "member"
    ELIGIBLE_IMMEDIATE = "eligible_immediate"
    ELIGIBLE_PENDING_APPROVAL = "eligible_pending_approval"
    NOT_ELIGIBLE = "not_eligible"

    @property
    def can_subscribe(self) -> bool:
        return self in (
            EligibilityOutcome.ELIGIBLE_IMMEDIATE,
            EligibilityOutcome.ELIGIBLE_PENDING_APPROVAL,
        )

    @property
    def requires_approval(self) -> bool:
        return self is EligibilityOutcome.ELIGIBLE_PENDING_APPROVAL


class AccessResult(str, Enum):
    """Answer from the access policy for a single permission."""

    ALLOWED = "allowed"
    DENIED = "denied"
    NEUTRAL = "neutral"

    @property
    def is_allowed(self) -> bool:
        return self is AccessResult.ALLOWED


@dataclass(frozen=True)
class GroupEntity:
    """A content entity that may act as a group container."""

    entity_type: str
    bundle: str
    id: int
    title: str
    owner_id: Optional[int]


@dataclass(frozen=True)
class Viewer:
    """The account looking at a group page."""

    id: int
    account_name: str
    is_authenticated: bool = True
    role: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "Viewer":
        return cls(id=0, account_name="", is_authenticated=False)

    @property
    def is_anonymous(self) -> bool:
        return not self.is_authenticated


@dataclass(frozen=True)
class MembershipRecord:
    """Relation between a user and a group."""

    user_id: int
    entity_type: str
    entity_bundle: str
    entity_id: int
    state: MembershipState
    membership_type: str = MEMBERSHIP_TYPE_DEFAULT
    id: Optional[int] = None
    created_utc: Optional[datetime] = None
