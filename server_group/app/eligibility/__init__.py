"""Subscription eligibility for group pages."""

from .exceptions import SubscriptionError, ViewerNotFoundError
from .models import (
    ALL_MEMBERSHIP_STATES,
    MEMBERSHIP_TYPE_DEFAULT,
    MEMBERSHIP_TYPES,
    PERMISSION_SUBSCRIBE,
    PERMISSION_SUBSCRIBE_WITHOUT_APPROVAL,
    AccessResult,
    EligibilityOutcome,
    GroupEntity,
    MembershipRecord,
    MembershipState,
    Viewer,
)
from .service import (
    AccessPolicy,
    GroupTypeRegistry,
    IdentityLookup,
    MembershipStore,
    SubscriptionEligibilityResolver,
    membership_state_for,
)

__all__ = [
    "ALL_MEMBERSHIP_STATES",
    "MEMBERSHIP_TYPE_DEFAULT",
    "MEMBERSHIP_TYPES",
    "PERMISSION_SUBSCRIBE",
    "PERMISSION_SUBSCRIBE_WITHOUT_APPROVAL",
    "AccessPolicy",
    "AccessResult",
    "EligibilityOutcome",
    "GroupEntity",
    "GroupTypeRegistry",
    "IdentityLookup",
    "MembershipRecord",
    "MembershipState",
    "MembershipStore",
    "SubscriptionEligibilityResolver",
    "SubscriptionError",
    "Viewer",
    "ViewerNotFoundError",
    "membership_state_for",
]
