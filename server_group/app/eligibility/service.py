"""Resolver deciding whether a viewer may subscribe to a group."""
from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from fastapi import status

from .exceptions import SubscriptionError, ViewerNotFoundError
from .models import (
    ALL_MEMBERSHIP_STATES,
    PERMISSION_SUBSCRIBE,
    PERMISSION_SUBSCRIBE_WITHOUT_APPROVAL,
    AccessResult,
    EligibilityOutcome,
    GroupEntity,
    MembershipRecord,
    MembershipState,
    Viewer,
)

logger = logging.getLogger("group_eligibility")


class GroupTypeRegistry(Protocol):
    """Knows which entity type and bundle pairs act as groups."""

    def is_group_type(self, entity_type: str, bundle: str) -> bool:
        ...


class MembershipStore(Protocol):
    """Read access to group memberships."""

    def find_membership(
        self,
        user_id: int,
        entity_type: str,
        bundle: str,
        entity_id: int,
        states: Sequence[MembershipState],
    ) -> Optional[MembershipRecord]:
        ...


class AccessPolicy(Protocol):
    """Evaluates group level permissions for a viewer."""

    def check_access(self, group: GroupEntity, permission: str, viewer: Viewer) -> AccessResult:
        ...


class IdentityLookup(Protocol):
    """Loads accounts referenced by a session."""

    def load_viewer(self, user_id: int) -> Optional[Viewer]:
        ...


class SubscriptionEligibilityResolver:
    """Computes the :class:`EligibilityOutcome` for a group and a viewer.

    Ownership and existing membership are checked before any policy query so
    owners and members are never invited to subscribe. Anonymous viewers are
    sent to log in without consulting the policy.
    """

    def __init__(
        self,
        group_types: GroupTypeRegistry,
        membership_store: MembershipStore,
        access_policy: AccessPolicy,
        identity_lookup: IdentityLookup,
    ) -> None:
        self._group_types = group_types
        self._membership_store = membership_store
        self._access_policy = access_policy
        self._identity_lookup = identity_lookup

    def resolve(self, group: Optional[GroupEntity], viewer: Viewer) -> EligibilityOutcome:
        outcome = self._resolve(group, viewer)
        logger.debug(
            "Resolved subscription eligibility",
            extra={
                "group_id": getattr(group, "id", None),
                "viewer_id": viewer.id,
                "outcome": outcome.value,
            },
        )
        return outcome

    def resolve_for_user(self, group: Optional[GroupEntity], user_id: Optional[int]) -> EligibilityOutcome:
        """Resolve for the account behind a session user id."""

        return self.resolve(group, self.load_viewer(user_id))

    def load_viewer(self, user_id: Optional[int]) -> Viewer:
        if not user_id:
            return Viewer.anonymous()
        viewer = self._identity_lookup.load_viewer(user_id)
        if viewer is None:
            raise ViewerNotFoundError(user_id)
        return viewer

    def _resolve(self, group: Optional[GroupEntity], viewer: Viewer) -> EligibilityOutcome:
        if group is None or not self._group_types.is_group_type(group.entity_type, group.bundle):
            return EligibilityOutcome.SKIP
        if viewer.is_anonymous:
            return EligibilityOutcome.MUST_LOG_IN
        if self.is_group_owner(group, viewer):
            return EligibilityOutcome.OWNER
        if self.is_group_member(group, viewer):
            return EligibilityOutcome.MEMBER

        if self._is_allowed(group, PERMISSION_SUBSCRIBE_WITHOUT_APPROVAL, viewer):
            return EligibilityOutcome.ELIGIBLE_IMMEDIATE
        if self._is_allowed(group, PERMISSION_SUBSCRIBE, viewer):
            return EligibilityOutcome.ELIGIBLE_PENDING_APPROVAL
        return EligibilityOutcome.NOT_ELIGIBLE

    @staticmethod
    def is_group_owner(group: GroupEntity, viewer: Viewer) -> bool:
        return group.owner_id is not None and group.owner_id == viewer.id

    def is_group_member(self, group: GroupEntity, viewer: Viewer) -> bool:
        membership = self._membership_store.find_membership(
            viewer.id,
            group.entity_type,
            group.bundle,
            group.id,
            ALL_MEMBERSHIP_STATES,
        )
        return membership is not None

    def _is_allowed(self, group: GroupEntity, permission: str, viewer: Viewer) -> bool:
        result = self._access_policy.check_access(group, permission, viewer)
        return result is not None and AccessResult(result).is_allowed


_SUBSCRIBE_REFUSALS = {
    EligibilityOutcome.SKIP: ("group_not_found", "This content is not a group.", status.HTTP_404_NOT_FOUND),
    EligibilityOutcome.MUST_LOG_IN: (
        "login_required",
        "You must log in to subscribe to this group.",
        status.HTTP_401_UNAUTHORIZED,
    ),
    EligibilityOutcome.OWNER: ("already_owner", "You are the owner of this group.", status.HTTP_409_CONFLICT),
    EligibilityOutcome.MEMBER: ("already_member", "You are already a member of this group.", status.HTTP_409_CONFLICT),
    EligibilityOutcome.NOT_ELIGIBLE: (
        "subscription_not_allowed",
        "You are not allowed to subscribe to this group.",
        status.HTTP_403_FORBIDDEN,
    ),
}


def membership_state_for(outcome: EligibilityOutcome) -> MembershipState:
    """Return the state a new membership gets, or raise when subscribing is refused."""

    if outcome is EligibilityOutcome.ELIGIBLE_IMMEDIATE:
        return MembershipState.ACTIVE
    if outcome is EligibilityOutcome.ELIGIBLE_PENDING_APPROVAL:
        return MembershipState.PENDING
    code, message, status_code = _SUBSCRIBE_REFUSALS[outcome]
    raise SubscriptionError(
        code=code,
        message=message,
        status_code=status_code,
        detail={"outcome": outcome.value},
    )
