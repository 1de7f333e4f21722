from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..eligibility import EligibilityOutcome, MembershipState


class EligibilityResponse(BaseModel):
    group_id: int = Field(alias="groupId")
    outcome: EligibilityOutcome
    can_subscribe: bool = Field(alias="canSubscribe")
    requires_approval: bool = Field(alias="requiresApproval")
    subscribe_url: Optional[str] = Field(default=None, alias="subscribeUrl")
    login_url: Optional[str] = Field(default=None, alias="loginUrl")

    model_config = ConfigDict(populate_by_name=True)


class MembershipOut(BaseModel):
    id: Optional[int] = None
    user_id: int = Field(alias="userId")
    entity_type: str = Field(alias="entityType")
    entity_id: int = Field(alias="entityId")
    state: MembershipState
    membership_type: str = Field(alias="membershipType")
    created_utc: Optional[datetime] = Field(default=None, alias="createdUtc")

    model_config = ConfigDict(populate_by_name=True)


class UserOut(BaseModel):
    id: int
    name: str
    role: str
    created_utc: Optional[datetime] = None
