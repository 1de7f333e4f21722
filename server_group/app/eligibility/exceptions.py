"""Errors raised while resolving or acting on subscription eligibility."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status


class ViewerNotFoundError(LookupError):
    """The session referenced an account that no longer exists."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"No account found for user_id={user_id}")


@dataclass
class SubscriptionError(Exception):
    """Represents a subscribe request the viewer is not allowed to make."""

    code: str
    message: str
    status_code: int = status.HTTP_403_FORBIDDEN
    detail: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        base_detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.detail:
            base_detail.update(self.detail)
        object.__setattr__(self, "_payload", base_detail)
        super().__init__(self.message)

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        return self._payload

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=dict(self.payload))
