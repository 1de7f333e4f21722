"""Subscription call-to-action messages for the group page."""
from __future__ import annotations

from typing import Mapping, Optional

from ..eligibility import MEMBERSHIP_TYPE_DEFAULT, EligibilityOutcome, GroupEntity, Viewer
from .layout import RenderArray, build_prose_text
from .links import Link, login_url, subscribe_url
from .translation import t

SUBSCRIBE_TEXT = "Hi @user_name, @link if you would like to subscribe to this group called @group_name"
SUBSCRIBE_LINK_TEXT = "click here"
LOGIN_TEXT = "Please login to register to this group by @link"
LOGIN_LINK_TEXT = "clicking here"


def build_subscription_message(
    outcome: EligibilityOutcome,
    group: Optional[GroupEntity],
    viewer: Viewer,
    *,
    destination: Optional[str] = None,
    membership_type: str = MEMBERSHIP_TYPE_DEFAULT,
    catalog: Optional[Mapping[str, str]] = None,
) -> RenderArray:
    """Return the prose element matching ``outcome``, or an empty element.

    Both eligible outcomes render the same invitation; the subscribe action
    decides whether the resulting membership needs approval.
    """

    if outcome.can_subscribe and group is not None:
        url = subscribe_url(group.entity_type, group.id, membership_type)
        link = Link(t(SUBSCRIBE_LINK_TEXT, catalog=catalog), url)
        text = t(
            SUBSCRIBE_TEXT,
            {
                "@user_name": viewer.account_name,
                "@link": link.to_html(),
                "@group_name": group.title,
            },
            catalog=catalog,
        )
        return build_prose_text(text)

    if outcome is EligibilityOutcome.MUST_LOG_IN:
        link = Link(t(LOGIN_LINK_TEXT, catalog=catalog), login_url(destination))
        return build_prose_text(t(LOGIN_TEXT, {"@link": link.to_html()}, catalog=catalog))

    return {}
