"""URL and link builders for the group page actions."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib import parse as urllib_parse

from .translation import Markup, escape

SUBSCRIBE_PATH = "/group/{entity_type}/{group_id}/subscribe/{membership_type}"
LOGIN_PATH = "/user/login"


@dataclass(frozen=True)
class Link:
    text: str
    url: str

    def to_html(self) -> Markup:
        return Markup(f'<a href="{escape(self.url)}">{escape(self.text)}</a>')


def subscribe_url(entity_type: str, group_id: int, membership_type: str) -> str:
    return SUBSCRIBE_PATH.format(
        entity_type=urllib_parse.quote(entity_type, safe=""),
        group_id=int(group_id),
        membership_type=urllib_parse.quote(membership_type, safe=""),
    )


def login_url(destination: Optional[str] = None) -> str:
    if not destination:
        return LOGIN_PATH
    return f"{LOGIN_PATH}?{urllib_parse.urlencode({'destination': destination})}"


def is_local_destination(destination: Optional[str]) -> bool:
    """Return whether a redirect destination stays on this site."""

    if not destination or not destination.startswith("/") or destination.startswith("//"):
        return False
    parsed = urllib_parse.urlsplit(destination)
    return not parsed.scheme and not parsed.netloc
