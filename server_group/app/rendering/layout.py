"""Reusable render array builders for page layout."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union
from urllib import parse as urllib_parse

RenderArray = Dict[str, Any]
Items = Union[RenderArray, Sequence[RenderArray]]

SOCIAL_SHARE_SERVICES = ("facebook", "twitter", "linkedin", "email")

_SHARE_URL_TEMPLATES = {
    "facebook": "https://www.facebook.com/sharer/sharer.php?u={url}",
    "twitter": "https://twitter.com/intent/tweet?url={url}&text={title}",
    "linkedin": "https://www.linkedin.com/sharing/share-offsite/?url={url}",
    "email": "mailto:?subject={title}&body={url}",
}


def _as_items(items: Items) -> List[RenderArray]:
    if isinstance(items, dict):
        return [items] if items else []
    return [item for item in items if item]


def _wrap(theme: str, items: Items) -> RenderArray:
    return {"#theme": theme, "#items": _as_items(items)}


def wrap_container_wide(items: Items) -> RenderArray:
    return _wrap("server_theme_container_wide", items)


def wrap_container_narrow(items: Items) -> RenderArray:
    return _wrap("server_theme_container_narrow", items)


def wrap_container_vertical_spacing(items: Items) -> RenderArray:
    return _wrap("server_theme_container_vertical_spacing", items)


def wrap_container_vertical_spacing_big(items: Items) -> RenderArray:
    return _wrap("server_theme_container_vertical_spacing_big", items)


def wrap_container_bottom_padding(items: Items) -> RenderArray:
    return _wrap("server_theme_container_bottom_padding", items)


def build_line_separator() -> RenderArray:
    return {"#theme": "server_theme_line_separator"}


def build_page_title(title: str) -> RenderArray:
    return {"#theme": "server_theme_page_title", "#title": title}


def build_conditional_page_title(title: Optional[str], *, hide_title: bool = False) -> RenderArray:
    """Return the page title element, or nothing when it should stay hidden."""

    if hide_title or not title:
        return {}
    return build_page_title(title)


def build_social_share(title: str, page_url: str) -> RenderArray:
    quoted_url = urllib_parse.quote(page_url, safe="")
    quoted_title = urllib_parse.quote(title or "", safe="")
    items = [
        {
            "service": service,
            "url": _SHARE_URL_TEMPLATES[service].format(url=quoted_url, title=quoted_title),
        }
        for service in SOCIAL_SHARE_SERVICES
    ]
    return {"#theme": "server_theme_social_share_buttons", "#items": items}


def build_prose_text(text: str) -> RenderArray:
    return {"#theme": "server_theme_prose_text", "#text": text}


def build_main_and_sidebar(main: RenderArray, sidebar: RenderArray) -> RenderArray:
    return {"#theme": "server_theme_main_and_sidebar", "#main": main, "#sidebar": sidebar}
