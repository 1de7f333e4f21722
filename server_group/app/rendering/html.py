"""Serialize render arrays to HTML."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

from .layout import RenderArray
from .translation import Markup, escape

_TEMPLATE_PATH = Path(__file__).resolve().parent / "templates"
_PLACEHOLDER_PATTERN = re.compile(r"{{\s*(\w+)\s*}}")

_CONTAINER_CLASSES = {
    "server_theme_container_wide": "container-wide",
    "server_theme_container_narrow": "container-narrow",
    "server_theme_container_vertical_spacing": "vertical-spacing",
    "server_theme_container_vertical_spacing_big": "vertical-spacing-big",
    "server_theme_container_bottom_padding": "bottom-padding",
}


def _load_template(template: str) -> str:
    path = _TEMPLATE_PATH / template
    return path.read_text(encoding="utf-8")


def render_template(template: str, context: Mapping[str, Any]) -> Markup:
    """Fill ``{{ name }}`` placeholders; non-Markup values are escaped."""

    source = _load_template(template)

    def _replace(match: re.Match[str]) -> str:
        return escape(context.get(match.group(1), ""))

    return Markup(_PLACEHOLDER_PATTERN.sub(_replace, source))


def _render_items(element: RenderArray) -> str:
    return "".join(render_html(item) for item in element.get("#items", []))


def _render_container(element: RenderArray) -> str:
    css_class = _CONTAINER_CLASSES[element["#theme"]]
    return f'<div class="{css_class}">{_render_items(element)}</div>'


def _render_main_and_sidebar(element: RenderArray) -> str:
    main = render_html(element.get("#main") or {})
    sidebar = render_html(element.get("#sidebar") or {})
    return f'<div class="main-and-sidebar"><main>{main}</main><aside>{sidebar}</aside></div>'


def _render_social_share(element: RenderArray) -> str:
    buttons = []
    for item in element.get("#items", []):
        service = escape(item["service"])
        buttons.append(f'<li><a class="share-{service}" href="{escape(item["url"])}">{service}</a></li>')
    return f'<ul class="social-share">{"".join(buttons)}</ul>'


_THEMES: Dict[str, Callable[[RenderArray], str]] = {
    **{theme: _render_container for theme in _CONTAINER_CLASSES},
    "server_theme_main_and_sidebar": _render_main_and_sidebar,
    "server_theme_line_separator": lambda element: '<hr class="line-separator">',
    "server_theme_page_title": lambda element: f"<h1>{escape(element.get('#title'))}</h1>",
    "server_theme_prose_text": lambda element: f'<div class="prose">{escape(element.get("#text"))}</div>',
    "server_theme_social_share_buttons": _render_social_share,
}


def render_html(element: RenderArray) -> Markup:
    """Render a render array; empty arrays render nothing."""

    if not element:
        return Markup("")
    theme = element.get("#theme")
    renderer = _THEMES.get(theme)
    if renderer is None:
        raise ValueError(f"Unknown theme hook: {theme!r}")
    return Markup(renderer(element))


def render_page(title: str, content: RenderArray, *, language: str = "en") -> Markup:
    return render_template(
        "page.html",
        {"title": title, "content": render_html(content), "language": language},
    )
