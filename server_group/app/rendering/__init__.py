"""Render arrays and HTML output for group pages."""

from .html import render_html, render_page, render_template
from .layout import (
    RenderArray,
    build_conditional_page_title,
    build_line_separator,
    build_main_and_sidebar,
    build_social_share,
    wrap_container_bottom_padding,
    wrap_container_narrow,
    wrap_container_vertical_spacing,
    wrap_container_vertical_spacing_big,
    wrap_container_wide,
)
from .links import Link, is_local_destination, login_url, subscribe_url
from .messages import build_subscription_message
from .page import build_full
from .translation import Markup, get_catalog, t

__all__ = [
    "Link",
    "Markup",
    "RenderArray",
    "build_conditional_page_title",
    "build_full",
    "build_line_separator",
    "build_main_and_sidebar",
    "build_social_share",
    "build_subscription_message",
    "get_catalog",
    "is_local_destination",
    "login_url",
    "render_html",
    "render_page",
    "render_template",
    "subscribe_url",
    "t",
    "wrap_container_bottom_padding",
    "wrap_container_narrow",
    "wrap_container_vertical_spacing",
    "wrap_container_vertical_spacing_big",
    "wrap_container_wide",
]
