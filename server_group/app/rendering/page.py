"""Full view of a group node."""
from __future__ import annotations

from typing import List, Mapping, Optional

from ..eligibility import EligibilityOutcome, GroupEntity, Viewer
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
from .messages import build_subscription_message


def build_header(group: GroupEntity) -> RenderArray:
    elements = [build_conditional_page_title(group.title)]
    return wrap_container_narrow(wrap_container_vertical_spacing(elements))


def build_main_and_sidebar_for_group(
    group: GroupEntity,
    outcome: EligibilityOutcome,
    viewer: Viewer,
    *,
    page_url: str,
    destination: Optional[str] = None,
    catalog: Optional[Mapping[str, str]] = None,
) -> RenderArray:
    main_elements: List[RenderArray] = [
        build_subscription_message(outcome, group, viewer, destination=destination, catalog=catalog)
    ]

    # Line separator sits above the social share buttons.
    social_share_elements = [build_line_separator(), build_social_share(group.title, page_url)]
    sidebar_elements = [wrap_container_vertical_spacing(social_share_elements)]

    return build_main_and_sidebar(
        wrap_container_vertical_spacing_big(main_elements),
        wrap_container_vertical_spacing_big(sidebar_elements),
    )


def build_full(
    group: GroupEntity,
    outcome: EligibilityOutcome,
    viewer: Viewer,
    *,
    page_url: str,
    destination: Optional[str] = None,
    catalog: Optional[Mapping[str, str]] = None,
) -> RenderArray:
    """Assemble the header and main content into one stacked container."""

    elements = [
        wrap_container_wide(build_header(group)),
        wrap_container_wide(
            build_main_and_sidebar_for_group(
                group,
                outcome,
                viewer,
                page_url=page_url,
                destination=destination,
                catalog=catalog,
            )
        ),
    ]
    return wrap_container_bottom_padding(wrap_container_vertical_spacing_big(elements))
