"""Group page, eligibility and subscribe routes."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from ... import app_context
from ... import group_service
from ..eligibility import (
    MEMBERSHIP_TYPE_DEFAULT,
    MEMBERSHIP_TYPES,
    EligibilityOutcome,
    GroupEntity,
    MembershipRecord,
    SubscriptionEligibilityResolver,
    SubscriptionError,
    Viewer,
    membership_state_for,
)
from ..rendering import (
    build_full,
    get_catalog,
    login_url,
    render_page,
    render_template,
    subscribe_url,
)
from ..schemas.groups import EligibilityResponse, MembershipOut

logger = logging.getLogger("group_routes")

router = APIRouter(tags=["groups"])


def _get_optional_current_user(request: Request) -> Any:
    settings = app_context.get_settings()
    session_token = request.cookies.get(settings.session_cookie_name)
    return app_context.get_optional_current_user(session_token)


@contextmanager
def managed_connection() -> Iterator[Any]:
    """Open a request scoped connection and commit when the block succeeds."""

    connection = app_context.get_conn()
    try:
        yield connection
        connection.commit()
    except Exception:
        connection.rollback()
        raise
    finally:
        connection.close()


def build_resolver(conn: Any) -> SubscriptionEligibilityResolver:
    settings = app_context.get_settings()
    return SubscriptionEligibilityResolver(
        group_types=group_service.ConfiguredGroupTypes(settings.group_bundles),
        membership_store=group_service.PostgresMembershipStore(conn),
        access_policy=group_service.PostgresAccessPolicy(conn),
        identity_lookup=group_service.PostgresIdentityLookup(conn),
    )


def _load_node(conn: Any, node_id: int, entity_type: str = group_service.NODE_ENTITY_TYPE) -> GroupEntity:
    if entity_type != group_service.NODE_ENTITY_TYPE:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    row = group_service.fetch_group(conn, node_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    return group_service.group_from_row(row, entity_type=entity_type)


def _require_membership_type(membership_type: str) -> None:
    if membership_type not in MEMBERSHIP_TYPES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown membership type")


def _user_id(current_user: Any) -> Optional[int]:
    return getattr(current_user, "id", None) if current_user is not None else None


def _current_destination(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def _membership_out(membership: MembershipRecord) -> MembershipOut:
    return MembershipOut(
        id=membership.id,
        user_id=membership.user_id,
        entity_type=membership.entity_type,
        entity_id=membership.entity_id,
        state=membership.state,
        membership_type=membership.membership_type,
        created_utc=membership.created_utc,
    )


def subscribe_viewer(
    conn: Any,
    resolver: SubscriptionEligibilityResolver,
    group: GroupEntity,
    viewer: Viewer,
    membership_type: str,
) -> MembershipRecord:
    """Create the membership an eligible viewer asked for."""

    outcome = resolver.resolve(group, viewer)
    state = membership_state_for(outcome)
    membership = group_service.create_membership(
        conn,
        user_id=viewer.id,
        group=group,
        state=state,
        membership_type=membership_type,
    )
    logger.info(
        "Viewer subscribed to group",
        extra={"group_id": group.id, "viewer_id": viewer.id, "outcome": outcome.value},
    )
    return membership


@router.get("/node/{node_id}", response_class=HTMLResponse)
def view_node(
    node_id: int,
    request: Request,
    current_user=Depends(_get_optional_current_user),
) -> HTMLResponse:
    """Render the full view of a node, with the subscription prompt for groups."""

    settings = app_context.get_settings()
    with managed_connection() as conn:
        group = _load_node(conn, node_id)
        resolver = build_resolver(conn)
        viewer = resolver.load_viewer(_user_id(current_user))
        outcome = resolver.resolve(group, viewer)

    destination = _current_destination(request)
    element = build_full(
        group,
        outcome,
        viewer,
        page_url=f"{settings.app_base_url}{destination}",
        destination=destination,
        catalog=get_catalog(settings.default_language),
    )
    return HTMLResponse(render_page(group.title, element, language=settings.default_language))


@router.get("/api/groups/{node_id}/eligibility", response_model=EligibilityResponse)
def read_eligibility(
    node_id: int,
    *,
    current_user=Depends(_get_optional_current_user),
) -> EligibilityResponse:
    """Return the viewer's subscription eligibility for a group."""

    with managed_connection() as conn:
        group = _load_node(conn, node_id)
        outcome = build_resolver(conn).resolve_for_user(group, _user_id(current_user))

    return EligibilityResponse(
        group_id=group.id,
        outcome=outcome,
        can_subscribe=outcome.can_subscribe,
        requires_approval=outcome.requires_approval,
        subscribe_url=(
            subscribe_url(group.entity_type, group.id, MEMBERSHIP_TYPE_DEFAULT) if outcome.can_subscribe else None
        ),
        login_url=login_url(f"/node/{group.id}") if outcome is EligibilityOutcome.MUST_LOG_IN else None,
    )


@router.post(
    "/api/groups/{node_id}/subscriptions",
    response_model=MembershipOut,
    status_code=status.HTTP_201_CREATED,
)
def create_subscription(
    node_id: int,
    *,
    current_user=Depends(_get_optional_current_user),
) -> MembershipOut:
    """Subscribe the current user to a group, pending approval where required."""

    if current_user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    with managed_connection() as conn:
        group = _load_node(conn, node_id)
        resolver = build_resolver(conn)
        viewer = resolver.load_viewer(_user_id(current_user))
        try:
            membership = subscribe_viewer(conn, resolver, group, viewer, MEMBERSHIP_TYPE_DEFAULT)
        except SubscriptionError as exc:
            raise exc.to_http_exception() from exc
    return _membership_out(membership)


@router.get("/group/{entity_type}/{group_id}/subscribe/{membership_type}", response_class=HTMLResponse)
def confirm_subscribe(
    entity_type: str,
    group_id: int,
    membership_type: str,
    request: Request,
    current_user=Depends(_get_optional_current_user),
):
    """Ask the viewer to confirm a subscription; anonymous viewers log in first."""

    if current_user is None:
        return RedirectResponse(login_url(_current_destination(request)), status_code=status.HTTP_303_SEE_OTHER)

    _require_membership_type(membership_type)
    with managed_connection() as conn:
        group = _load_node(conn, group_id, entity_type)
        resolver = build_resolver(conn)
        viewer = resolver.load_viewer(_user_id(current_user))
        try:
            membership_state_for(resolver.resolve(group, viewer))
        except SubscriptionError as exc:
            raise exc.to_http_exception() from exc

    form = render_template(
        "subscribe.html",
        {
            "action": subscribe_url(group.entity_type, group.id, membership_type),
            "question": f"Are you sure you want to join the group {group.title}?",
            "submit_label": "Join",
            "cancel_url": f"/node/{group.id}",
        },
    )
    return HTMLResponse(render_page(group.title, {"#theme": "server_theme_prose_text", "#text": form}))


@router.post("/group/{entity_type}/{group_id}/subscribe/{membership_type}")
def submit_subscribe(
    entity_type: str,
    group_id: int,
    membership_type: str,
    request: Request,
    current_user=Depends(_get_optional_current_user),
) -> RedirectResponse:
    if current_user is None:
        return RedirectResponse(login_url(_current_destination(request)), status_code=status.HTTP_303_SEE_OTHER)

    _require_membership_type(membership_type)
    with managed_connection() as conn:
        group = _load_node(conn, group_id, entity_type)
        resolver = build_resolver(conn)
        viewer = resolver.load_viewer(_user_id(current_user))
        try:
            subscribe_viewer(conn, resolver, group, viewer, membership_type)
        except SubscriptionError as exc:
            raise exc.to_http_exception() from exc
    return RedirectResponse(f"/node/{group.id}", status_code=status.HTTP_303_SEE_OTHER)
