"""
Authorization gate.

Every check returns a boolean; callers decide how to render a denial. All
checks take the user explicitly, and an absent user is always denied.
"""
from typing import Iterable, Optional

from ..models import GatedPage, Role, User


def resolve_role(user: User) -> Role:
    return user.role


def check_permission(user: Optional[User], page) -> bool:
    """
    Decide whether ``user`` may view a gated page.

    Admins may view every page regardless of stored flags. Coaches need the
    page's flag set; unknown pages and unset flags deny.
    """
    if user is None:
        return False
    if user.is_admin:
        return True
    gated_page = GatedPage.parse(page)
    if gated_page is None:
        return False
    return user.permissions.allows(gated_page)


def authorize_mutation(user: Optional[User], owner_ids: Iterable[Optional[str]]) -> bool:
    """
    Decide whether ``user`` may change a coach-scoped resource.

    Args:
        user: Acting user
        owner_ids: Identifiers owning the resource (coach id and/or team id)

    Admins bypass ownership. A coach is allowed when any owner id matches the
    coach's own id or team id.
    """
    if user is None:
        return False
    if user.is_admin:
        return True
    mine = {i for i in (user.id, user.team_id) if i}
    return any(owner in mine for owner in owner_ids if owner)


def can_change_status(user: Optional[User]) -> bool:
    """Match status changes are reserved for admins."""
    return user is not None and user.is_admin


def can_toggle_timer(user: Optional[User]) -> bool:
    return user is not None and user.role in (Role.ADMIN, Role.COACH)


def can_manage_coaches(user: Optional[User]) -> bool:
    return user is not None and user.is_admin


def scorable_team_ids(user: Optional[User], team_ids: Iterable[str]) -> list:
    """Teams the user may enter scores for: all for admins, own team for coaches, none otherwise."""
    team_ids = list(team_ids)
    if user is None:
        return []
    if user.is_admin:
        return team_ids
    if user.team_id:
        return [t for t in team_ids if t == user.team_id]
    return []
