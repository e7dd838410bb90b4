"""Role capabilities for the review workbench."""
from enum import Enum
from typing import Dict, FrozenSet, Optional, Union

from app.schemas.case import UserRole


class Capability(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    SUBMIT = "submit"
    AUDIT = "audit"


ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.VIEWER: frozenset({Capability.VIEW}),
    UserRole.REVIEWER: frozenset({Capability.VIEW, Capability.EDIT, Capability.SUBMIT}),
    UserRole.ADMIN: frozenset(Capability),
}


def parse_role(role: Union[UserRole, str, None]) -> Optional[UserRole]:
    """Return the UserRole for ``role``, or None when it is not a known role."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return None


def has_permission(role: Union[UserRole, str, None], capability: Capability) -> bool:
    parsed = parse_role(role)
    if parsed is None:
        return False
    return capability in ROLE_CAPABILITIES[parsed]
