"""
Access scope guard

One rule for every cart, order and payment operation: the caller may touch a
resource if they are an admin or they own it. Ownership is resolved by the
service walking the resource chain up to the owning user id.

Outside-scope access is reported as "not found" so that callers cannot probe
for other users' resources. Role-disallowed actions on a resource the caller
can see are reported as "forbidden".
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from brewhaven.core.exceptions import NotFoundOrForbiddenError, ForbiddenError
from brewhaven.models.user import UserRoleName


@dataclass(frozen=True)
class Principal:
    """Authenticated caller identity."""
    id: int
    role: UserRoleName

    @property
    def is_admin(self) -> bool:
        return self.role == UserRoleName.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRoleName.ADMIN, UserRoleName.STAFF)


def can_access(principal: Principal, owner_id: Optional[int]) -> bool:
    """Owner-or-admin predicate."""
    return principal.is_admin or (owner_id is not None and principal.id == owner_id)


def ensure_can_access(
    principal: Principal,
    owner_id: Optional[int],
    error: Optional[NotFoundOrForbiddenError] = None,
) -> None:
    """
    Raise unless the principal is in scope for the resource.

    Args:
        principal: Caller
        owner_id: User id at the top of the resource's ownership chain
        error: The not-found flavour to raise (defaults to a generic one)
    """
    if not can_access(principal, owner_id):
        raise error or NotFoundOrForbiddenError("Resource not found")


def ensure_role(principal: Principal, roles: Iterable[UserRoleName], message: str) -> None:
    """Raise ForbiddenError unless the principal holds one of the roles."""
    if principal.role not in set(roles):
        raise ForbiddenError(message)


def ensure_admin(principal: Principal, message: str = "Admin access required") -> None:
    ensure_role(principal, (UserRoleName.ADMIN,), message)
