"""Authenticated principal supplied by the identity collaborator.

Roles form a closed enumeration; authorization helpers branch on every
member explicitly so adding a role forces a decision at each check.
"""

from dataclasses import dataclass
from enum import Enum

from storefront.shared.errors import ForbiddenError, ValidationError


class Role(Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value):
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationError({"role": [f"Unknown role: {value!r}"]}) from None


@dataclass(frozen=True)
class Principal:
    id: str
    role: Role
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def require_role(principal: Principal, *roles: Role) -> None:
    """Raise ForbiddenError unless the principal holds one of ``roles``."""
    if principal.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise ForbiddenError({"principal": [f"Role {principal.role.value} is not permitted; requires one of: {allowed}"]})
