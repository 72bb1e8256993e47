"""Request dependencies.

The identity collaborator authenticates the caller upstream and forwards
the principal in the ``X-User-Id``, ``X-User-Role`` and ``X-User-Email``
headers.
"""

from fastapi import Header

from storefront.shared.errors import UnauthorizedError
from storefront.shared.principal import Principal, Role


def current_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> Principal:
    if not x_user_id or not x_user_role:
        raise UnauthorizedError({"principal": ["Authentication required"]})

    return Principal(id=x_user_id, role=Role.parse(x_user_role), email=x_user_email)
