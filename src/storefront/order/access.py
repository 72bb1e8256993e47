"""Who may do what with an order.

Every check branches on each ``Role`` member explicitly.
"""

from storefront.shared.errors import ForbiddenError
from storefront.shared.principal import Principal, Role


def _deny(message):
    return ForbiddenError({"order": [message]})


def is_owner(order, principal: Principal) -> bool:
    return str(order.owner_id) == str(principal.id)


def authorize_read(order, principal: Principal) -> None:
    """Owners, admins and vendors with a line in the order may read it."""
    if principal.role is Role.ADMIN:
        return
    if principal.role is Role.CUSTOMER:
        if is_owner(order, principal):
            return
        raise _deny("Access to this order denied")
    if principal.role is Role.VENDOR:
        if order.has_vendor(principal.id) or is_owner(order, principal):
            return
        raise _deny("Access to this order denied")
    raise _deny(f"Unsupported role {principal.role.value}")


def authorize_owner_or_admin(order, principal: Principal, action: str) -> None:
    """Paying for and canceling an order belong to its owner (or an admin)."""
    if principal.role is Role.ADMIN:
        return
    if principal.role is Role.CUSTOMER:
        if is_owner(order, principal):
            return
        raise _deny(f"Only the customer who placed the order may {action} it")
    if principal.role is Role.VENDOR:
        # Vendors may shop too, but never act on their customers' orders
        if is_owner(order, principal):
            return
        raise _deny(f"Vendors may not {action} orders placed by customers")
    raise _deny(f"Unsupported role {principal.role.value}")


def authorize_fulfilment(order, principal: Principal) -> None:
    """Admins, or vendors owning at least one product in the order."""
    if principal.role is Role.ADMIN:
        return
    if principal.role is Role.VENDOR:
        if order.has_vendor(principal.id):
            return
        raise _deny("Vendors may only fulfil orders containing their products")
    if principal.role is Role.CUSTOMER:
        raise _deny("Customers may not update fulfilment status")
    raise _deny(f"Unsupported role {principal.role.value}")


def authorize_return_request(order, principal: Principal) -> None:
    if not is_owner(order, principal):
        raise _deny("Only the customer who placed the order may request a return")
