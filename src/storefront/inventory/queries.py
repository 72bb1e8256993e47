"""Read helpers over the Product repository, including the paged catalogue listing.

Customers browse everything that is not deactivated. Vendors see their own
products in every status. Admins see the whole catalogue and may narrow it
to one vendor.
"""

from storefront.inventory.product import Product, ProductStatus
from storefront.shared.errors import ForbiddenError, ValidationError
from storefront.shared.principal import Principal, Role
from storefront.shared.queries import Page, check_paging, find_all, paginate


def find_products(**filters) -> list:
    """Every product matching ``filters``."""
    return find_all(Product, **filters)


def list_products(principal: Principal, status=None, vendor_id=None, page=1, limit=10) -> Page:
    """Products visible to the principal, newest first."""
    check_paging(page, limit)

    filters = {}
    if status:
        try:
            filters["status"] = ProductStatus(status).value
        except ValueError:
            raise ValidationError({"status": [f"Unknown product status: {status!r}"]}) from None

    if principal.role is Role.VENDOR:
        if vendor_id and str(vendor_id) != principal.id:
            raise ForbiddenError({"vendor_id": ["Vendors may only list their own products"]})
        vendor_id = principal.id
    if vendor_id:
        filters["vendor_id"] = str(vendor_id)

    products = find_products(**filters)
    if principal.role is Role.CUSTOMER:
        products = [p for p in products if p.is_available]

    products.sort(key=lambda p: p.created_at, reverse=True)
    return paginate(products, page, limit)
