"""Batched reads and in-memory paging over aggregate repositories."""

import math
from dataclasses import dataclass

from protean.utils.globals import current_domain

from storefront.shared.errors import ValidationError

_BATCH_SIZE = 200


def find_all(aggregate_cls, **filters) -> list:
    """Every aggregate matching ``filters``, loaded in batches."""
    dao = current_domain.repository_for(aggregate_cls)._dao
    found = []
    offset = 0
    while True:
        query = dao.query.filter(**filters) if filters else dao.query
        batch = query.offset(offset).limit(_BATCH_SIZE).all().items
        found.extend(batch)
        if len(batch) < _BATCH_SIZE:
            return found
        offset += _BATCH_SIZE


@dataclass(frozen=True)
class Page:
    count: int
    pages: int
    current_page: int
    items: list


def check_paging(page, limit) -> None:
    if page < 1 or limit < 1:
        raise ValidationError({"page": ["page and limit must be positive"]})


def paginate(items, page, limit) -> Page:
    """Slice ``items`` (already sorted) into the requested page."""
    check_paging(page, limit)
    start = (page - 1) * limit
    return Page(
        count=len(items),
        pages=math.ceil(len(items) / limit),
        current_page=page,
        items=items[start : start + limit],
    )
