import math
from typing import List, Sequence, Tuple, TypeVar

from tradetide.constants.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


def normalize_page(page: int, limit: int) -> Tuple[int, int]:
    """Clamp page to >= 1 and limit to 1..MAX_PAGE_SIZE."""
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else DEFAULT_PAGE_SIZE
    return page, min(limit, MAX_PAGE_SIZE)


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def paginate(items: Sequence[T], page: int, limit: int) -> Tuple[List[T], int, int]:
    """
    Slice an already-filtered sequence.
    Returns: (page_items, total, total_pages)
    """
    page, limit = normalize_page(page, limit)
    start = page_offset(page, limit)
    return list(items[start:start + limit]), len(items), total_pages(len(items), limit)
