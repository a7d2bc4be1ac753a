# storefront/core/pagination.py
import math


def page_offset(page: int, page_size: int) -> int:
    """Row offset of a 1-based page."""
    return (max(page, 1) - 1) * page_size


def total_pages(total: int, page_size: int) -> int:
    """ceil(total / page_size); an empty table has 0 pages."""
    return math.ceil(total / page_size)
