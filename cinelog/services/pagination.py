"""
Page/limit pagination shared by the friends and lists endpoints.
"""

import math
from typing import Any, List, Sequence, Tuple, TypeVar

from ..core.exceptions import InvalidArgumentError
from ..models.response import PageMeta

T = TypeVar("T")

INVALID_PAGINATION = "Invalid query params for pagination"


def _parse_positive_int(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidArgumentError(INVALID_PAGINATION)
    if isinstance(value, int):
        parsed = value
    else:
        try:
            parsed = int(str(value).strip())
        except (TypeError, ValueError):
            raise InvalidArgumentError(INVALID_PAGINATION)
    if parsed <= 0:
        raise InvalidArgumentError(INVALID_PAGINATION)
    return parsed


def parse_pagination(page: Any, limit: Any) -> Tuple[int, int]:
    """
    Validate raw page/limit query values.

    Both must be integers >= 1. Missing, non-numeric, zero or negative
    values raise InvalidArgumentError.
    """
    return _parse_positive_int(page), _parse_positive_int(limit)


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def page_meta(total_count: int, limit: int) -> PageMeta:
    return PageMeta(
        total_count=total_count,
        limit=limit,
        total_pages=math.ceil(total_count / limit),
    )


def paginate(items: Sequence[T], page: int, limit: int) -> Tuple[List[T], PageMeta]:
    """Slice [(page-1)*limit, page*limit) of an already loaded sequence."""
    start = page_offset(page, limit)
    return list(items[start:start + limit]), page_meta(len(items), limit)
