from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

"""Stateless pagination of the working row set.

The current page number belongs to the caller (the import session) and is
reset to 1 whenever rows or mappings are replaced wholesale.
"""

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "Page",
    "check_page_size",
    "total_pages",
    "clamp_page",
    "page",
    "paginate",
]

DEFAULT_PAGE_SIZE = 30

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page_number: int
    total_pages: int
    total_rows: int


def check_page_size(page_size: int) -> None:
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")


def total_pages(row_count: int, page_size: int) -> int:
    check_page_size(page_size)
    return math.ceil(row_count / page_size)


def clamp_page(page_number: int, pages: int) -> int:
    """Clamp into [1, max(pages, 1)]."""
    return min(max(page_number, 1), max(pages, 1))


def page(rows: Sequence[T], page_size: int, page_number: int) -> list[T]:
    number = clamp_page(page_number, total_pages(len(rows), page_size))
    start = (number - 1) * page_size
    return list(rows[start:start + page_size])


def paginate(rows: Sequence[T], page_size: int, page_number: int) -> Page[T]:
    pages = total_pages(len(rows), page_size)
    number = clamp_page(page_number, pages)
    return Page(
        items=page(rows, page_size, number),
        page_number=number,
        total_pages=pages,
        total_rows=len(rows),
    )
