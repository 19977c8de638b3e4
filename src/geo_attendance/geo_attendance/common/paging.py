from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, Optional, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a listing plus the metadata clients need for paging."""

    items: Sequence[T]
    total: int
    page: int
    per_page: int
    pages: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pages", math.ceil(self.total / self.per_page) if self.per_page else 0)

    def map(self, fn) -> "Page":
        return Page(items=[fn(item) for item in self.items], total=self.total, page=self.page, per_page=self.per_page)


def normalize_page(page: Optional[object], per_page: Optional[object], *, default_size: int = DEFAULT_PAGE_SIZE) -> tuple[int, int]:
    try:
        p = max(int(page or 1), 1)
    except (TypeError, ValueError):
        p = 1
    try:
        size = int(per_page or default_size)
        size = max(1, min(size, MAX_PAGE_SIZE))
    except (TypeError, ValueError):
        size = default_size
    return p, size


def sort_params(raw: Optional[str], allowed: Sequence[str]) -> list[tuple[str, bool]]:
    """
    ?sort=work_date,-check_in_time  => [("work_date", True), ("check_in_time", False)]
    Unknown keys ignored.
    """
    items: list[tuple[str, bool]] = []
    for part in [p.strip() for p in (raw or "").split(",") if p.strip()]:
        asc = True
        key = part
        if part.startswith("-"):
            asc = False
            key = part[1:]
        if key in allowed:
            items.append((key, asc))
    return items
