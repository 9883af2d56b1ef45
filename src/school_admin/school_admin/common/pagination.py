from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .validators import optional_positive_int

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_args(cls, page: Any, limit: Any) -> "PageRequest":
        p = optional_positive_int(page, "page") or DEFAULT_PAGE
        n = optional_positive_int(limit, "limit") or DEFAULT_PAGE_SIZE
        return cls(page=p, limit=min(n, MAX_PAGE_SIZE))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    request: PageRequest

    def pagination(self) -> dict:
        return {
            "currentPage": self.request.page,
            "totalPages": math.ceil(self.total / self.request.limit) if self.total else 0,
            "totalItems": self.total,
            "itemsPerPage": self.request.limit,
        }
