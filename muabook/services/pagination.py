from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from muabook.core.errors import ValidationError

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100


@dataclass
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError("page must be at least 1")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total_items: int) -> dict[str, Any]:
        total_pages = (total_items + self.limit - 1) // self.limit
        return {
            "current_page": self.page,
            "per_page": self.limit,
            "total_items": total_items,
            "total_pages": total_pages,
            "has_next_page": self.page < total_pages,
            "has_prev_page": self.page > 1,
        }
