"""Paging parameters shared by every list endpoint."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional


@dataclass
class PageParams:
    page: int = 1
    limit: int = 10
    order: str = "desc"
    search: Optional[str] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def descending(self) -> bool:
        return self.order == "desc"

    @property
    def search_term(self) -> Optional[str]:
        term = (self.search or "").strip()
        return term or None


def build_pagination(total: int, page: int, limit: int) -> dict:
    """Return the pagination block sent alongside every list response."""
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }
