import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

from rentledger.core.config import settings

T = TypeVar("T")


@dataclass(frozen=True)
class Pagination:
    """
    1-based page window over `total` rows.

    Rows [offset, end) belong to the page. A page past the last one is not an
    error, it simply selects nothing.
    """
    page: int
    limit: int
    total: int = 0

    @classmethod
    def build(
        cls,
        page: Optional[int],
        limit: Optional[int],
        total: int = 0,
        max_limit: Optional[int] = None,
    ) -> "Pagination":
        max_limit = max_limit or settings.MAX_PAGE_SIZE
        page = max(1, page or 1)
        limit = min(max(1, limit or settings.DEFAULT_PAGE_SIZE), max_limit)
        return cls(page=page, limit=limit, total=max(0, total))

    def with_total(self, total: int) -> "Pagination":
        return Pagination(page=self.page, limit=self.limit, total=max(0, total))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def end(self) -> int:
        return self.page * self.limit

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    def slice(self, items: Sequence[T]) -> List[T]:
        return list(items[self.offset:self.end])

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }
