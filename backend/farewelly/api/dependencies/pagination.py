from dataclasses import dataclass
import math

from fastapi import Query

from ...core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from ...schemas.base_responses import PaginationInfo


@dataclass
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def info(self, total: int) -> PaginationInfo:
        return PaginationInfo(
            page=self.page,
            limit=self.limit,
            total=total,
            pages=math.ceil(total / self.limit) if total else 0,
        )


def get_pagination(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT, description="Items per page"),
) -> Pagination:
    return Pagination(page=page, limit=limit)
