import math
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class PageQuery(BaseModel):
    """Shared page/pageSize query parameters."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PaginationMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    page_size: int = Field(alias="pageSize")
    total: int
    total_pages: int = Field(alias="totalPages")


class Page(BaseModel):
    data: List[Any]
    meta: PaginationMeta


def total_pages(total: int, page_size: int) -> int:
    """Number of pages for a result set; an empty set still has one page."""
    return max(math.ceil(total / page_size), 1)


def build_meta(page: int, page_size: int, total: int) -> PaginationMeta:
    return PaginationMeta(
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages(total, page_size),
    )
