from math import ceil
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from market_chat.app.common.utils.consts import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    DEFAULT_SORT_BY,
    MAX_LIMIT,
    SortOrder,
)

T = TypeVar("T")


class PaginationOptions(BaseModel):
    page: int = Field(DEFAULT_PAGE, ge=1, description="페이지 번호 (1부터 시작)")
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="페이지당 항목 수")
    sort_by: str = Field(DEFAULT_SORT_BY, description="정렬 필드 (저장 필드명)")
    sort_order: SortOrder = Field(SortOrder.DESC, description="정렬 순서")

    @property
    def skip(self) -> int:
        return get_skip(self.page, self.limit)

    @property
    def ascending(self) -> bool:
        return self.sort_order == SortOrder.ASC


class PaginationMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool
    next_page: int | None
    previous_page: int | None


class Page(BaseModel, Generic[T]):
    items: list[T]
    meta: PaginationMeta


def get_skip(page: int, limit: int) -> int:
    return (page - 1) * limit


def create_meta(total: int, page: int, limit: int) -> PaginationMeta:
    total_pages = ceil(total / limit)
    return PaginationMeta(
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_previous_page=page > 1,
        next_page=page + 1 if page < total_pages else None,
        previous_page=page - 1 if page > 1 else None,
    )


def paginate(items: list[T], total: int, options: PaginationOptions) -> Page[T]:
    return Page(items=items, meta=create_meta(total, options.page, options.limit))
