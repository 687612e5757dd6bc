"""페이지네이션 가드 모듈.

Pagination guard module.
Validates a (pageNumber, pageSize) pair before any query is issued and turns
it into the (skip, take) window the entity store applies.
"""

from typing import NamedTuple

from app.config import settings
from app.utils.exceptions import InvalidPageError


class PageWindow(NamedTuple):
    """OFFSET/LIMIT 창 (Offset/limit window).

    Attributes:
        skip: 건너뛸 레코드 수 (Records to skip)
        take: 가져올 레코드 수 (Records to return)
    """

    skip: int
    take: int


def validate_page(
    page_number: int,
    page_size: int,
    max_page_size: int | None = None,
) -> PageWindow:
    """페이지 요청을 검증하고 (skip, take)를 계산합니다.

    Validate a page request and compute its window:
    ``skip = (page_number - 1) * page_size``, ``take = page_size``.

    Args:
        page_number: 페이지 번호, 1부터 시작 (Page number, 1-based)
        page_size: 페이지당 레코드 수 (Records per page)
        max_page_size: 페이지 크기 상한, 기본값은 설정값 (Cap; defaults to QUERY_MAX_PAGE_SIZE)

    Returns:
        PageWindow: (skip, take) 튜플 ((skip, take) tuple)

    Raises:
        InvalidPageError: 0 이하의 값 또는 상한 초과 (Non-positive values or size above the cap)
    """
    if page_size < 1:
        raise InvalidPageError("invalid page size", "Page size invalid!")
    if page_number < 1:
        raise InvalidPageError("invalid page number", "Page number invalid!")

    limit: int = settings.QUERY_MAX_PAGE_SIZE if max_page_size is None else max_page_size
    if page_size > limit:
        raise InvalidPageError("page size too large", f"Page size must not exceed {limit}")

    return PageWindow(skip=(page_number - 1) * page_size, take=page_size)
