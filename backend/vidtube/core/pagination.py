"""
Vidtube Pagination — page/limit parsing with a hard cap, and the shared
``paginate`` helper used by the listing routes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from fastapi import Query
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.config import get_settings
from vidtube.schemas.schemas import Page


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def clamp_page_params(page: int, limit: Optional[int]) -> PageParams:
    settings = get_settings()
    if limit is None:
        limit = settings.default_page_size
    # Oversized requests are capped rather than rejected
    return PageParams(page=page, limit=min(limit, settings.max_page_size))


def page_params(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
) -> PageParams:
    """FastAPI dependency; values < 1 or non-integers become a 400 at the boundary."""
    return clamp_page_params(page, limit)


async def paginate(
    db: AsyncSession,
    query: Select,
    params: PageParams,
    transform: Optional[Callable[[Any], Any]] = None,
) -> Page:
    """Run ``query`` for one page and count every row matching its filter."""
    total = await db.scalar(
        select(func.count()).select_from(query.order_by(None).subquery())
    ) or 0

    # Past the last page (offset may exceed BIGINT)
    if params.offset >= total:
        return Page(items=[], total=total, page=params.page, limit=params.limit)

    result = await db.execute(query.offset(params.offset).limit(params.limit))
    rows = result.scalars().all()
    items = [transform(r) for r in rows] if transform else list(rows)

    return Page(items=items, total=total, page=params.page, limit=params.limit)
