"""
Vidtube Toggle Service — add-or-remove semantics for join rows (likes and
subscriptions).

One call flips the relationship between an actor and a target:
1. Look for the existing row
2. Present → conditional DELETE (a row already removed by a concurrent
   request deletes nothing, which still counts as removed)
3. Absent → INSERT; a unique-constraint violation means a concurrent
   request inserted the same pair first, so the existing row is re-read
   and reported as added
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.metrics import TOGGLE_OUTCOMES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToggleResult:
    added: bool
    record: Optional[Any] = None


class ToggleService:
    """Flips join rows keyed by an actor column plus one target column."""

    async def toggle(
        self,
        db: AsyncSession,
        model: Type[Any],
        kind: str,
        key: Dict[str, uuid.UUID],
    ) -> ToggleResult:
        filters = [getattr(model, column) == value for column, value in key.items()]

        existing_id = await db.scalar(select(model.id).where(*filters))
        if existing_id is not None:
            result = await db.execute(delete(model).where(model.id == existing_id))
            await db.commit()
            if result.rowcount == 0:
                logger.debug(f"{kind} toggle: row {existing_id} already removed")
            TOGGLE_OUTCOMES.labels(kind=kind, outcome="removed").inc()
            return ToggleResult(added=False)

        record = model(**key)
        db.add(record)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            record = await db.scalar(select(model).where(*filters))
            if record is None:
                raise
            logger.debug(f"{kind} toggle: concurrent insert won for {key}")
            TOGGLE_OUTCOMES.labels(kind=kind, outcome="duplicate").inc()
            return ToggleResult(added=True, record=record)

        TOGGLE_OUTCOMES.labels(kind=kind, outcome="added").inc()
        return ToggleResult(added=True, record=record)


toggle_service = ToggleService()
