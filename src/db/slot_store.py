"""Slot table access: every write is one conditional UPDATE statement.

Mutual exclusion between concurrent claims and releases comes from the
database evaluating each statement's WHERE clause and applying its SET as a
single operation. Nothing here reads a row and then writes it back.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import structlog
from sqlalchemy import exists, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import aliased

from src.db.database import DEFAULT_ASYNC_DATABASE_URL, get_session
from src.db.models import SlotRecord
from src.exceptions import PersistenceError
from src.leases.models import Slot

logger = structlog.get_logger()

_CLEARED = {
    "holder_id": None,
    "holder_label": None,
    "leased_at": None,
    "expires_at": None,
}


def _logically_free(now: float):
    """SQL condition for a slot nobody validly holds at ``now``."""
    return or_(
        SlotRecord.holder_id.is_(None),
        SlotRecord.expires_at.is_(None),
        SlotRecord.expires_at <= now,
    )


def _to_slot(row: SlotRecord) -> Slot:
    return Slot(
        slot_no=row.slot_no,
        holder_id=row.holder_id,
        holder_label=row.holder_label,
        leased_at=row.leased_at,
        expires_at=row.expires_at,
    )


@contextmanager
def _store_errors(op: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("slot_store_failed", op=op, error=str(exc))
        raise PersistenceError(f"{op}: {exc}") from exc


class SlotStore:
    """Durable table of the fixed slot rows."""

    def __init__(self, db_url: str = DEFAULT_ASYNC_DATABASE_URL) -> None:
        self.db_url = db_url

    async def ensure_slots(self, slot_count: int) -> int:
        """Create rows 1..slot_count that do not exist yet. Returns how many were added."""
        with _store_errors("ensure_slots"):
            async with get_session(self.db_url) as s:
                result = await s.execute(select(SlotRecord.slot_no))
                existing = set(result.scalars().all())
                missing = [n for n in range(1, slot_count + 1) if n not in existing]
                s.add_all(SlotRecord(slot_no=n) for n in missing)
        return len(missing)

    async def list_all(self) -> list[Slot]:
        with _store_errors("list_all"):
            async with get_session(self.db_url) as s:
                result = await s.execute(select(SlotRecord).order_by(SlotRecord.slot_no))
                return [_to_slot(r) for r in result.scalars().all()]

    async def list_free(self, now: float) -> list[Slot]:
        with _store_errors("list_free"):
            async with get_session(self.db_url) as s:
                result = await s.execute(
                    select(SlotRecord)
                    .where(_logically_free(now))
                    .order_by(SlotRecord.slot_no)
                )
                return [_to_slot(r) for r in result.scalars().all()]

    async def list_held_by(self, user_id: str, now: float) -> list[Slot]:
        with _store_errors("list_held_by"):
            async with get_session(self.db_url) as s:
                result = await s.execute(
                    select(SlotRecord)
                    .where(
                        SlotRecord.holder_id == user_id,
                        SlotRecord.expires_at > now,
                    )
                    .order_by(SlotRecord.slot_no)
                )
                return [_to_slot(r) for r in result.scalars().all()]

    async def clear_expired(self, now: float) -> int:
        """Free every slot whose lease ended at or before ``now``."""
        stmt = (
            update(SlotRecord)
            .where(SlotRecord.expires_at.is_not(None), SlotRecord.expires_at <= now)
            .values(**_CLEARED)
            .execution_options(synchronize_session=False)
        )
        with _store_errors("clear_expired"):
            async with get_session(self.db_url) as s:
                result = await s.execute(stmt)
                return result.rowcount or 0

    async def try_claim(
        self,
        *,
        slot_no: int,
        user_id: str,
        label: Optional[str],
        now: float,
        expires_at: float,
        one_per_user: bool = False,
    ) -> bool:
        """Take ``slot_no`` for ``user_id`` if it is free. True if this call won.

        ``one_per_user`` adds a NOT EXISTS over the other rows. Two claims of
        different slots by the same user are only mutually exclusive when the
        backend serialises writers (SQLite does; Postgres needs SERIALIZABLE).
        """
        stmt = update(SlotRecord).where(
            SlotRecord.slot_no == slot_no,
            _logically_free(now),
        )
        if one_per_user:
            other = aliased(SlotRecord)
            stmt = stmt.where(
                ~exists().where(other.holder_id == user_id, other.expires_at > now)
            )
        stmt = stmt.values(
            holder_id=user_id,
            holder_label=label,
            leased_at=now,
            expires_at=expires_at,
        ).execution_options(synchronize_session=False)

        with _store_errors("try_claim"):
            async with get_session(self.db_url) as s:
                result = await s.execute(stmt)
                return result.rowcount == 1

    async def try_release(self, *, slot_no: int, user_id: str, now: float) -> bool:
        """Clear ``slot_no`` only if ``user_id`` holds a live lease on it."""
        stmt = (
            update(SlotRecord)
            .where(
                SlotRecord.slot_no == slot_no,
                SlotRecord.holder_id == user_id,
                SlotRecord.expires_at > now,
            )
            .values(**_CLEARED)
            .execution_options(synchronize_session=False)
        )
        with _store_errors("try_release"):
            async with get_session(self.db_url) as s:
                result = await s.execute(stmt)
                return result.rowcount == 1

    async def release_first_held(self, *, user_id: str, now: float) -> Optional[int]:
        """Clear the lowest-numbered live slot held by ``user_id``; return its number."""
        other = aliased(SlotRecord)
        target = (
            select(other.slot_no)
            .where(other.holder_id == user_id, other.expires_at > now)
            .order_by(other.slot_no)
            .limit(1)
            .scalar_subquery()
        )
        stmt = (
            update(SlotRecord)
            .where(
                SlotRecord.slot_no == target,
                SlotRecord.holder_id == user_id,
                SlotRecord.expires_at > now,
            )
            .values(**_CLEARED)
            .returning(SlotRecord.slot_no)
            .execution_options(synchronize_session=False)
        )
        with _store_errors("release_first_held"):
            async with get_session(self.db_url) as s:
                result = await s.execute(stmt)
                return result.scalar_one_or_none()
