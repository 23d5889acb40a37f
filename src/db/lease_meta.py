"""Async CRUD for LeaseMeta, the small key/value table behind the panel."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import delete as sa_delete, select
from sqlalchemy.exc import SQLAlchemyError

from src.db.database import DEFAULT_ASYNC_DATABASE_URL, get_session
from src.db.models import LeaseMeta
from src.exceptions import PersistenceError

PANEL_MESSAGE_KEY = "panel_message_id"


async def get_meta(key: str, *, db_url: str = DEFAULT_ASYNC_DATABASE_URL) -> Optional[str]:
    """Return the stored value for ``key`` or None."""
    try:
        async with get_session(db_url) as s:
            result = await s.execute(select(LeaseMeta.value).where(LeaseMeta.key == key))
            return result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise PersistenceError(f"get_meta {key}: {exc}") from exc


async def set_meta(key: str, value: str, *, db_url: str = DEFAULT_ASYNC_DATABASE_URL) -> None:
    """Insert or overwrite ``key``."""
    try:
        async with get_session(db_url) as s:
            await s.merge(LeaseMeta(key=key, value=value))
    except SQLAlchemyError as exc:
        raise PersistenceError(f"set_meta {key}: {exc}") from exc


async def delete_meta(key: str, *, db_url: str = DEFAULT_ASYNC_DATABASE_URL) -> bool:
    """Delete ``key``. Returns True if a row was deleted."""
    try:
        async with get_session(db_url) as s:
            result = await s.execute(sa_delete(LeaseMeta).where(LeaseMeta.key == key))
            return result.rowcount > 0
    except SQLAlchemyError as exc:
        raise PersistenceError(f"delete_meta {key}: {exc}") from exc
