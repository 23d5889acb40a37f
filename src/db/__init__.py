"""Database module for the slot lease panel."""

from .models import Base, LeaseMeta, SlotRecord
from .database import close_db_async, get_session, init_db_async

__all__ = [
    "Base",
    "LeaseMeta",
    "SlotRecord",
    "close_db_async",
    "get_session",
    "init_db_async",
]
