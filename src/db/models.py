"""SQLAlchemy ORM models for slot leases and panel metadata."""

from sqlalchemy import Column, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class SlotRecord(Base):
    """One reservable slot. Rows are created once at startup and never deleted."""

    __tablename__ = "slots"

    slot_no = Column(Integer, primary_key=True, autoincrement=False)
    holder_id = Column(String(255), nullable=True, index=True)
    holder_label = Column(String(255), nullable=True)  # display only, never an identity key
    leased_at = Column(Float, nullable=True)  # epoch seconds
    expires_at = Column(Float, nullable=True)  # epoch seconds

    def __repr__(self) -> str:
        return f"<SlotRecord(slot_no={self.slot_no}, holder_id={self.holder_id})>"


class LeaseMeta(Base):
    """Small key/value table, e.g. the id of the published panel message."""

    __tablename__ = "lease_meta"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<LeaseMeta(key={self.key}, value={self.value})>"
