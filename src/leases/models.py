"""Shared data structures for slot leases."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ReleasePolicy(str, Enum):
    """How users give slots back. One policy per deployment."""

    CHOOSE = "choose"  # users may hold several slots and pick which one to release
    SINGLE = "single"  # one slot per user, released without choosing


class ClaimStatus(str, Enum):
    CLAIMED = "claimed"
    ALREADY_HELD = "already_held"
    LIMIT_REACHED = "limit_reached"


@dataclass(frozen=True, slots=True)
class Slot:
    """Point-in-time view of one slot row."""

    slot_no: int
    holder_id: Optional[str] = None
    holder_label: Optional[str] = None
    leased_at: Optional[float] = None
    expires_at: Optional[float] = None

    def is_free(self, now: float) -> bool:
        """True when nobody holds the slot or the lease has run out."""
        return self.holder_id is None or self.expires_at is None or self.expires_at <= now

    def is_held_by(self, user_id: str, now: float) -> bool:
        return not self.is_free(now) and self.holder_id == user_id

    def remaining_seconds(self, now: float) -> float:
        if self.expires_at is None:
            return 0.0
        return self.expires_at - now


@dataclass(frozen=True, slots=True)
class ClaimResult:
    """Outcome of a claim attempt. Losing a race is a normal result, not an error."""

    status: ClaimStatus
    slot_no: int
    expires_at: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.status is ClaimStatus.CLAIMED


@dataclass(frozen=True, slots=True)
class ReleaseResult:
    """Outcome of a release attempt. ``slot_no`` is None when nothing was held."""

    slot_no: Optional[int] = None

    @property
    def released(self) -> bool:
        return self.slot_no is not None


NOT_HELD = ReleaseResult()
