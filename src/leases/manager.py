"""Lease Manager: claim, release and expiry rules for the fixed slot pool.

The manager is the only writer of slot rows. Each write maps to exactly one
conditional statement in :class:`SlotStore`, so two users picking the same
free slot from separately rendered menus are resolved by the database: one
claim applies, the other gets ``ALREADY_HELD`` and is asked to pick again.

Expiry is lazy. A lease whose ``expires_at`` has passed counts as free in
every decision path (claims, free/held listings) even before
:meth:`LeaseManager.sweep_expired` physically clears the row.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

import structlog

from src.db.slot_store import SlotStore
from src.exceptions import InvalidSlotError, LeasePolicyError
from src.leases.models import (
    NOT_HELD,
    ClaimResult,
    ClaimStatus,
    ReleasePolicy,
    ReleaseResult,
    Slot,
)

logger = structlog.get_logger()

SECONDS_PER_HOUR = 3600


class LeaseManager:
    """Business rules over the slot store.

    Attributes:
        slot_count: Number of slots, numbered 1..slot_count.
        lease_hours: Default lease duration for :meth:`claim`.
        policy: Release policy in force for this deployment.
    """

    def __init__(
        self,
        store: SlotStore,
        *,
        slot_count: int,
        lease_hours: float,
        policy: ReleasePolicy = ReleasePolicy.CHOOSE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.slot_count = slot_count
        self.lease_hours = lease_hours
        self.policy = ReleasePolicy(policy)
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    async def initialize(self) -> None:
        """Make sure rows 1..slot_count exist."""
        created = await self.store.ensure_slots(self.slot_count)
        logger.info(
            "slots_initialized",
            slot_count=self.slot_count,
            created=created,
            policy=self.policy.value,
        )

    def validate_slot_no(self, slot_no: object) -> int:
        """Return ``slot_no`` as an int in range or raise InvalidSlotError."""
        if isinstance(slot_no, bool):
            raise InvalidSlotError(f"invalid slot number: {slot_no!r}")
        if isinstance(slot_no, str):
            try:
                slot_no = int(slot_no.strip())
            except ValueError:
                raise InvalidSlotError(f"invalid slot number: {slot_no!r}") from None
        if not isinstance(slot_no, int) or not 1 <= slot_no <= self.slot_count:
            raise InvalidSlotError(
                f"slot number must be between 1 and {self.slot_count}, got {slot_no!r}"
            )
        return slot_no

    # ==================== Reads ====================

    async def sweep_expired(self) -> int:
        """Free every lease that ended at or before now. Safe to call at any rate."""
        cleared = await self.store.clear_expired(self.now())
        if cleared:
            logger.info("slots_swept", cleared=cleared)
        return cleared

    async def list_all(self) -> list[Slot]:
        return await self.store.list_all()

    async def list_free(self) -> list[Slot]:
        return await self.store.list_free(self.now())

    async def list_held_by(self, user_id: str) -> list[Slot]:
        """Slots ``user_id`` holds with a lease still running at read time."""
        return await self.store.list_held_by(user_id, self.now())

    # ==================== Writes ====================

    async def claim(
        self,
        slot_no: int,
        user_id: str,
        label: Optional[str],
        duration_hours: Optional[float] = None,
    ) -> ClaimResult:
        """Lease ``slot_no`` to ``user_id`` for ``duration_hours``.

        Returns ``CLAIMED`` if this call won the slot, ``ALREADY_HELD`` if
        someone else holds it, and under the single-slot policy
        ``LIMIT_REACHED`` if the user already holds another slot.
        """
        slot_no = self.validate_slot_no(slot_no)
        hours = self.lease_hours if duration_hours is None else duration_hours
        if hours <= 0:
            raise ValueError(f"duration_hours must be positive, got {hours}")

        now = self.now()
        expires_at = now + hours * SECONDS_PER_HOUR
        one_per_user = self.policy is ReleasePolicy.SINGLE

        won = await self.store.try_claim(
            slot_no=slot_no,
            user_id=user_id,
            label=label,
            now=now,
            expires_at=expires_at,
            one_per_user=one_per_user,
        )
        if won:
            logger.info(
                "slot_claimed",
                slot_no=slot_no,
                user_id=user_id,
                expires_at=expires_at,
            )
            return ClaimResult(ClaimStatus.CLAIMED, slot_no, expires_at)

        status = ClaimStatus.ALREADY_HELD
        if one_per_user and await self.store.list_held_by(user_id, now):
            status = ClaimStatus.LIMIT_REACHED
        logger.info("slot_claim_conflict", slot_no=slot_no, user_id=user_id, status=status.value)
        return ClaimResult(status, slot_no)

    async def release(self, slot_no: int, user_id: str) -> ReleaseResult:
        """Release ``slot_no`` if ``user_id`` currently holds it."""
        if self.policy is not ReleasePolicy.CHOOSE:
            raise LeasePolicyError("release by slot number requires the 'choose' policy")
        slot_no = self.validate_slot_no(slot_no)

        if await self.store.try_release(slot_no=slot_no, user_id=user_id, now=self.now()):
            logger.info("slot_released", slot_no=slot_no, user_id=user_id)
            return ReleaseResult(slot_no)

        logger.info("slot_release_not_held", slot_no=slot_no, user_id=user_id)
        return NOT_HELD

    async def release_any_held_by(self, user_id: str) -> ReleaseResult:
        """Release whichever slot ``user_id`` holds (single-slot policy only)."""
        if self.policy is not ReleasePolicy.SINGLE:
            raise LeasePolicyError("release without a slot number requires the 'single' policy")

        slot_no = await self.store.release_first_held(user_id=user_id, now=self.now())
        if slot_no is None:
            logger.info("slot_release_not_held", user_id=user_id)
            return NOT_HELD

        logger.info("slot_released", slot_no=slot_no, user_id=user_id)
        return ReleaseResult(slot_no)
