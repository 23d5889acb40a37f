"""Render slot snapshots as the text shown on the status panel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from src.leases.models import Slot

FREE_MARKER = "[FREE]"
HELD_MARKER = "[HELD]"
EXPIRED = "expired"
UNKNOWN_HOLDER = "Unknown"
DEFAULT_TITLE = "Slot Status Panel"


@dataclass(frozen=True, slots=True)
class PanelDocument:
    """Rendered panel: a title plus one line per slot."""

    title: str
    header: tuple[str, ...]
    lines: tuple[str, ...]
    free_count: int
    total: int

    @property
    def summary(self) -> str:
        return f"Free: {self.free_count}/{self.total}"

    @property
    def text(self) -> str:
        parts = [self.title, ""]
        parts.extend(self.header)
        parts.extend(self.lines)
        parts.extend(["", self.summary])
        return "\n".join(parts)


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def format_remaining(seconds: float) -> str:
    """Human-readable time left on a lease.

    Whole minutes are floored. The minutes clause is dropped when it is
    exactly zero and the hours clause when there are no full hours.

    >>> format_remaining(8 * 3600)
    'in 8 hours'
    >>> format_remaining(90 * 60)
    'in 1 hour 30 minutes'
    >>> format_remaining(0)
    'expired'
    """
    if seconds <= 0:
        return EXPIRED
    total_minutes = int(seconds // 60)
    hours, minutes = divmod(total_minutes, 60)

    if hours <= 0:
        return f"in {_plural(minutes, 'minute')}"
    if minutes == 0:
        return f"in {_plural(hours, 'hour')}"
    return f"in {_plural(hours, 'hour')} {_plural(minutes, 'minute')}"


def format_slot_line(slot: Slot, now: float) -> str:
    label = f"[{slot.slot_no:02d}]"
    if slot.holder_id is None or slot.expires_at is None:
        return f"{label} {FREE_MARKER}"
    holder = slot.holder_label or UNKNOWN_HOLDER
    return f"{label} {HELD_MARKER} {holder} - {format_remaining(slot.expires_at - now)}"


def render_panel(
    slots: Sequence[Slot],
    now: float,
    title: str = DEFAULT_TITLE,
) -> PanelDocument:
    """Build the panel document for ``slots`` as seen at ``now``.

    Pure: identical inputs always give an identical document. Slots whose
    lease has run out but that were not swept yet are shown as "expired".
    """
    ordered = sorted(slots, key=lambda s: s.slot_no)
    return PanelDocument(
        title=title,
        header=("Pick a free slot to reserve it.", ""),
        lines=tuple(format_slot_line(s, now) for s in ordered),
        free_count=sum(1 for s in ordered if s.is_free(now)),
        total=len(ordered),
    )
