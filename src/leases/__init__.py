"""Slot leases: models, the lease manager and the panel renderer.

Import the manager directly from src.leases.manager; it depends on
src.db.slot_store, which itself uses the models re-exported here.
"""

from .models import (
    ClaimResult,
    ClaimStatus,
    ReleasePolicy,
    ReleaseResult,
    Slot,
)
from .render import PanelDocument, format_remaining, render_panel

__all__ = [
    "ClaimResult",
    "ClaimStatus",
    "PanelDocument",
    "ReleasePolicy",
    "ReleaseResult",
    "Slot",
    "format_remaining",
    "render_panel",
]
