"""Display surface protocol: where the rendered panel is shown."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from src.leases.render import PanelDocument


@runtime_checkable
class DisplaySurface(Protocol):
    """Interface that every panel display backend must satisfy.

    Artifact ids are opaque strings; the panel controller only stores and
    hands them back.
    """

    async def create(self, document: PanelDocument) -> str: ...

    async def update(self, artifact_id: str, document: PanelDocument) -> bool:
        """Replace the artifact's content. False if the artifact no longer exists."""
        ...

    async def fetch(self, artifact_id: str) -> bool:
        """True if the artifact still exists."""
        ...
