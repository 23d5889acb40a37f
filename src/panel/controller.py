"""Panel Controller: keeps exactly one published panel in sync with the slots.

Every path that changes what users should see (the periodic tick, a claim,
a release, a manual refresh) ends in :meth:`PanelController.publish`, so
the panel is always a projection of the slot table and never edited on its
own.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Optional

import structlog

from src.db.database import DEFAULT_ASYNC_DATABASE_URL
from src.db.lease_meta import PANEL_MESSAGE_KEY, delete_meta, get_meta, set_meta
from src.leases.manager import LeaseManager
from src.leases.render import DEFAULT_TITLE, PanelDocument, render_panel
from src.panel.surface import DisplaySurface

logger = structlog.get_logger()


class PanelController:
    """Publishes the slot panel and refreshes it on a fixed interval.

    The id of the published artifact is persisted in the lease_meta table,
    so a restart keeps editing the same message instead of posting a new one.
    """

    def __init__(
        self,
        leases: LeaseManager,
        surface: DisplaySurface,
        *,
        refresh_interval: float = 60.0,
        title: str = DEFAULT_TITLE,
        db_url: str = DEFAULT_ASYNC_DATABASE_URL,
    ) -> None:
        self.leases = leases
        self.surface = surface
        self.refresh_interval = refresh_interval
        self.title = title
        self.db_url = db_url
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def publish(self) -> PanelDocument:
        """Sweep, render and push the panel; create it if it does not exist.

        Store and display failures propagate to the caller.
        """
        await self.leases.sweep_expired()
        slots = await self.leases.list_all()
        document = render_panel(slots, self.leases.now(), title=self.title)

        artifact_id = await get_meta(PANEL_MESSAGE_KEY, db_url=self.db_url)
        if artifact_id:
            if await self.surface.fetch(artifact_id) and await self.surface.update(
                artifact_id, document
            ):
                logger.debug("panel_updated", artifact_id=artifact_id)
                return document
            logger.warning("panel_artifact_missing", artifact_id=artifact_id)
            await delete_meta(PANEL_MESSAGE_KEY, db_url=self.db_url)

        new_id = await self.surface.create(document)
        await set_meta(PANEL_MESSAGE_KEY, new_id, db_url=self.db_url)
        logger.info("panel_published", artifact_id=new_id, free=document.free_count)
        return document

    async def refresh_once(self) -> bool:
        """Run one tick. Errors are logged, never raised. True on success."""
        try:
            await self.publish()
            return True
        except Exception as e:
            logger.error("panel_refresh_failed", error=str(e), exc_info=True)
            return False

    def start(self) -> None:
        """Start the refresh loop. Call after initialization completes."""
        if self.is_running:
            return
        self._running = True
        self._task = asyncio.create_task(self._refresh_loop())
        logger.info("panel_refresh_started", interval=self.refresh_interval)

    async def stop(self) -> None:
        """Cancel the refresh loop and wait for it to finish."""
        self._running = False
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("panel_refresh_stopped")

    async def _refresh_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.refresh_interval)
            if not self._running:
                break
            await self.refresh_once()
