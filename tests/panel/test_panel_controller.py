"""Tests for PanelController publish and refresh loop."""

import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from src.db.lease_meta import PANEL_MESSAGE_KEY, get_meta, set_meta
from src.db.slot_store import SlotStore
from src.exceptions import PersistenceError
from src.leases.manager import LeaseManager
from src.panel.controller import PanelController
from src.panel.surface import DisplaySurface

HOUR = 3600.0


class FakeSurface:
    """In-memory display: artifacts are numbered documents."""

    def __init__(self):
        self.artifacts = {}
        self.creates = 0
        self.updates = 0
        self._next_id = 100

    async def create(self, document):
        self._next_id += 1
        self.creates += 1
        self.artifacts[str(self._next_id)] = document
        return str(self._next_id)

    async def update(self, artifact_id, document):
        if artifact_id not in self.artifacts:
            return False
        self.updates += 1
        self.artifacts[artifact_id] = document
        return True

    async def fetch(self, artifact_id):
        return artifact_id in self.artifacts


@pytest_asyncio.fixture
async def leases(db_url, clock):
    manager = LeaseManager(SlotStore(db_url), slot_count=3, lease_hours=8, clock=clock)
    await manager.initialize()
    return manager


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def panel(leases, surface, db_url):
    return PanelController(leases, surface, refresh_interval=0.01, db_url=db_url)


def test_fake_surface_satisfies_protocol(surface):
    assert isinstance(surface, DisplaySurface)


class TestPublish:
    @pytest.mark.asyncio
    async def test_first_publish_creates_and_remembers(self, panel, surface, db_url):
        doc = await panel.publish()

        assert surface.creates == 1
        artifact_id = await get_meta(PANEL_MESSAGE_KEY, db_url=db_url)
        assert surface.artifacts[artifact_id] == doc

    @pytest.mark.asyncio
    async def test_publish_twice_updates_single_artifact(self, panel, surface):
        first = await panel.publish()
        second = await panel.publish()

        assert first == second
        assert surface.creates == 1
        assert surface.updates == 1
        assert len(surface.artifacts) == 1

    @pytest.mark.asyncio
    async def test_survives_restart(self, leases, surface, db_url):
        await PanelController(leases, surface, db_url=db_url).publish()
        await PanelController(leases, surface, db_url=db_url).publish()

        assert surface.creates == 1
        assert surface.updates == 1

    @pytest.mark.asyncio
    async def test_deleted_artifact_is_replaced(self, panel, surface, db_url):
        await panel.publish()
        surface.artifacts.clear()

        await panel.publish()

        assert surface.creates == 2
        new_id = await get_meta(PANEL_MESSAGE_KEY, db_url=db_url)
        assert new_id in surface.artifacts

    @pytest.mark.asyncio
    async def test_update_not_found_falls_back_to_create(self, panel, surface, db_url):
        await set_meta(PANEL_MESSAGE_KEY, "stale", db_url=db_url)
        surface.fetch = AsyncMock(return_value=True)

        await panel.publish()

        assert surface.creates == 1
        assert await get_meta(PANEL_MESSAGE_KEY, db_url=db_url) != "stale"

    @pytest.mark.asyncio
    async def test_publish_sweeps_expired(self, panel, leases, clock):
        await leases.claim(1, "alice", "Alice", 1)
        clock.advance(2 * HOUR)

        doc = await panel.publish()

        assert doc.free_count == 3
        assert (await leases.list_all())[0].holder_id is None

    @pytest.mark.asyncio
    async def test_surface_failure_propagates(self, panel, surface):
        surface.create = AsyncMock(side_effect=ConnectionError("down"))
        with pytest.raises(ConnectionError):
            await panel.publish()


class TestRefreshLoop:
    @pytest.mark.asyncio
    async def test_refresh_once_swallows_errors(self, panel, surface):
        surface.create = AsyncMock(side_effect=ConnectionError("down"))
        assert await panel.refresh_once() is False

    @pytest.mark.asyncio
    async def test_refresh_once_reports_store_failure(self, bare_db_url, clock, surface):
        leases = LeaseManager(SlotStore(bare_db_url), slot_count=3, lease_hours=8, clock=clock)
        panel = PanelController(leases, surface, db_url=bare_db_url)

        with pytest.raises(PersistenceError):
            await panel.publish()
        assert await panel.refresh_once() is False
        assert surface.creates == 0

    @pytest.mark.asyncio
    async def test_loop_keeps_ticking_after_failure(self, panel, surface):
        surface.create = AsyncMock(side_effect=[ConnectionError("down"), "201"])

        panel.start()
        assert panel.is_running
        for _ in range(100):
            if surface.create.await_count >= 2:
                break
            await asyncio.sleep(0.01)
        await panel.stop()

        assert surface.create.await_count >= 2
        assert not panel.is_running

    @pytest.mark.asyncio
    async def test_stop_without_start(self, panel):
        await panel.stop()
        assert not panel.is_running

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, panel):
        panel.start()
        task = panel._task
        panel.start()
        assert panel._task is task
        await panel.stop()
