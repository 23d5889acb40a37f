"""Tests for the lease_meta key/value helpers."""

import pytest

from src.db.lease_meta import PANEL_MESSAGE_KEY, delete_meta, get_meta, set_meta
from src.exceptions import PersistenceError


@pytest.mark.asyncio
async def test_get_missing_key_returns_none(db_url):
    assert await get_meta(PANEL_MESSAGE_KEY, db_url=db_url) is None


@pytest.mark.asyncio
async def test_set_overwrites_existing_value(db_url):
    await set_meta(PANEL_MESSAGE_KEY, "100", db_url=db_url)
    await set_meta(PANEL_MESSAGE_KEY, "200", db_url=db_url)
    assert await get_meta(PANEL_MESSAGE_KEY, db_url=db_url) == "200"


@pytest.mark.asyncio
async def test_delete(db_url):
    await set_meta(PANEL_MESSAGE_KEY, "100", db_url=db_url)
    assert await delete_meta(PANEL_MESSAGE_KEY, db_url=db_url) is True
    assert await delete_meta(PANEL_MESSAGE_KEY, db_url=db_url) is False
    assert await get_meta(PANEL_MESSAGE_KEY, db_url=db_url) is None


@pytest.mark.asyncio
async def test_missing_table_raises_persistence_error(bare_db_url):
    with pytest.raises(PersistenceError, match="get_meta"):
        await get_meta(PANEL_MESSAGE_KEY, db_url=bare_db_url)
    with pytest.raises(PersistenceError, match="set_meta"):
        await set_meta(PANEL_MESSAGE_KEY, "100", db_url=bare_db_url)
