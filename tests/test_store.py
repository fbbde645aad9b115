"""Direct unit tests for ClassConductStore.

Covers loading and back-filling, copy semantics of named collections,
and the clear / delete paths used when an entry is removed.
"""

# pylint: disable=protected-access  # Accessing _store for patching
# pylint: disable=redefined-outer-name  # Pytest fixtures redefine names

from unittest.mock import AsyncMock, patch

import pytest
from homeassistant.core import HomeAssistant

from custom_components.classconduct import const
from custom_components.classconduct.store import ClassConductStore


@pytest.fixture
def store(hass: HomeAssistant) -> ClassConductStore:
    """Return a store instance."""
    return ClassConductStore(hass)


async def test_async_initialize_creates_default_structure(
    hass: HomeAssistant, store: ClassConductStore
) -> None:
    """A fresh install gets every collection and default settings."""
    with patch.object(store._store, "async_load", return_value=None):
        await store.async_initialize()

    data = store.data
    for collection in const.STORE_COLLECTIONS:
        assert collection in data
    assert data[const.DATA_META][const.DATA_META_SCHEMA_VERSION] == const.SCHEMA_VERSION
    assert data[const.DATA_STUDENTS] == {}
    assert data[const.DATA_SETTINGS][const.DATA_SETTINGS_DEFAULT_SCORE] == 100
    assert data[const.DATA_SETTINGS][const.DATA_SETTINGS_LOCKED_WEEKS] == []


async def test_async_initialize_backfills_existing_data(
    hass: HomeAssistant, store: ClassConductStore
) -> None:
    """Older documents gain missing collections and settings keys."""
    existing_data = {
        const.DATA_STUDENTS: {"s1": {"id": "s1", "name": "An"}},
        const.DATA_SETTINGS: {
            const.DATA_SETTINGS_THRESHOLDS: {const.THRESHOLD_GOOD: 85},
            const.DATA_SETTINGS_LOCKED_WEEKS: ["3", 1, 3, "x"],
        },
    }

    with patch.object(store._store, "async_load", return_value=existing_data):
        await store.async_initialize()

    assert store.get(const.DATA_STUDENTS) == {"s1": {"id": "s1", "name": "An"}}
    assert store.get(const.DATA_COIN_GRANTS) == {}
    settings = store.get(const.DATA_SETTINGS)
    assert settings[const.DATA_SETTINGS_THRESHOLDS] == {
        "good": 85,
        "fair": 65,
        "pass": 50,
    }
    assert settings[const.DATA_SETTINGS_LOCKED_WEEKS] == [1, 3]
    assert settings[const.DATA_SETTINGS_COIN_RULES][const.COIN_RULE_WEEKLY_GOOD] == 50


async def test_get_returns_independent_copy(
    hass: HomeAssistant, store: ClassConductStore
) -> None:
    """Mutating a fetched collection leaves the cache untouched until set()."""
    students = store.get(const.DATA_STUDENTS)
    students["s1"] = {"name": "An"}
    assert store.get(const.DATA_STUDENTS) == {}

    with patch.object(store._store, "async_delay_save") as mock_delay:
        store.set(const.DATA_STUDENTS, students)
    students["s2"] = {"name": "Binh"}

    assert store.get(const.DATA_STUDENTS) == {"s1": {"name": "An"}}
    mock_delay.assert_called_once()


async def test_unknown_collection_rejected(
    hass: HomeAssistant, store: ClassConductStore
) -> None:
    """Only named collections are readable or writable."""
    with pytest.raises(KeyError):
        store.get("attendance")
    with pytest.raises(KeyError):
        store.set("attendance", {})


async def test_async_save_logs_os_error(
    hass: HomeAssistant, store: ClassConductStore, caplog: pytest.LogCaptureFixture
) -> None:
    """File system errors are logged, not raised."""
    with patch.object(
        store._store, "async_save", AsyncMock(side_effect=OSError("disk full"))
    ):
        await store.async_save()

    assert "Failed to save storage due to file system error" in caplog.text


async def test_async_delete_storage_resets_and_removes(
    hass: HomeAssistant, store: ClassConductStore
) -> None:
    """Deleting storage clears the cache and removes the file."""
    with patch.object(store._store, "async_delay_save"):
        store.set(const.DATA_STUDENTS, {"s1": {"name": "An"}})

    with (
        patch.object(store._store, "async_save", AsyncMock()) as mock_save,
        patch.object(store._store, "async_remove", AsyncMock()) as mock_remove,
    ):
        await store.async_delete_storage()

    assert store.get(const.DATA_STUDENTS) == {}
    mock_save.assert_awaited_once()
    mock_remove.assert_awaited_once()
