from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from modcatalog.models.catalog import Catalog
from modcatalog.models.ids import ModId
from modcatalog.utils.change_notes import ChangeNotes
from modcatalog.utils.exception import SnapshotLoadError
from modcatalog.utils.versioned_store import VersionedStore

CREATED = datetime(2024, 6, 1, 12, 0)


def notes(*lines: str) -> ChangeNotes:
    change_notes = ChangeNotes()
    for line in lines:
        change_notes.update(line)
    return change_notes


def test_file_names(tmp_path: Path) -> None:
    store = VersionedStore(tmp_path)
    assert store.snapshot_path(7).name == "ModCatalog_v0007.json"
    assert store.change_notes_path(7).name == "ModCatalog_v0007_ChangeNotes.txt"


def test_consecutive_saves_increase_version_by_one(tmp_path: Path, catalog: Catalog) -> None:
    store = VersionedStore(tmp_path)

    assert store.save(catalog, notes("first"), created=CREATED)
    assert catalog.version == 4
    assert store.save(catalog, notes("second"), created=CREATED)
    assert catalog.version == 5

    assert store.versions() == [4, 5]
    assert store.latest_version() == 5
    assert catalog.updated == CREATED
    change_notes = store.change_notes_path(5).read_text(encoding="utf-8")
    assert change_notes.startswith("Change Notes for Catalog 0005\n")
    assert "second" in change_notes


def test_load_latest_rebuilds_catalog(tmp_path: Path, catalog: Catalog) -> None:
    store = VersionedStore(tmp_path)
    store.save(catalog, notes(), created=CREATED)

    loaded = store.load_latest()

    assert loaded is not None
    assert loaded.version == 4
    assert loaded.updated == CREATED
    assert loaded.get_mod(ModId.regular(1000002)) is not None
    assert loaded.get_author(custom_url="quboid") is not None


def test_load_latest_in_empty_folder(tmp_path: Path) -> None:
    assert VersionedStore(tmp_path / "missing").load_latest() is None


def test_existing_snapshot_is_never_overwritten(tmp_path: Path, catalog: Catalog) -> None:
    store = VersionedStore(tmp_path)
    store.snapshot_path(4).write_text("{}", encoding="utf-8")

    assert not store.save(catalog, notes("change"), created=CREATED)

    assert catalog.version == 3
    assert store.snapshot_path(4).read_text(encoding="utf-8") == "{}"


def test_failed_change_notes_write_leaves_nothing_behind(
    tmp_path: Path, catalog: Catalog
) -> None:
    store = VersionedStore(tmp_path)
    store.change_notes_path(4).mkdir()

    assert not store.save(catalog, notes("change"), created=CREATED)

    assert catalog.version == 3
    assert not store.snapshot_path(4).exists()


def test_unwritable_folder(tmp_path: Path, catalog: Catalog) -> None:
    store = VersionedStore(tmp_path)

    with patch(
        "modcatalog.utils.versioned_store.open",
        create=True,
        side_effect=PermissionError("denied"),
    ):
        assert not store.save(catalog, notes("change"), created=CREATED)

    assert catalog.version == 3


def test_load_invalid_snapshot(tmp_path: Path) -> None:
    store = VersionedStore(tmp_path)
    path = store.snapshot_path(1)
    path.write_text("not json", encoding="utf-8")

    with pytest.raises(SnapshotLoadError):
        store.load(path)
    with pytest.raises(SnapshotLoadError):
        store.load(tmp_path / "missing.json")


def test_load_snapshot_with_invalid_id(tmp_path: Path) -> None:
    store = VersionedStore(tmp_path)
    path = store.snapshot_path(1)
    path.write_text('{"version": 1, "mods": [{"steam_id": 0}]}', encoding="utf-8")

    with pytest.raises(SnapshotLoadError):
        store.load(path)


def test_versions_ignores_other_files(tmp_path: Path) -> None:
    store = VersionedStore(tmp_path)
    for name in ("ModCatalog_v0002.json", "ModCatalog_v0002_ChangeNotes.txt", "notes.json"):
        (tmp_path / name).write_text("", encoding="utf-8")

    assert store.versions() == [2]
