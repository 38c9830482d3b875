import re
from datetime import datetime
from pathlib import Path

import msgspec
from loguru import logger

from modcatalog.models.catalog import Catalog
from modcatalog.models.snapshot import CatalogSnapshot, from_snapshot, to_snapshot
from modcatalog.utils.change_notes import ChangeNotes
from modcatalog.utils.constants import (
    CATALOG_FILE_PREFIX,
    CHANGE_NOTES_SUFFIX,
    SNAPSHOT_SUFFIX,
)
from modcatalog.utils.exception import (
    DuplicateCatalogEntry,
    InvalidModId,
    SnapshotLoadError,
)

SNAPSHOT_NAME_PATTERN = re.compile(
    rf"^{re.escape(CATALOG_FILE_PREFIX)}(\d{{4,}}){re.escape(SNAPSHOT_SUFFIX)}$"
)


class VersionedStore:
    """
    A folder of numbered, write-once catalog snapshots, each with its change notes.

    Snapshots are named ``ModCatalog_v0042.json``, their change notes
    ``ModCatalog_v0042_ChangeNotes.txt``.
    """

    def __init__(self, folder: Path) -> None:
        self.folder = Path(folder)

    def snapshot_path(self, version: int) -> Path:
        return self.folder / f"{CATALOG_FILE_PREFIX}{version:04d}{SNAPSHOT_SUFFIX}"

    def change_notes_path(self, version: int) -> Path:
        return self.folder / f"{CATALOG_FILE_PREFIX}{version:04d}{CHANGE_NOTES_SUFFIX}"

    def versions(self) -> list[int]:
        """All snapshot versions in the folder, lowest first."""
        if not self.folder.is_dir():
            return []
        found = []
        for path in self.folder.iterdir():
            match = SNAPSHOT_NAME_PATTERN.match(path.name)
            if match:
                found.append(int(match.group(1)))
        return sorted(found)

    def latest_version(self) -> int:
        versions = self.versions()
        return versions[-1] if versions else 0

    def load(self, path: Path) -> Catalog:
        """
        Load one snapshot file.

        Raises:
            SnapshotLoadError: If the file cannot be read or does not hold a valid catalog
        """
        try:
            with open(path, "rb") as file:
                snapshot = msgspec.json.decode(file.read(), type=CatalogSnapshot)
            catalog = from_snapshot(snapshot)
        except OSError as e:
            raise SnapshotLoadError(f"Could not read {path}: {e}") from e
        except (msgspec.DecodeError, InvalidModId, DuplicateCatalogEntry) as e:
            raise SnapshotLoadError(f"Invalid catalog snapshot {path}: {e}") from e
        logger.info(
            f"Loaded catalog {catalog.version_string()} with {len(catalog.mods)} mods from {path}"
        )
        return catalog

    def load_latest(self) -> Catalog | None:
        """Load the highest numbered snapshot, or None if the folder holds none."""
        version = self.latest_version()
        if not version:
            return None
        return self.load(self.snapshot_path(version))

    def save(
        self,
        catalog: Catalog,
        change_notes: ChangeNotes,
        created: datetime | None = None,
    ) -> bool:
        """
        Write the catalog as the next version, together with its change notes.

        Existing snapshots are never overwritten. On success the catalog's
        version and update time are bumped; on failure the catalog is left
        as it was and nothing is left behind on disk.

        :return: True if both files were written
        """
        created = created or datetime.now()
        version = catalog.version + 1
        snapshot_path = self.snapshot_path(version)
        notes_path = self.change_notes_path(version)

        if snapshot_path.exists():
            logger.error(f"Catalog snapshot {snapshot_path} already exists, not overwriting")
            return False

        snapshot = to_snapshot(catalog, version=version)
        snapshot.updated = created
        data = msgspec.json.format(msgspec.json.encode(snapshot), indent=2)
        notes = change_notes.render(f"{version:04d}", created)

        try:
            self.folder.mkdir(parents=True, exist_ok=True)
            with open(snapshot_path, "xb") as file:
                file.write(data)
        except FileExistsError:
            logger.error(f"Catalog snapshot {snapshot_path} already exists, not overwriting")
            return False
        except OSError as e:
            logger.error(f"Could not save catalog snapshot {snapshot_path}: {e}")
            snapshot_path.unlink(missing_ok=True)
            return False

        try:
            with open(notes_path, "w", encoding="utf-8") as file:
                file.write(notes)
        except OSError as e:
            logger.error(f"Could not save change notes {notes_path}: {e}")
            snapshot_path.unlink(missing_ok=True)
            return False

        catalog.version = version
        catalog.updated = created
        logger.info(f"Saved catalog {catalog.version_string()} to {snapshot_path}")
        return True
