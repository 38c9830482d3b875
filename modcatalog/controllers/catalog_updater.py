"""
The only way to mutate a catalog after it was created.

Every method here is safe to call repeatedly with the same facts: a call that
does not change anything leaves both the entity and the change notes alone.
That is what makes repeated crawls converge.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from loguru import logger

from modcatalog.models.catalog import (
    Author,
    AuthorField,
    Catalog,
    Mod,
    ModField,
    Stability,
    Status,
)
from modcatalog.models.ids import ModId
from modcatalog.models.update import ModUpdate, is_excluded, is_unchanged
from modcatalog.utils.change_notes import ChangeNotes
from modcatalog.utils.constants import KNOWN_DLC_METADATA
from modcatalog.utils.exception import DuplicateCatalogEntry

log = logger.bind(updater=True)

# Statuses a curator can lock against automated changes
STATUS_EXCLUSIONS = {Status.NO_DESCRIPTION: ModField.NO_DESCRIPTION}
REMOVAL_STATUSES = {Status.REMOVED_FROM_LISTING, Status.UNLISTED}


def describe(value: Any) -> str:
    """Format a field value for a change note."""
    if value is None or value == "":
        return "none"
    if isinstance(value, datetime):
        return f"{value:%Y-%m-%d}"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def dlc_name(dlc: int) -> str:
    metadata = KNOWN_DLC_METADATA.get(dlc)
    return metadata["name"] if metadata else f"DLC {dlc}"


class CatalogUpdater:
    """
    One update session on one catalog.

    Holds the session-wide review date, the change notes gathered so far and
    the mods confirmed present in this session's listing pages.

    Args:
        catalog: The catalog to update
        review_date: The "as of" timestamp for every change in this session
    """

    def __init__(self, catalog: Catalog, review_date: datetime | None = None) -> None:
        self.catalog = catalog
        self.review_date = review_date or datetime.now()
        self.change_notes = ChangeNotes()
        self._seen_in_listing: set[ModId] = set()

    def set_review_date(self, timestamp: datetime) -> None:
        self.review_date = timestamp

    def mark_seen_in_listing(self, mod: Mod) -> None:
        self._seen_in_listing.add(mod.mod_id)
        mod.auto_review_date = self.review_date

    def seen_in_listing(self, mod: Mod) -> bool:
        return mod.mod_id in self._seen_in_listing

    # Mods

    def add_mod(self, mod_id: ModId, name: str = "", incompatible: bool = False) -> Mod:
        """
        Return the catalog mod with this ID, creating it first if needed.

        New mods start as "not reviewed", unless they were found in an incompatible listing.
        """
        mod = self.catalog.get_mod(mod_id)
        if mod is not None:
            return mod
        stability = (
            Stability.INCOMPATIBLE_PER_LISTING if incompatible else Stability.NOT_REVIEWED
        )
        mod = self.catalog.add_mod(
            mod_id,
            name,
            stability=stability,
            added=self.review_date,
            auto_review_date=self.review_date,
        )
        mod.change_notes.append(f"{self.review_date:%Y-%m-%d}: added")
        self.change_notes.add(f"New mod {mod}")
        log.debug(f"Added mod {mod}")
        return mod

    def update_mod(
        self,
        mod: Mod,
        update: ModUpdate,
        updated_by_web_crawler: bool = False,
    ) -> int:
        """
        Apply a partial update to a mod.

        Fields that were not set, are excluded, or already hold the new value are skipped.

        :return: The number of fields that actually changed
        """
        changes = 0
        for attribute, value in update.items():
            if is_excluded(mod, attribute):
                if not is_unchanged(mod, attribute, value):
                    log.debug(
                        f"Skipped {attribute} update for {mod}, field is excluded from automated updates"
                    )
                continue
            if is_unchanged(mod, attribute, value):
                continue

            label = str(mod)
            old_value = getattr(mod, attribute)
            if attribute == "name":
                self.catalog.rename_mod(mod, value)
            else:
                setattr(mod, attribute, value)
            changes += 1
            self._note_mod(
                mod,
                label,
                f"{attribute.replace('_', ' ')} changed from {describe(old_value)} to {describe(value)}",
                updated_by_web_crawler,
            )

        if changes:
            mod.auto_review_date = self.review_date
        return changes

    def add_status(
        self, mod: Mod, status: Status, updated_by_web_crawler: bool = False
    ) -> bool:
        if self._status_excluded(mod, status) or status in mod.statuses:
            return False
        mod.statuses.add(status)
        self._note_mod(
            mod,
            str(mod),
            f"status {status.value} added",
            updated_by_web_crawler,
            removal=status in REMOVAL_STATUSES,
        )
        return True

    def remove_status(
        self, mod: Mod, status: Status, updated_by_web_crawler: bool = False
    ) -> bool:
        if self._status_excluded(mod, status) or status not in mod.statuses:
            return False
        mod.statuses.discard(status)
        self._note_mod(
            mod, str(mod), f"status {status.value} removed", updated_by_web_crawler
        )
        return True

    def add_required_dlc(
        self, mod: Mod, dlc: int, updated_by_web_crawler: bool = False
    ) -> bool:
        if dlc in mod.excluded_required_dlc or dlc in mod.required_dlc:
            return False
        mod.required_dlc.add(dlc)
        self._note_mod(
            mod, str(mod), f"required DLC {dlc_name(dlc)} added", updated_by_web_crawler
        )
        return True

    def add_required_mod(
        self, mod: Mod, required_id: ModId, updated_by_web_crawler: bool = False
    ) -> bool:
        """
        Add a required mod. A mod that is a member of a group is replaced by that group.

        Required mods not yet in the catalog are added as placeholders, so the
        next crawl picks up their details.
        """
        if required_id in mod.excluded_required_mods:
            return False

        group = self.catalog.get_group_of_member(required_id)
        target = group.group_id if group is not None else required_id
        if target in mod.excluded_required_mods or target in mod.required_mods:
            return False

        if group is None and self.catalog.get_mod(required_id) is None:
            if not required_id.is_regular:
                log.warning(f"Required ID {required_id} for {mod} is not in the catalog")
                return False
            self.add_mod(required_id)
            log.info(f"Added unknown required mod {required_id} for {mod}")

        mod.required_mods.add(target)
        target_name = str(group) if group is not None else str(self.catalog.get_mod(target))
        self._note_mod(
            mod, str(mod), f"required mod {target_name} added", updated_by_web_crawler
        )
        return True

    # Authors

    def get_or_add_author(
        self, steam_id: int = 0, custom_url: str = "", name: str = ""
    ) -> Author | None:
        """
        Find an author by Steam ID first, then by custom URL, and create it on a total miss.

        The name of an existing author is only changed when it differs and is not excluded.
        """
        if not steam_id and not custom_url:
            log.warning(f"Cannot find or add author '{name}' without ID or custom URL")
            return None

        author = self.catalog.get_author(steam_id, custom_url)
        if author is None:
            author = self.catalog.add_author(
                steam_id=steam_id, custom_url=custom_url, name=name, added=self.review_date
            )
            self.change_notes.add(f"New author {author}")
            log.debug(f"Added author {author}")
            return author

        new_id = steam_id if steam_id and steam_id != author.steam_id else 0
        new_url = custom_url if custom_url and custom_url != author.custom_url else ""
        if new_id or new_url:
            label = str(author)
            try:
                self.catalog.set_author_identity(author, new_id, new_url)
            except DuplicateCatalogEntry as e:
                log.warning(f"Could not update identity of {label}: {e}")
            else:
                if new_id:
                    self._note_author(label, f"Steam ID set to {new_id}")
                if new_url:
                    self._note_author(label, f"custom URL set to {new_url}")

        if name and name != author.name and not author.is_excluded(AuthorField.NAME):
            label = str(author)
            old_name = author.name
            author.name = name
            self._note_author(label, f"name changed from {describe(old_name)} to {name}")
        return author

    def update_author_activity(self, author: Author, last_seen: datetime) -> bool:
        """
        Move the author's last seen date forward, and un-retire them.

        Older dates than the one already stored are ignored.
        """
        changed = False
        if not author.is_excluded(AuthorField.LAST_SEEN) and (
            author.last_seen is None or last_seen > author.last_seen
        ):
            old_value = author.last_seen
            author.last_seen = last_seen
            self._note_author(
                str(author),
                f"last seen changed from {describe(old_value)} to {describe(last_seen)}",
            )
            changed = True
        if changed and author.retired and not author.is_excluded(AuthorField.RETIRED):
            author.retired = False
            self._note_author(str(author), "no longer retired")
        return changed

    def retire_inactive_authors(self, window_days: int) -> int:
        """
        Set the retired flag for authors without a mod update in the last ``window_days``.

        :return: The number of authors whose retired flag changed
        """
        threshold = self.review_date - timedelta(days=window_days)
        changed = 0
        for author in self.catalog.authors:
            if author.last_seen is None or author.is_excluded(AuthorField.RETIRED):
                continue
            retired = author.last_seen < threshold
            if retired == author.retired:
                continue
            author.retired = retired
            self._note_author(str(author), "retired" if retired else "no longer retired")
            changed += 1
        return changed

    # Helpers

    @staticmethod
    def _status_excluded(mod: Mod, status: Status) -> bool:
        mod_field = STATUS_EXCLUSIONS.get(status)
        return mod_field is not None and mod.is_excluded(mod_field)

    def _note_mod(
        self,
        mod: Mod,
        label: str,
        text: str,
        updated_by_web_crawler: bool,
        removal: bool = False,
    ) -> None:
        mod.change_notes.append(f"{self.review_date:%Y-%m-%d}: {text}")
        line = f"{label}: {text}"
        if removal:
            self.change_notes.remove(line)
        else:
            self.change_notes.update(line)
        source = "Web crawler" if updated_by_web_crawler else "Curator"
        log.debug(f"{source} update: {line}")

    def _note_author(self, label: str, text: str) -> None:
        line = f"{label}: {text}"
        self.change_notes.update(line)
        log.debug(f"Author update: {line}")
