import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable

from loguru import logger

from modcatalog.models.ids import ModId, is_valid_id
from modcatalog.utils.constants import WORKSHOP_ITEM_URL
from modcatalog.utils.exception import DuplicateCatalogEntry


class Stability(str, Enum):
    INCOMPATIBLE_PER_LISTING = "IncompatibleAccordingToWorkshop"
    REQUIRES_INCOMPATIBLE_MOD = "RequiresIncompatibleMod"
    GAME_BREAKING = "GameBreaking"
    BROKEN = "Broken"
    MAJOR_ISSUES = "MajorIssues"
    MINOR_ISSUES = "MinorIssues"
    USERS_REPORT_ISSUES = "UsersReportIssues"
    STABLE = "Stable"
    NOT_ENOUGH_INFORMATION = "NotEnoughInformation"
    NOT_REVIEWED = "NotReviewed"

    @property
    def rank(self) -> int:
        return list(Stability).index(self)

    # str would compare by value, so every ordering operator is overridden
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Stability):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Stability):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Stability):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Stability):
            return NotImplemented
        return self.rank >= other.rank


class Status(str, Enum):
    REMOVED_FROM_LISTING = "RemovedFromWorkshop"
    UNLISTED = "UnlistedInWorkshop"
    NO_DESCRIPTION = "NoDescription"
    ABANDONED = "Abandoned"
    SUPERSEDED = "Superseded"
    REUPLOAD = "Reupload"
    NO_LONGER_NEEDED = "NoLongerNeeded"
    BREAKS_EDITORS = "BreaksEditors"
    SAVES_CANT_LOAD_WITHOUT = "SavesCantLoadWithout"
    SOURCE_BUNDLED = "SourceBundled"
    SOURCE_NOT_UPDATED = "SourceNotUpdated"
    SOURCE_OBFUSCATED = "SourceObfuscated"
    DEPENDENCY_MOD = "DependencyMod"
    MUSIC_COPYRIGHT_FREE = "MusicCopyrightFree"
    MUSIC_COPYRIGHTED = "MusicCopyrighted"
    MUSIC_COPYRIGHT_UNKNOWN = "MusicCopyrightUnknown"


class CompatibilityStatus(str, Enum):
    NEWER_VERSION = "NewerVersion"
    FUNCTIONALITY_COVERED = "FunctionalityCovered"
    SAME_MOD_DIFFERENT_RELEASE_TYPE = "SameModDifferentReleaseType"
    SAME_FUNCTIONALITY = "SameFunctionality"
    REQUIRES_SPECIFIC_SETTINGS = "RequiresSpecificSettings"
    MINOR_ISSUES = "MinorIssues"
    INCOMPATIBLE_PER_AUTHOR = "IncompatibleAccordingToAuthor"
    INCOMPATIBLE_PER_USERS = "IncompatibleAccordingToUsers"
    COMPATIBLE_PER_AUTHOR = "CompatibleAccordingToAuthor"

    @property
    def is_directional(self) -> bool:
        """Directional statuses are only reported for the second mod of the pair."""
        return self in (
            CompatibilityStatus.NEWER_VERSION,
            CompatibilityStatus.FUNCTIONALITY_COVERED,
            CompatibilityStatus.SAME_MOD_DIFFERENT_RELEASE_TYPE,
        )


class ModField(str, Enum):
    NAME = "name"
    AUTHOR = "author"
    PUBLISHED = "published"
    UPDATED = "updated"
    GAME_VERSION = "game_version"
    SOURCE_URL = "source_url"
    STABILITY = "stability"
    NO_DESCRIPTION = "no_description"


class AuthorField(str, Enum):
    NAME = "name"
    LAST_SEEN = "last_seen"
    RETIRED = "retired"


@dataclass(frozen=True, order=True)
class GameVersion:
    major: int = 0
    minor: int = 0
    build: int = 0
    revision: int = 0

    @classmethod
    def parse(cls, text: str) -> "GameVersion | None":
        """
        Parse a version tag such as ``1.17.1-f4`` or ``1.17.1-f4 compatible``.

        Missing trailing parts default to zero. Returns None if no number is found.
        """
        numbers = [int(n) for n in re.findall(r"\d+", text or "")[:4]]
        if not numbers:
            return None
        numbers += [0] * (4 - len(numbers))
        return cls(*numbers)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.build}-f{self.revision}"


@dataclass
class Mod:
    mod_id: ModId
    name: str = ""
    author_id: int = 0
    author_url: str = ""
    published: datetime | None = None
    updated: datetime | None = None
    game_version: GameVersion | None = None
    source_url: str = ""
    required_dlc: set[int] = field(default_factory=set)
    required_mods: set[ModId] = field(default_factory=set)
    statuses: set[Status] = field(default_factory=set)
    stability: Stability = Stability.NOT_REVIEWED
    stability_note: str = ""
    generic_note: str = ""
    successors: set[ModId] = field(default_factory=set)
    alternatives: set[ModId] = field(default_factory=set)
    added: datetime | None = None
    review_date: datetime | None = None
    auto_review_date: datetime | None = None
    exclusions: set[ModField] = field(default_factory=set)
    excluded_required_dlc: set[int] = field(default_factory=set)
    excluded_required_mods: set[ModId] = field(default_factory=set)
    change_notes: list[str] = field(default_factory=list)

    @property
    def url(self) -> str:
        if not self.mod_id.is_regular:
            return ""
        return f"{WORKSHOP_ITEM_URL}{self.mod_id}"

    def is_excluded(self, mod_field: ModField) -> bool:
        return mod_field in self.exclusions

    def __str__(self) -> str:
        if self.mod_id.is_regular:
            return f"[Steam ID {self.mod_id.value:>10}] {self.name}"
        return f"[{self.mod_id.kind.value} mod] {self.name}"


@dataclass
class Author:
    steam_id: int = 0
    custom_url: str = ""
    name: str = ""
    last_seen: datetime | None = None
    retired: bool = False
    added: datetime | None = None
    exclusions: set[AuthorField] = field(default_factory=set)

    @property
    def key(self) -> int | str:
        """The numeric Steam ID when known, otherwise the custom URL."""
        return self.steam_id if self.steam_id else self.custom_url

    def is_excluded(self, author_field: AuthorField) -> bool:
        return author_field in self.exclusions

    def __str__(self) -> str:
        if self.steam_id:
            return f"[Author ID {self.steam_id}] {self.name}"
        return f"[Author URL {self.custom_url}] {self.name}"


@dataclass
class Group:
    group_id: ModId
    name: str
    members: list[ModId] = field(default_factory=list)

    def __str__(self) -> str:
        return f"[Group {self.group_id}] {self.name}"


@dataclass
class Compatibility:
    first: ModId
    second: ModId
    status: CompatibilityStatus
    note: str = ""

    @property
    def pair(self) -> frozenset[ModId]:
        return frozenset((self.first, self.second))

    def applies_to(self, mod_id: ModId) -> bool:
        """Directional statuses only concern the second mod of the pair."""
        if self.status.is_directional:
            return mod_id == self.second
        return mod_id in (self.first, self.second)

    def other(self, mod_id: ModId) -> ModId:
        return self.second if mod_id == self.first else self.first


class Catalog:
    """
    In-memory graph of mods, authors, groups and compatibilities.

    Lookups never raise: a miss returns None or an empty list. Every
    mutation goes through a method of this class so the name, ID, author
    and compatibility indices always agree with the entities.
    """

    def __init__(
        self,
        version: int = 0,
        updated: datetime | None = None,
        game_version: GameVersion | None = None,
        note: str = "",
        header_text: str = "",
        footer_text: str = "",
    ) -> None:
        self.version = version
        self.updated = updated
        self.game_version = game_version
        self.note = note
        self.header_text = header_text
        self.footer_text = footer_text

        self._mods: dict[ModId, Mod] = {}
        self._mods_by_name: dict[str, list[ModId]] = {}
        self._authors: list[Author] = []
        self._authors_by_id: dict[int, Author] = {}
        self._authors_by_url: dict[str, Author] = {}
        self._groups: dict[ModId, Group] = {}
        self._group_of_member: dict[ModId, ModId] = {}
        self._compatibilities: list[Compatibility] = []
        self._compatibilities_by_pair: dict[frozenset[ModId], list[Compatibility]] = {}
        self._compatibilities_by_mod: dict[ModId, list[Compatibility]] = {}

    @property
    def mods(self) -> list[Mod]:
        return list(self._mods.values())

    @property
    def authors(self) -> list[Author]:
        return self._authors[:]

    @property
    def groups(self) -> list[Group]:
        return list(self._groups.values())

    @property
    def compatibilities(self) -> list[Compatibility]:
        return self._compatibilities[:]

    @property
    def reviewed_mod_count(self) -> int:
        return sum(1 for mod in self._mods.values() if mod.review_date is not None)

    def version_string(self) -> str:
        return f"{self.version:04d}"

    @staticmethod
    def is_valid_id(
        value: int | ModId,
        allow_builtin: bool = True,
        allow_group: bool = False,
        allow_local: bool = False,
    ) -> bool:
        if isinstance(value, ModId):
            value = value.to_legacy()
        return is_valid_id(value, allow_builtin, allow_group, allow_local)

    # Lookups

    def get_mod(self, mod_id: ModId) -> Mod | None:
        return self._mods.get(mod_id)

    def get_mods_by_name(self, name: str) -> list[Mod]:
        return [self._mods[mod_id] for mod_id in self._mods_by_name.get(name, [])]

    def get_mods_by_author(self, author: Author) -> list[Mod]:
        return [
            mod
            for mod in self._mods.values()
            if (author.steam_id and mod.author_id == author.steam_id)
            or (author.custom_url and mod.author_url == author.custom_url)
        ]

    def get_author(self, steam_id: int = 0, custom_url: str = "") -> Author | None:
        if steam_id and steam_id in self._authors_by_id:
            return self._authors_by_id[steam_id]
        if custom_url:
            return self._authors_by_url.get(custom_url)
        return None

    def get_group(self, group_id: ModId) -> Group | None:
        return self._groups.get(group_id)

    def get_group_of_member(self, mod_id: ModId) -> Group | None:
        group_id = self._group_of_member.get(mod_id)
        return self._groups.get(group_id) if group_id else None

    def get_compatibilities(self, mod_id: ModId) -> list[Compatibility]:
        return self._compatibilities_by_mod.get(mod_id, [])[:]

    def get_compatibilities_between(
        self, first: ModId, second: ModId
    ) -> list[Compatibility]:
        return self._compatibilities_by_pair.get(frozenset((first, second)), [])[:]

    # Construction

    def add_mod(self, mod_id: ModId, name: str = "", **attributes: object) -> Mod:
        if mod_id.is_group:
            raise DuplicateCatalogEntry(f"Group ID {mod_id} cannot be used for a mod")
        if mod_id in self._mods:
            raise DuplicateCatalogEntry(f"Mod {mod_id} already exists in the catalog")
        mod = Mod(mod_id=mod_id, name=name, **attributes)  # type: ignore[arg-type]
        self._mods[mod_id] = mod
        self._mods_by_name.setdefault(name, []).append(mod_id)
        return mod

    def add_author(
        self,
        steam_id: int = 0,
        custom_url: str = "",
        name: str = "",
        **attributes: object,
    ) -> Author:
        if not steam_id and not custom_url:
            raise ValueError("An author needs a Steam ID or a custom URL")
        if (steam_id and steam_id in self._authors_by_id) or (
            custom_url and custom_url in self._authors_by_url
        ):
            raise DuplicateCatalogEntry(
                f"Author {steam_id or custom_url} already exists in the catalog"
            )
        author = Author(steam_id=steam_id, custom_url=custom_url, name=name, **attributes)  # type: ignore[arg-type]
        self._authors.append(author)
        self._index_author(author)
        return author

    def add_group(
        self, group_id: ModId, name: str, members: Iterable[ModId] = ()
    ) -> Group:
        if not group_id.is_group:
            raise ValueError(f"{group_id} is not a group ID")
        if group_id in self._groups:
            raise DuplicateCatalogEntry(f"Group {group_id} already exists in the catalog")
        group = Group(group_id=group_id, name=name)
        self._groups[group_id] = group
        for member in members:
            self.add_group_member(group, member)
        return group

    def add_group_member(self, group: Group, mod_id: ModId) -> None:
        existing = self._group_of_member.get(mod_id)
        if existing is not None and existing != group.group_id:
            raise DuplicateCatalogEntry(
                f"Mod {mod_id} is already a member of group {existing}"
            )
        if mod_id not in group.members:
            group.members.append(mod_id)
        self._group_of_member[mod_id] = group.group_id

    def add_compatibility(
        self,
        first: ModId,
        second: ModId,
        status: CompatibilityStatus,
        note: str = "",
    ) -> Compatibility:
        if first == second:
            raise ValueError(f"A mod cannot have a compatibility with itself ({first})")
        for existing in self._compatibilities_by_pair.get(frozenset((first, second)), []):
            if existing.status == status:
                raise DuplicateCatalogEntry(
                    f"Compatibility {status.value} between {first} and {second} already exists"
                )
        compatibility = Compatibility(first, second, status, note)
        self._compatibilities.append(compatibility)
        self._compatibilities_by_pair.setdefault(compatibility.pair, []).append(
            compatibility
        )
        for mod_id in (first, second):
            self._compatibilities_by_mod.setdefault(mod_id, []).append(compatibility)
        return compatibility

    # Index maintaining mutators

    def rename_mod(self, mod: Mod, name: str) -> None:
        ids = self._mods_by_name.get(mod.name, [])
        if mod.mod_id in ids:
            ids.remove(mod.mod_id)
            if not ids:
                del self._mods_by_name[mod.name]
        mod.name = name
        self._mods_by_name.setdefault(name, []).append(mod.mod_id)

    def set_author_identity(
        self, author: Author, steam_id: int = 0, custom_url: str = ""
    ) -> None:
        """Give a known author a (new) Steam ID and/or custom URL, keeping the indices current."""
        if steam_id and steam_id != author.steam_id:
            other = self._authors_by_id.get(steam_id)
            if other is not None and other is not author:
                raise DuplicateCatalogEntry(f"Author ID {steam_id} is already in use")
        if custom_url and custom_url != author.custom_url:
            other = self._authors_by_url.get(custom_url)
            if other is not None and other is not author:
                raise DuplicateCatalogEntry(f"Author URL {custom_url} is already in use")

        self._authors_by_id.pop(author.steam_id, None)
        self._authors_by_url.pop(author.custom_url, None)
        if steam_id:
            author.steam_id = steam_id
        if custom_url:
            author.custom_url = custom_url
        self._index_author(author)
        logger.debug(f"Author identity changed to {author}")

    def _index_author(self, author: Author) -> None:
        if author.steam_id:
            self._authors_by_id[author.steam_id] = author
        if author.custom_url:
            self._authors_by_url[author.custom_url] = author
