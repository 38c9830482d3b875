"""
On-disk schema of a catalog snapshot.

The in-memory model works with tagged ``ModId`` values; the snapshot keeps
the legacy integer form so older snapshots and Workshop URLs stay readable.
Conversion between the two only happens in this module.
"""

from datetime import datetime

import msgspec

from modcatalog.models.catalog import (
    AuthorField,
    Catalog,
    CompatibilityStatus,
    GameVersion,
    ModField,
    Stability,
    Status,
)
from modcatalog.models.ids import ModId


class ModEntry(msgspec.Struct, omit_defaults=True):
    steam_id: int
    name: str = ""
    author_id: int = 0
    author_url: str = ""
    published: datetime | None = None
    updated: datetime | None = None
    game_version: str = ""
    source_url: str = ""
    required_dlc: list[int] = msgspec.field(default_factory=list)
    required_mods: list[int] = msgspec.field(default_factory=list)
    statuses: list[Status] = msgspec.field(default_factory=list)
    stability: Stability = Stability.NOT_REVIEWED
    stability_note: str = ""
    generic_note: str = ""
    successors: list[int] = msgspec.field(default_factory=list)
    alternatives: list[int] = msgspec.field(default_factory=list)
    added: datetime | None = None
    review_date: datetime | None = None
    auto_review_date: datetime | None = None
    exclusions: list[ModField] = msgspec.field(default_factory=list)
    excluded_required_dlc: list[int] = msgspec.field(default_factory=list)
    excluded_required_mods: list[int] = msgspec.field(default_factory=list)
    change_notes: list[str] = msgspec.field(default_factory=list)


class AuthorEntry(msgspec.Struct, omit_defaults=True):
    steam_id: int = 0
    custom_url: str = ""
    name: str = ""
    last_seen: datetime | None = None
    retired: bool = False
    added: datetime | None = None
    exclusions: list[AuthorField] = msgspec.field(default_factory=list)


class GroupEntry(msgspec.Struct, omit_defaults=True):
    group_id: int
    name: str
    members: list[int] = msgspec.field(default_factory=list)


class CompatibilityEntry(msgspec.Struct, omit_defaults=True):
    first: int
    second: int
    status: CompatibilityStatus
    note: str = ""


class CatalogSnapshot(msgspec.Struct):
    version: int
    updated: datetime | None = None
    game_version: str = ""
    note: str = ""
    header_text: str = ""
    footer_text: str = ""
    mods: list[ModEntry] = msgspec.field(default_factory=list)
    authors: list[AuthorEntry] = msgspec.field(default_factory=list)
    groups: list[GroupEntry] = msgspec.field(default_factory=list)
    compatibilities: list[CompatibilityEntry] = msgspec.field(default_factory=list)


def _legacy(ids: set[ModId]) -> list[int]:
    return sorted(mod_id.to_legacy() for mod_id in ids)


def _tagged(values: list[int]) -> set[ModId]:
    return {ModId.from_legacy(value) for value in values}


def _version_text(version: GameVersion | None) -> str:
    return str(version) if version else ""


def to_snapshot(catalog: Catalog, version: int | None = None) -> CatalogSnapshot:
    """
    Convert a catalog to its snapshot form.

    :param catalog: The catalog to convert
    :param version: Version number to stamp on the snapshot, defaults to the catalog's own
    """
    return CatalogSnapshot(
        version=catalog.version if version is None else version,
        updated=catalog.updated,
        game_version=_version_text(catalog.game_version),
        note=catalog.note,
        header_text=catalog.header_text,
        footer_text=catalog.footer_text,
        mods=[
            ModEntry(
                steam_id=mod.mod_id.to_legacy(),
                name=mod.name,
                author_id=mod.author_id,
                author_url=mod.author_url,
                published=mod.published,
                updated=mod.updated,
                game_version=_version_text(mod.game_version),
                source_url=mod.source_url,
                required_dlc=sorted(mod.required_dlc),
                required_mods=_legacy(mod.required_mods),
                statuses=sorted(mod.statuses, key=lambda s: s.value),
                stability=mod.stability,
                stability_note=mod.stability_note,
                generic_note=mod.generic_note,
                successors=_legacy(mod.successors),
                alternatives=_legacy(mod.alternatives),
                added=mod.added,
                review_date=mod.review_date,
                auto_review_date=mod.auto_review_date,
                exclusions=sorted(mod.exclusions, key=lambda f: f.value),
                excluded_required_dlc=sorted(mod.excluded_required_dlc),
                excluded_required_mods=_legacy(mod.excluded_required_mods),
                change_notes=mod.change_notes[:],
            )
            for mod in sorted(catalog.mods, key=lambda m: m.mod_id)
        ],
        authors=[
            AuthorEntry(
                steam_id=author.steam_id,
                custom_url=author.custom_url,
                name=author.name,
                last_seen=author.last_seen,
                retired=author.retired,
                added=author.added,
                exclusions=sorted(author.exclusions, key=lambda f: f.value),
            )
            for author in catalog.authors
        ],
        groups=[
            GroupEntry(
                group_id=group.group_id.to_legacy(),
                name=group.name,
                members=[member.to_legacy() for member in group.members],
            )
            for group in catalog.groups
        ],
        compatibilities=[
            CompatibilityEntry(
                first=compatibility.first.to_legacy(),
                second=compatibility.second.to_legacy(),
                status=compatibility.status,
                note=compatibility.note,
            )
            for compatibility in catalog.compatibilities
        ],
    )


def from_snapshot(snapshot: CatalogSnapshot) -> Catalog:
    """Rebuild a catalog, and all of its indices, from a snapshot."""
    catalog = Catalog(
        version=snapshot.version,
        updated=snapshot.updated,
        game_version=GameVersion.parse(snapshot.game_version),
        note=snapshot.note,
        header_text=snapshot.header_text,
        footer_text=snapshot.footer_text,
    )
    for entry in snapshot.mods:
        catalog.add_mod(
            ModId.from_legacy(entry.steam_id),
            entry.name,
            author_id=entry.author_id,
            author_url=entry.author_url,
            published=entry.published,
            updated=entry.updated,
            game_version=GameVersion.parse(entry.game_version),
            source_url=entry.source_url,
            required_dlc=set(entry.required_dlc),
            required_mods=_tagged(entry.required_mods),
            statuses=set(entry.statuses),
            stability=entry.stability,
            stability_note=entry.stability_note,
            generic_note=entry.generic_note,
            successors=_tagged(entry.successors),
            alternatives=_tagged(entry.alternatives),
            added=entry.added,
            review_date=entry.review_date,
            auto_review_date=entry.auto_review_date,
            exclusions=set(entry.exclusions),
            excluded_required_dlc=set(entry.excluded_required_dlc),
            excluded_required_mods=_tagged(entry.excluded_required_mods),
            change_notes=entry.change_notes[:],
        )
    for author_entry in snapshot.authors:
        catalog.add_author(
            steam_id=author_entry.steam_id,
            custom_url=author_entry.custom_url,
            name=author_entry.name,
            last_seen=author_entry.last_seen,
            retired=author_entry.retired,
            added=author_entry.added,
            exclusions=set(author_entry.exclusions),
        )
    for group_entry in snapshot.groups:
        catalog.add_group(
            ModId.from_legacy(group_entry.group_id),
            group_entry.name,
            [ModId.from_legacy(member) for member in group_entry.members],
        )
    for compatibility_entry in snapshot.compatibilities:
        catalog.add_compatibility(
            ModId.from_legacy(compatibility_entry.first),
            ModId.from_legacy(compatibility_entry.second),
            compatibility_entry.status,
            compatibility_entry.note,
        )
    return catalog
