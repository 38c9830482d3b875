"""
Partial updates for catalog mods.

A ``ModUpdate`` carries, per field, either ``UNSET`` or the new value. The
merge rules are three independent predicates, applied in order:

* ``is_set``: the caller supplied a value for the field
* ``is_excluded``: a curator locked the field against automated changes
* ``is_unchanged``: the new value equals the stored one
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Iterator

from modcatalog.models.catalog import GameVersion, Mod, ModField, Stability


class _Unset:
    _instance: "None | _Unset" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super(_Unset, cls).__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class ModUpdate:
    name: str = UNSET
    author_id: int = UNSET
    author_url: str = UNSET
    published: datetime | None = UNSET
    updated: datetime | None = UNSET
    game_version: GameVersion | None = UNSET
    source_url: str = UNSET
    stability: Stability = UNSET
    stability_note: str = UNSET
    generic_note: str = UNSET

    def items(self) -> Iterator[tuple[str, Any]]:
        """Yield (attribute, value) for every field that was set."""
        for f in fields(self):
            value = getattr(self, f.name)
            if is_set(value):
                yield f.name, value


# Attributes that share an exclusion flag
EXCLUSION_FIELDS: dict[str, ModField] = {
    "name": ModField.NAME,
    "author_id": ModField.AUTHOR,
    "author_url": ModField.AUTHOR,
    "published": ModField.PUBLISHED,
    "updated": ModField.UPDATED,
    "game_version": ModField.GAME_VERSION,
    "source_url": ModField.SOURCE_URL,
    "stability": ModField.STABILITY,
}


def is_set(value: Any) -> bool:
    return value is not UNSET


def is_excluded(mod: Mod, attribute: str) -> bool:
    mod_field = EXCLUSION_FIELDS.get(attribute)
    return mod_field is not None and mod.is_excluded(mod_field)


def is_unchanged(mod: Mod, attribute: str, value: Any) -> bool:
    return getattr(mod, attribute) == value
