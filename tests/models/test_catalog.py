import pytest

from modcatalog.models.catalog import (
    Catalog,
    CompatibilityStatus,
    GameVersion,
    Stability,
)
from modcatalog.models.ids import ModId
from modcatalog.utils.exception import DuplicateCatalogEntry


def test_lookups_return_none_on_miss(catalog: Catalog) -> None:
    assert catalog.get_mod(ModId.regular(9999999)) is None
    assert catalog.get_author(steam_id=123) is None
    assert catalog.get_author(custom_url="nobody") is None
    assert catalog.get_author() is None
    assert catalog.get_group(ModId.group(1001)) is None
    assert catalog.get_compatibilities(ModId.regular(1000001)) == []


def test_add_mod_rejects_duplicates_and_group_ids(catalog: Catalog) -> None:
    with pytest.raises(DuplicateCatalogEntry):
        catalog.add_mod(ModId.regular(1000001), "Again")
    with pytest.raises(DuplicateCatalogEntry):
        catalog.add_mod(ModId.group(1001), "Group as mod")


def test_name_index_follows_renames(catalog: Catalog) -> None:
    mod = catalog.get_mod(ModId.regular(1000002))
    assert mod is not None
    assert catalog.get_mods_by_name("Move It") == [mod]

    catalog.rename_mod(mod, "Move It!")

    assert catalog.get_mods_by_name("Move It") == []
    assert catalog.get_mods_by_name("Move It!") == [mod]


def test_get_author_prefers_steam_id(catalog: Catalog) -> None:
    by_id = catalog.get_author(steam_id=76561198000000001, custom_url="quboid")
    assert by_id is not None
    assert by_id.name == "Author One"

    by_url = catalog.get_author(steam_id=555, custom_url="quboid")
    assert by_url is not None
    assert by_url.name == "Quboid"


def test_add_author_needs_identity_and_rejects_duplicates(catalog: Catalog) -> None:
    with pytest.raises(ValueError):
        catalog.add_author(name="Anonymous")
    with pytest.raises(DuplicateCatalogEntry):
        catalog.add_author(custom_url="quboid")


def test_set_author_identity_reindexes(catalog: Catalog) -> None:
    author = catalog.get_author(custom_url="quboid")
    assert author is not None

    catalog.set_author_identity(author, steam_id=76561198000000002)

    assert catalog.get_author(steam_id=76561198000000002) is author
    assert catalog.get_author(custom_url="quboid") is author
    assert str(author) == "[Author ID 76561198000000002] Quboid"

    other = catalog.get_author(steam_id=76561198000000001)
    assert other is not None
    with pytest.raises(DuplicateCatalogEntry):
        catalog.set_author_identity(other, custom_url="quboid")


def test_get_mods_by_author(catalog: Catalog) -> None:
    author = catalog.get_author(custom_url="quboid")
    assert author is not None
    assert [mod.name for mod in catalog.get_mods_by_author(author)] == ["Move It"]


def test_groups(catalog: Catalog) -> None:
    group = catalog.add_group(
        ModId.group(1001), "Network Extensions builds", [ModId.regular(1000001)]
    )
    catalog.add_group_member(group, ModId.regular(1000003))

    assert catalog.get_group_of_member(ModId.regular(1000003)) is group
    assert group.members == [ModId.regular(1000001), ModId.regular(1000003)]

    other = catalog.add_group(ModId.group(1002), "Other")
    with pytest.raises(DuplicateCatalogEntry):
        catalog.add_group_member(other, ModId.regular(1000001))
    with pytest.raises(ValueError):
        catalog.add_group(ModId.regular(1000004), "Not a group ID")


def test_compatibilities(catalog: Catalog) -> None:
    first, second = ModId.regular(1000001), ModId.regular(1000002)
    newer = catalog.add_compatibility(first, second, CompatibilityStatus.NEWER_VERSION)
    catalog.add_compatibility(second, first, CompatibilityStatus.MINOR_ISSUES, "Flickering")

    assert len(catalog.get_compatibilities_between(second, first)) == 2
    assert len(catalog.get_compatibilities(first)) == 2
    assert newer.applies_to(second)
    assert not newer.applies_to(first)
    assert newer.other(first) == second

    with pytest.raises(DuplicateCatalogEntry):
        catalog.add_compatibility(second, first, CompatibilityStatus.NEWER_VERSION)
    with pytest.raises(ValueError):
        catalog.add_compatibility(first, first, CompatibilityStatus.MINOR_ISSUES)


def test_mod_string_and_url(catalog: Catalog) -> None:
    regular = catalog.get_mod(ModId.regular(1000001))
    builtin = catalog.get_mod(ModId.from_legacy(1))
    assert regular is not None and builtin is not None

    assert str(regular) == "[Steam ID    1000001] Network Extensions"
    assert regular.url.endswith("?id=1000001")
    assert str(builtin) == "[Builtin mod] Built-in Mod"
    assert builtin.url == ""


def test_stability_order() -> None:
    assert Stability.INCOMPATIBLE_PER_LISTING < Stability.BROKEN < Stability.STABLE
    assert Stability.STABLE < Stability.NOT_REVIEWED
    assert max(Stability) == Stability.NOT_REVIEWED
    assert sorted([Stability.STABLE, Stability.GAME_BREAKING])[0] == Stability.GAME_BREAKING


def test_game_version_parse() -> None:
    version = GameVersion.parse("1.17.1-f4")
    assert version == GameVersion(1, 17, 1, 4)
    assert str(version) == "1.17.1-f4"
    assert GameVersion.parse("1.9") == GameVersion(1, 9, 0, 0)
    assert GameVersion.parse("compatible") is None
    assert GameVersion(1, 16, 0, 3) < GameVersion(1, 17, 1, 4)


def test_version_string() -> None:
    assert Catalog(version=7).version_string() == "0007"
    assert Catalog(version=12345).version_string() == "12345"
