import pytest

from modcatalog.models.catalog import Catalog, Mod
from modcatalog.models.ids import ModId
from modcatalog.utils.requirements import unmet_required_mods

GROUP = ModId.group(1001)
STABLE_BUILD = ModId.regular(2000001)
TEST_BUILD = ModId.regular(2000002)
DEPENDENCY = ModId.regular(2000003)


@pytest.fixture
def requiring_mod(catalog: Catalog) -> Mod:
    catalog.add_mod(STABLE_BUILD, "Harmony")
    catalog.add_mod(TEST_BUILD, "Harmony (test)")
    catalog.add_mod(DEPENDENCY, "Unified UI")
    catalog.add_group(GROUP, "Harmony builds", [STABLE_BUILD, TEST_BUILD])
    mod = catalog.add_mod(ModId.regular(2000009), "Requires things")
    mod.required_mods = {GROUP}
    return mod


def test_group_with_one_enabled_member_is_met(catalog: Catalog, requiring_mod: Mod) -> None:
    assert unmet_required_mods(catalog, requiring_mod, {STABLE_BUILD: True}) == []
    assert (
        unmet_required_mods(catalog, requiring_mod, {STABLE_BUILD: False, TEST_BUILD: True})
        == []
    )


def test_group_with_one_disabled_member_names_only_that_member(
    catalog: Catalog, requiring_mod: Mod
) -> None:
    lines = unmet_required_mods(catalog, requiring_mod, {TEST_BUILD: False})
    assert lines == ["[Steam ID    2000002] Harmony (test)"]


def test_group_with_no_subscribed_member(catalog: Catalog, requiring_mod: Mod) -> None:
    lines = unmet_required_mods(catalog, requiring_mod, {})
    assert lines == [
        "one of the following mods:",
        "  - [Steam ID    2000001] Harmony",
        "  - [Steam ID    2000002] Harmony (test)",
    ]


def test_group_with_several_disabled_members(catalog: Catalog, requiring_mod: Mod) -> None:
    lines = unmet_required_mods(
        catalog, requiring_mod, {STABLE_BUILD: False, TEST_BUILD: False}
    )
    assert lines[0] == "one of the following mods should be enabled:"
    assert len(lines) == 3


def test_missing_group(catalog: Catalog, requiring_mod: Mod) -> None:
    requiring_mod.required_mods = {ModId.group(1500)}
    assert unmet_required_mods(catalog, requiring_mod, {}) == [
        "one of the following mods: <missing information in catalog>"
    ]


def test_regular_required_mods(catalog: Catalog, requiring_mod: Mod) -> None:
    requiring_mod.required_mods = {DEPENDENCY, ModId.regular(1000001)}

    lines = unmet_required_mods(
        catalog, requiring_mod, {ModId.regular(1000001): False}
    )

    assert lines == [
        "[Steam ID    1000001] Network Extensions",
        "[Steam ID    2000003] Unified UI",
        "    Workshop page: https://steamcommunity.com/sharedfiles/filedetails/?id=2000003",
    ]
    assert unmet_required_mods(
        catalog, requiring_mod, {DEPENDENCY: True, ModId.regular(1000001): True}
    ) == []
