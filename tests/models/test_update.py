from modcatalog.models.catalog import Mod, ModField, Stability
from modcatalog.models.ids import ModId
from modcatalog.models.update import UNSET, ModUpdate, is_excluded, is_set, is_unchanged


def test_only_set_fields_are_yielded() -> None:
    update = ModUpdate(name="New name", stability=Stability.STABLE)
    assert dict(update.items()) == {"name": "New name", "stability": Stability.STABLE}
    assert list(ModUpdate().items()) == []


def test_unset_is_distinct_from_falsy_values() -> None:
    assert not is_set(UNSET)
    assert is_set("")
    assert is_set(None)
    assert is_set(0)
    assert repr(UNSET) == "UNSET"


def test_author_fields_share_one_exclusion() -> None:
    mod = Mod(ModId.regular(1000001), exclusions={ModField.AUTHOR})
    assert is_excluded(mod, "author_id")
    assert is_excluded(mod, "author_url")
    assert not is_excluded(mod, "name")
    assert not is_excluded(mod, "stability_note")


def test_is_unchanged() -> None:
    mod = Mod(ModId.regular(1000001), name="Same")
    assert is_unchanged(mod, "name", "Same")
    assert not is_unchanged(mod, "name", "Other")
