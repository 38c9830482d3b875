from datetime import datetime

from modcatalog.utils.change_notes import ChangeNotes


def test_render_sections() -> None:
    notes = ChangeNotes()
    notes.add("New mod [Steam ID    1000005] Fresh Mod")
    notes.remove("[Steam ID    1000002] Move It: status UnlistedInWorkshop added")

    text = notes.render("0004", datetime(2024, 6, 1, 12, 0))

    assert text.splitlines()[:3] == [
        "Change Notes for Catalog 0004",
        "-----------------------------",
        "Saturday, 01 June 2024, 12:00",
    ]
    assert "*** ADDED: ***\nNew mod [Steam ID    1000005] Fresh Mod" in text
    assert "*** UPDATED: ***" not in text
    assert "*** REMOVED: ***" in text
    assert text.index("*** ADDED: ***") < text.index("*** REMOVED: ***")


def test_render_without_changes() -> None:
    text = ChangeNotes().render("0001", datetime(2024, 6, 1))
    assert text.rstrip().endswith("No changes.")


def test_length_and_lines() -> None:
    notes = ChangeNotes()
    assert not notes
    notes.update("b")
    notes.add("a")
    assert len(notes) == 2
    assert notes.lines() == ["a", "b"]
