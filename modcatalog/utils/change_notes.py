from datetime import datetime


class ChangeNotes:
    """
    Human readable log of every effective change made during one update session.

    Lines are grouped in sections; empty sections are left out of the rendered document.
    """

    def __init__(self) -> None:
        self.added: list[str] = []
        self.updated: list[str] = []
        self.removed: list[str] = []

    def add(self, line: str) -> None:
        self.added.append(line)

    def update(self, line: str) -> None:
        self.updated.append(line)

    def remove(self, line: str) -> None:
        self.removed.append(line)

    def __len__(self) -> int:
        return len(self.added) + len(self.updated) + len(self.removed)

    def __bool__(self) -> bool:
        return len(self) > 0

    def lines(self) -> list[str]:
        return self.added + self.updated + self.removed

    def render(self, version_string: str, created: datetime) -> str:
        title = f"Change Notes for Catalog {version_string}"
        text = [
            title,
            "-" * len(title),
            f"{created:%A, %d %B %Y, %H:%M}",
            "These change notes were automatically created by the updater process.",
            "",
        ]
        for header, lines in (
            ("ADDED", self.added),
            ("UPDATED", self.updated),
            ("REMOVED", self.removed),
        ):
            if lines:
                text += ["", f"*** {header}: ***", *lines]
        if not self:
            text += ["", "No changes."]
        return "\n".join(text) + "\n"
