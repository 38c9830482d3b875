from pathlib import Path
from typing import Callable, Iterable, Iterator


class LineCursor:
    """
    Forward-only cursor over the lines of a downloaded page.

    Lines are pulled lazily from the underlying iterable. Reading past the end
    yields empty strings, so a truncated download reads as missing markers
    instead of raising.
    """

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines: Iterator[str] = iter(lines)
        self._buffer: list[str] = []
        self._exhausted = False
        self.line_number = 0

    @classmethod
    def from_file(cls, path: Path) -> "LineCursor":
        """
        Read a page from disk. Undecodable bytes are replaced, since pages can be cut off mid-character.
        """
        with open(path, encoding="utf-8", errors="replace") as f:
            return cls(f.read().splitlines())

    @classmethod
    def from_text(cls, text: str) -> "LineCursor":
        return cls(text.splitlines())

    def _fill(self, count: int) -> None:
        while len(self._buffer) < count and not self._exhausted:
            try:
                self._buffer.append(next(self._lines).rstrip("\r\n"))
            except StopIteration:
                self._exhausted = True

    @property
    def at_end(self) -> bool:
        self._fill(1)
        return not self._buffer

    def peek(self, offset: int = 0) -> str:
        """Look at a line ahead of the cursor without consuming it."""
        self._fill(offset + 1)
        return self._buffer[offset] if offset < len(self._buffer) else ""

    def advance(self) -> str:
        """Consume and return the current line."""
        self._fill(1)
        if not self._buffer:
            return ""
        self.line_number += 1
        return self._buffer.pop(0)

    def take(self, count: int) -> list[str]:
        return [self.advance() for _ in range(count)]

    def skip(self, count: int) -> None:
        self.take(count)

    def advance_to(self, predicate: Callable[[str], bool]) -> str | None:
        """
        Consume lines up to and including the first one matching ``predicate``.

        :return: The matching line, or None if the page ended first
        """
        while not self.at_end:
            line = self.advance()
            if predicate(line):
                return line
        return None
