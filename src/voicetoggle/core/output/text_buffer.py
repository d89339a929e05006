"""
Cursor-based text insertion.

Positions are zero-based (line, column) pairs measured in characters.
"""

import sys
from typing import List, Optional, Protocol, TextIO, Tuple

Cursor = Tuple[int, int]


class TextBuffer(Protocol):
    def get_cursor(self) -> Cursor: ...

    def get_line(self, line: int) -> str: ...

    def set_line(self, line: int, text: str) -> None: ...

    def set_cursor(self, cursor: Cursor) -> None: ...


def insert_at_cursor(buffer: TextBuffer, text: Optional[str]) -> bool:
    """
    Splice text into the current line at the cursor and move the cursor to
    the end of the inserted text. Returns False for empty text.
    """
    if not text:
        return False

    line, column = buffer.get_cursor()
    current = buffer.get_line(line)
    buffer.set_line(line, current[:column] + text + current[column:])
    buffer.set_cursor((line, column + len(text)))
    return True


class LineBuffer:
    """In-memory TextBuffer."""

    def __init__(self, lines: Optional[List[str]] = None, cursor: Cursor = (0, 0)):
        self.lines = list(lines) if lines else [""]
        self.cursor = cursor

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def get_cursor(self) -> Cursor:
        return self.cursor

    def get_line(self, line: int) -> str:
        return self.lines[line]

    def set_line(self, line: int, text: str) -> None:
        self.lines[line] = text

    def set_cursor(self, cursor: Cursor) -> None:
        line, column = cursor
        if not 0 <= line < len(self.lines):
            raise IndexError(f"Line {line} out of range")
        self.cursor = (line, max(0, min(column, len(self.lines[line]))))


class ScratchOutput:
    """Collects dictation on one line and echoes it to a stream."""

    def __init__(self, stream: TextIO = sys.stdout, separator: str = " "):
        self.buffer = LineBuffer()
        self._stream = stream
        self._separator = separator

    def __call__(self, text: str) -> bool:
        line, column = self.buffer.get_cursor()
        if column > 0 and text and not text[0].isspace():
            text = self._separator + text
        inserted = insert_at_cursor(self.buffer, text)
        if inserted:
            print(self.buffer.get_line(line), file=self._stream, flush=True)
        return inserted
