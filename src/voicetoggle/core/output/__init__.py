from .text_buffer import LineBuffer, ScratchOutput, TextBuffer, insert_at_cursor
from .text_output import KeyboardTextOutput

__all__ = [
    "KeyboardTextOutput",
    "LineBuffer",
    "ScratchOutput",
    "TextBuffer",
    "insert_at_cursor",
]
