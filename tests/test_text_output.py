"""Tests for cursor insertion and desktop text output."""

import io
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from voicetoggle.core.output import (
    KeyboardTextOutput,
    LineBuffer,
    ScratchOutput,
    insert_at_cursor,
)


class TestInsertAtCursor:
    def test_splices_at_column(self):
        buffer = LineBuffer(["hello world"], cursor=(0, 5))

        assert insert_at_cursor(buffer, " there") is True

        assert buffer.get_line(0) == "hello there world"
        assert buffer.get_cursor() == (0, 11)

    def test_end_of_line(self):
        buffer = LineBuffer(["first", "second"], cursor=(1, 6))
        insert_at_cursor(buffer, "!")
        assert buffer.lines == ["first", "second!"]
        assert buffer.get_cursor() == (1, 7)

    def test_start_of_line(self):
        buffer = LineBuffer(["world"], cursor=(0, 0))
        insert_at_cursor(buffer, "hello ")
        assert buffer.text == "hello world"
        assert buffer.get_cursor() == (0, 6)

    @pytest.mark.parametrize("text", ["", None])
    def test_empty_text_is_noop(self, text):
        buffer = LineBuffer(["hello world"], cursor=(0, 5))

        assert insert_at_cursor(buffer, text) is False

        assert buffer.text == "hello world"
        assert buffer.get_cursor() == (0, 5)

    def test_set_cursor_out_of_range(self):
        with pytest.raises(IndexError):
            LineBuffer(["only"]).set_cursor((3, 0))


class TestScratchOutput:
    def test_accumulates_with_spaces(self):
        stream = io.StringIO()
        output = ScratchOutput(stream=stream)

        output("Hello")
        output("world")
        output(" again")

        assert output.buffer.text == "Hello world again"
        assert stream.getvalue().splitlines() == ["Hello", "Hello world", "Hello world again"]

    def test_empty_text_not_echoed(self):
        stream = io.StringIO()
        assert ScratchOutput(stream=stream)("") is False
        assert stream.getvalue() == ""


class TestKeyboardTextOutput:
    def test_types_when_clipboard_disabled(self):
        keyboard = MagicMock()
        output = KeyboardTextOutput(use_clipboard=False, keyboard=keyboard)

        assert output("dictated") is True
        keyboard.type.assert_called_once_with("dictated")

    def test_empty_text_is_noop(self):
        keyboard = MagicMock()
        assert KeyboardTextOutput(keyboard=keyboard)("") is False
        keyboard.type.assert_not_called()

    @patch("voicetoggle.core.output.text_output.paste_modifier", return_value="ctrl")
    @patch("voicetoggle.core.output.text_output.time.sleep")
    @patch("voicetoggle.core.output.text_output.get_platform", return_value="linux")
    @patch("voicetoggle.core.output.text_output.subprocess.run")
    def test_pastes_and_restores_clipboard(self, mock_run, _, __, ___):
        mock_run.side_effect = [
            MagicMock(returncode=0, stdout="previous"),
            MagicMock(returncode=0),
            MagicMock(returncode=0),
        ]
        keyboard = MagicMock()

        KeyboardTextOutput(keyboard=keyboard)("dictated")

        copies = [call for call in mock_run.call_args_list if call.args[0][-1] != "-o"]
        assert [call.kwargs["input"] for call in copies] == ["dictated", "previous"]
        keyboard.tap.assert_called_once_with("v")
        keyboard.type.assert_not_called()

    @patch("voicetoggle.core.output.text_output.get_platform", return_value="linux")
    @patch("voicetoggle.core.output.text_output.subprocess.run")
    def test_falls_back_to_typing_without_xclip(self, mock_run, _):
        mock_run.side_effect = FileNotFoundError("xclip")
        keyboard = MagicMock()

        KeyboardTextOutput(keyboard=keyboard)("dictated")

        keyboard.type.assert_called_once_with("dictated")

    @patch("voicetoggle.core.output.text_output.get_platform", return_value="linux")
    @patch("voicetoggle.core.output.text_output.subprocess.run")
    def test_falls_back_when_copy_fails(self, mock_run, _):
        mock_run.side_effect = [
            MagicMock(returncode=1, stdout=""),
            subprocess.CalledProcessError(1, "xclip"),
        ]
        keyboard = MagicMock()

        KeyboardTextOutput(keyboard=keyboard)("dictated")

        keyboard.type.assert_called_once_with("dictated")
