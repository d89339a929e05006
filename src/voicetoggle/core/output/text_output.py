"""
Text insertion into the focused desktop window.

The transcript is pasted through the system clipboard, restoring the previous
clipboard content afterwards. If the clipboard tool is unavailable the text is
typed with the keyboard instead.
"""

import subprocess
import time
from typing import List, Optional

from ...utils.logger import get_logger
from ...utils.platform import get_platform, get_subprocess_kwargs

logger = get_logger(__name__)

CLIPBOARD_COMMANDS = {
    "linux": (["xclip", "-selection", "clipboard"], ["xclip", "-selection", "clipboard", "-o"]),
    "macos": (["pbcopy"], ["pbpaste"]),
    "windows": (["clip"], ["powershell", "-command", "Get-Clipboard"]),
}


def paste_modifier(system: str):
    from pynput.keyboard import Key

    return Key.cmd if system == "macos" else Key.ctrl


class KeyboardTextOutput:
    def __init__(self, use_clipboard: bool = True, keyboard=None):
        if keyboard is None:
            from pynput.keyboard import Controller as KeyboardController

            keyboard = KeyboardController()
        self._keyboard = keyboard
        self._use_clipboard = use_clipboard

    def __call__(self, text: str) -> bool:
        if not text:
            return False
        if not (self._use_clipboard and self._paste(text)):
            self._keyboard.type(text)
        return True

    def _paste(self, text: str) -> bool:
        system = get_platform()
        commands = CLIPBOARD_COMMANDS.get(system)
        if commands is None:
            logger.warning(f"No clipboard support on {system}, typing instead")
            return False

        copy_cmd, paste_cmd = commands

        previous = self._read_clipboard(paste_cmd)
        if not self._write_clipboard(copy_cmd, text):
            return False

        time.sleep(0.05)
        with self._keyboard.pressed(paste_modifier(system)):
            self._keyboard.tap("v")
        time.sleep(0.1)

        if previous:
            self._write_clipboard(copy_cmd, previous)
        return True

    def _read_clipboard(self, paste_cmd: List[str]) -> Optional[str]:
        try:
            result = subprocess.run(
                paste_cmd,
                **get_subprocess_kwargs(capture_output=True, text=True, timeout=1),
            )
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return None
        return result.stdout if result.returncode == 0 else None

    def _write_clipboard(self, copy_cmd: List[str], text: str) -> bool:
        try:
            subprocess.run(
                copy_cmd,
                **get_subprocess_kwargs(input=text, text=True, timeout=1, check=True),
            )
        except (
            subprocess.TimeoutExpired,
            FileNotFoundError,
            subprocess.CalledProcessError,
        ) as e:
            logger.error(f"Failed to set clipboard: {e}")
            return False
        return True
