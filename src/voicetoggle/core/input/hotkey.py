"""
Global keyboard shortcuts for the toggle and stop commands.

Uses a pynput keyboard listener. Key events arrive on the listener's own
thread; the signals below are therefore queued onto the receiver's thread.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Set

from PySide6.QtCore import QObject, Signal

from ...utils.logger import get_logger
from ..settings import KeymapConfig

logger = get_logger(__name__)

MODIFIERS = {"ctrl", "alt", "shift", "cmd"}
MODIFIER_ALIASES = {"control": "ctrl", "meta": "cmd", "super": "cmd", "option": "alt"}


@dataclass(frozen=True)
class HotkeyCombo:
    modifiers: FrozenSet[str]
    key: str

    def matches(self, pressed: Set[str]) -> bool:
        return self.key in pressed and self.modifiers <= pressed


def parse_combo(combo: str) -> HotkeyCombo:
    parts = [part.strip().lower() for part in combo.split("+")]
    if not parts or not all(parts):
        raise ValueError(f"Invalid key combination: {combo!r}")

    *modifiers, key = [MODIFIER_ALIASES.get(part, part) for part in parts]
    unknown = [m for m in modifiers if m not in MODIFIERS]
    if unknown:
        raise ValueError(f"Unknown modifier(s) in {combo!r}: {', '.join(unknown)}")
    if key in MODIFIERS:
        raise ValueError(f"Key combination {combo!r} has no trigger key")
    return HotkeyCombo(frozenset(modifiers), key)


class HotkeyListener(QObject):
    """
    Listens for the configured key combinations.

    Signals:
        toggle_requested: Emitted when the toggle combination is pressed
        stop_requested: Emitted when the stop combination is pressed
    """

    toggle_requested = Signal()
    stop_requested = Signal()

    def __init__(self, keymaps: KeymapConfig, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._bindings: Dict[str, HotkeyCombo] = {}
        self._pressed: Set[str] = set()
        self._active: Set[str] = set()
        self._impl: Optional[_PynputHotkeyListenerImpl] = None
        self.update_keymaps(keymaps)

    @property
    def bindings(self) -> Dict[str, HotkeyCombo]:
        return dict(self._bindings)

    def update_keymaps(self, keymaps: KeymapConfig) -> None:
        bindings = {}
        for action, combo in (
            ("toggle", keymaps.toggle_recording),
            ("stop", keymaps.stop_recording),
        ):
            if combo is None:
                continue
            try:
                bindings[action] = parse_combo(combo)
            except ValueError as e:
                logger.warning(f"Ignoring {action} hotkey: {e}")

        if "toggle" not in bindings:
            logger.warning("No toggle hotkey configured")

        self._bindings = bindings
        self._active.clear()
        logger.info(
            "Hotkeys: "
            + (", ".join(f"{a}={c.key}" for a, c in bindings.items()) or "none")
        )

    def start(self) -> None:
        if self._impl is None:
            self._impl = _PynputHotkeyListenerImpl(self)
        self._impl.start()

    def stop(self) -> None:
        if self._impl is not None:
            self._impl.stop()
        self._bindings = {}
        self._pressed.clear()
        self._active.clear()

    def _on_key_down(self, name: str) -> None:
        self._pressed.add(name)
        for action, combo in self._bindings.items():
            if action in self._active or not combo.matches(self._pressed):
                continue
            self._active.add(action)
            if action == "toggle":
                self.toggle_requested.emit()
            else:
                self.stop_requested.emit()

    def _on_key_up(self, name: str) -> None:
        self._pressed.discard(name)
        for action in list(self._active):
            combo = self._bindings.get(action)
            if combo is None or not combo.matches(self._pressed):
                self._active.discard(action)


class _PynputHotkeyListenerImpl:
    def __init__(self, listener: HotkeyListener):
        self._listener = listener
        self._keyboard_listener = None

    def _key_name(self, key) -> Optional[str]:
        from pynput import keyboard

        if self._keyboard_listener is not None:
            key = self._keyboard_listener.canonical(key)
        if isinstance(key, keyboard.Key):
            return key.name
        char = getattr(key, "char", None)
        return char.lower() if char else None

    def _on_press(self, key) -> None:
        name = self._key_name(key)
        if name:
            self._listener._on_key_down(name)

    def _on_release(self, key) -> None:
        name = self._key_name(key)
        if name:
            self._listener._on_key_up(name)

    def start(self) -> None:
        from pynput import keyboard

        if self._keyboard_listener is not None:
            return
        self._keyboard_listener = keyboard.Listener(
            on_press=self._on_press, on_release=self._on_release
        )
        self._keyboard_listener.start()

        if hasattr(self._keyboard_listener, "IS_TRUSTED"):
            if not self._keyboard_listener.IS_TRUSTED:
                logger.warning(
                    "Hotkey listener is NOT TRUSTED. Accessibility permissions not granted."
                )

    def stop(self) -> None:
        if self._keyboard_listener:
            self._keyboard_listener.stop()
            self._keyboard_listener = None
