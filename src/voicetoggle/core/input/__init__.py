from .hotkey import HotkeyCombo, HotkeyListener, parse_combo

__all__ = ["HotkeyCombo", "HotkeyListener", "parse_combo"]
