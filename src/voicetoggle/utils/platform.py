"""Platform-specific utilities for cross-platform compatibility."""

import platform
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Iterable, List

from .logger import get_logger

logger = get_logger(__name__)


def get_platform() -> str:
    system = platform.system()
    if system == "Darwin":
        return "macos"
    return system.lower()


def command_exists(command: str) -> bool:
    return shutil.which(command) is not None


def missing_commands(commands: Iterable[str]) -> List[str]:
    missing = [cmd for cmd in commands if not command_exists(cmd)]
    if missing:
        logger.debug(f"Commands not found on PATH: {', '.join(missing)}")
    return missing


def get_subprocess_kwargs(**kwargs) -> dict:
    """Add the flags that keep console windows from flashing up on Windows."""
    if get_platform() == "windows":
        kwargs.setdefault("creationflags", subprocess.CREATE_NO_WINDOW)
    return kwargs


def default_temp_dir() -> Path:
    return Path(tempfile.gettempdir()) / "voicetoggle"
