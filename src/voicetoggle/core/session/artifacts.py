"""Temporary files owned by a recording session."""

from pathlib import Path
from typing import Iterable, List

from ...utils.logger import get_logger

logger = get_logger(__name__)

AUDIO_FILENAME = "recording.wav"

# A WAV file holding nothing but its RIFF header
WAV_HEADER_BYTES = 44


def audio_artifact_path(temp_dir: Path) -> Path:
    return Path(temp_dir) / AUDIO_FILENAME


def transcript_path(audio_path: Path) -> Path:
    """whisper.cpp writes its text output next to the input as <input>.txt."""
    return audio_path.with_name(audio_path.name + ".txt")


def session_artifacts(audio_path: Path) -> List[Path]:
    return [audio_path, transcript_path(audio_path)]


def remove_artifacts(paths: Iterable[Path]) -> None:
    for path in paths:
        try:
            path.unlink()
            logger.debug(f"Removed {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove {path}: {e}")


def prepare_temp_dir(temp_dir: Path) -> Path:
    """Create the temp directory and clear anything a previous session left."""
    temp_dir = Path(temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)
    audio_path = audio_artifact_path(temp_dir)
    remove_artifacts(session_artifacts(audio_path))
    return audio_path


def is_artifact_ready(path: Path) -> bool:
    try:
        return path.stat().st_size > WAV_HEADER_BYTES
    except OSError:
        return False
