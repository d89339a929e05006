"""
Transcription backends.

A backend turns a finished audio artifact into text. ``transcribe`` never
blocks: it returns a TranscriptionJob whose ``finished`` signal fires exactly
once, on the event-loop thread, with a TranscriptionResult.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Type

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from ...errors import VoiceToggleError
from ...utils.logger import get_logger
from ..settings import BackendType, Settings

if TYPE_CHECKING:
    from ..installer import WhisperCppInstaller

logger = get_logger(__name__)


@dataclass
class TranscriptionResult:
    text: str = ""
    error: Optional[VoiceToggleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def clean_transcript(text: Optional[str]) -> str:
    """
    Drop the trailing line break the engines append. Everything else is kept
    as received, including the leading space whisper puts before a segment.
    """
    if not text:
        return ""
    return text.rstrip("\r\n")


class TranscriptionJob(QObject):
    """Handle for one in-flight transcription."""

    finished = Signal(object)

    def __init__(self, backend_name: str, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.backend_name = backend_name
        self._done = False
        self._cancel_hook: Optional[Callable[[], None]] = None

    @property
    def is_done(self) -> bool:
        return self._done

    def set_cancel(self, hook: Callable[[], None]) -> None:
        self._cancel_hook = hook

    @Slot(str)
    def resolve(self, text: str) -> None:
        self._complete(TranscriptionResult(text=text))

    @Slot(object)
    def fail(self, error: VoiceToggleError) -> None:
        self._complete(TranscriptionResult(error=error))

    def fail_later(self, error: VoiceToggleError) -> None:
        QTimer.singleShot(0, lambda: self.fail(error))

    def cancel(self) -> None:
        """Drop the job; nothing is reported afterwards."""
        if self._done:
            return
        self._done = True
        if self._cancel_hook is not None:
            self._cancel_hook()

    def _complete(self, result: TranscriptionResult) -> None:
        if self._done:
            logger.debug(f"{self.backend_name}: ignoring late result")
            return
        self._done = True
        self.finished.emit(result)


class TranscriptionBackend(ABC):
    name: str = ""

    @abstractmethod
    def transcribe(self, audio_path: Path) -> TranscriptionJob:
        pass

    def output_paths(self, audio_path: Path) -> List[Path]:
        """Files this backend may leave beside the audio artifact."""
        return []


_BACKENDS: Dict[BackendType, Type[TranscriptionBackend]] = {}


def register_backend(backend_type: BackendType):
    def decorator(cls: Type[TranscriptionBackend]) -> Type[TranscriptionBackend]:
        _BACKENDS[backend_type] = cls
        return cls

    return decorator


def create_backend(
    settings: Settings, installer: "WhisperCppInstaller", **kwargs
) -> TranscriptionBackend:
    backend_cls = _BACKENDS.get(settings.backend)
    if backend_cls is None:
        raise ValueError(f"Unknown backend: {settings.backend}")
    return backend_cls(settings=settings, installer=installer, **kwargs)
