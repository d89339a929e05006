"""OpenAI transcription API backend."""

from pathlib import Path
from typing import TYPE_CHECKING, Optional, Set

import requests
from PySide6.QtCore import QObject, QThread, Signal, Slot

from ...errors import ArtifactMissingError, BackendNotConfiguredError, NetworkError
from ...utils.logger import get_logger
from ..settings import BackendType, OpenAISettings, Settings
from .backends import (
    TranscriptionBackend,
    TranscriptionJob,
    clean_transcript,
    register_backend,
)

if TYPE_CHECKING:
    from ..installer import WhisperCppInstaller

logger = get_logger(__name__)

# Jobs whose upload thread is still running, kept alive until it exits
_in_flight: Set["UploadJob"] = set()


class UploadWorkerThread(QThread):
    """
    Background thread for the HTTPS upload.

    Signals:
        succeeded: Emitted with the transcript
        failed: Emitted with a VoiceToggleError
    """

    succeeded = Signal(str)
    failed = Signal(object)

    def __init__(
        self,
        audio_path: Path,
        api_key: str,
        openai_settings: OpenAISettings,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._audio_path = audio_path
        self._api_key = api_key
        self._settings = openai_settings

    def run(self):
        logger.info(f"Uploading {self._audio_path.name} to {self._settings.endpoint}")
        try:
            with open(self._audio_path, "rb") as audio_file:
                response = requests.post(
                    self._settings.endpoint,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    files={"file": (self._audio_path.name, audio_file, "audio/wav")},
                    data={"model": self._settings.model, "response_format": "text"},
                    timeout=self._settings.timeout_seconds,
                )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"OpenAI transcription request failed: {e}")
            self.failed.emit(NetworkError("OpenAI transcription failed"))
            return
        except OSError as e:
            logger.error(f"Could not read {self._audio_path}: {e}")
            self.failed.emit(ArtifactMissingError("Recorded audio could not be read"))
            return

        self.succeeded.emit(clean_transcript(response.text))


class UploadJob(TranscriptionJob):
    def __init__(self, backend_name: str, parent: Optional[QObject] = None):
        super().__init__(backend_name, parent)
        self._worker: Optional[UploadWorkerThread] = None

    def attach_worker(self, worker: UploadWorkerThread) -> None:
        self._worker = worker
        worker.succeeded.connect(self.resolve)
        worker.failed.connect(self.fail)
        worker.finished.connect(self.release_worker)
        _in_flight.add(self)

    @Slot()
    def release_worker(self) -> None:
        if self._worker is not None:
            self._worker.wait()
            self._worker = None
        _in_flight.discard(self)

    def wait_worker(self, timeout_ms: int) -> bool:
        worker = self._worker
        if worker is None:
            return True
        if not worker.wait(timeout_ms):
            return False
        self.release_worker()
        return True


def wait_for_uploads(timeout_ms: int) -> bool:
    """Block until every upload thread has exited. Returns False on timeout."""
    finished = True
    for job in list(_in_flight):
        finished = job.wait_worker(timeout_ms) and finished
    return finished


@register_backend(BackendType.OPENAI)
class OpenAIBackend(TranscriptionBackend):
    name = "OpenAI"

    def __init__(
        self,
        settings: Settings,
        installer: Optional["WhisperCppInstaller"] = None,
    ):
        self._settings = settings

    def transcribe(self, audio_path: Path) -> TranscriptionJob:
        job = UploadJob(self.name)

        api_key = self._settings.openai.resolve_api_key()
        if not api_key:
            logger.error("OpenAI API key not configured")
            job.fail_later(BackendNotConfiguredError("OpenAI API key not configured"))
            return job

        worker = UploadWorkerThread(audio_path, api_key, self._settings.openai)
        job.attach_worker(worker)
        worker.start()
        return job
