from .backends import (
    TranscriptionBackend,
    TranscriptionJob,
    TranscriptionResult,
    clean_transcript,
    create_backend,
)
from .cloud_backend import OpenAIBackend, UploadWorkerThread, wait_for_uploads
from .local_backend import WhisperCppBackend

__all__ = [
    "OpenAIBackend",
    "TranscriptionBackend",
    "TranscriptionJob",
    "TranscriptionResult",
    "UploadWorkerThread",
    "WhisperCppBackend",
    "clean_transcript",
    "create_backend",
    "wait_for_uploads",
]
