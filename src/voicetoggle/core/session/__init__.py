from .artifacts import (
    AUDIO_FILENAME,
    WAV_HEADER_BYTES,
    audio_artifact_path,
    is_artifact_ready,
    prepare_temp_dir,
    remove_artifacts,
    session_artifacts,
    transcript_path,
)
from .recording import CAPTURE_COMMAND, RecordingSession, build_capture_args
from .state import IdleState, Phase, RecordingState, SessionState, TranscribingState

__all__ = [
    "AUDIO_FILENAME",
    "CAPTURE_COMMAND",
    "IdleState",
    "Phase",
    "RecordingSession",
    "RecordingState",
    "SessionState",
    "TranscribingState",
    "WAV_HEADER_BYTES",
    "audio_artifact_path",
    "build_capture_args",
    "is_artifact_ready",
    "prepare_temp_dir",
    "remove_artifacts",
    "session_artifacts",
    "transcript_path",
]
