"""
Exceptions for VoiceToggle.

Every failure a recording session can end with maps to one ErrorKind, so the
controller can report it once and still return to idle.
"""

from enum import Enum
from typing import Optional, Sequence


class ErrorKind(Enum):
    CONFIG_INVALID = "config_invalid"
    DEPENDENCY_MISSING = "dependency_missing"
    SUBPROCESS_SPAWN_FAILED = "subprocess_spawn_failed"
    SUBPROCESS_NONZERO_EXIT = "subprocess_nonzero_exit"
    ARTIFACT_MISSING = "artifact_missing"
    BACKEND_NOT_CONFIGURED = "backend_not_configured"
    BACKEND_NOT_READY = "backend_not_ready"
    NETWORK_FAILURE = "network_failure"
    OUTPUT_UNREADABLE = "output_unreadable"


class VoiceToggleError(Exception):
    """Base exception for all VoiceToggle errors."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigInvalidError(VoiceToggleError):
    """Raised when a configuration value cannot be used."""

    kind = ErrorKind.CONFIG_INVALID


class DependencyMissingError(VoiceToggleError):
    """Raised when an external tool is not on PATH."""

    kind = ErrorKind.DEPENDENCY_MISSING

    def __init__(self, message: str, missing: Sequence[str] = ()):
        super().__init__(message)
        self.missing = list(missing)


class SubprocessSpawnError(VoiceToggleError):
    """Raised when a child process could not be started."""

    kind = ErrorKind.SUBPROCESS_SPAWN_FAILED


class SubprocessExitError(VoiceToggleError):
    """Raised when a child process exits with a non-zero status."""

    kind = ErrorKind.SUBPROCESS_NONZERO_EXIT

    def __init__(
        self, message: str, exit_code: Optional[int] = None, stderr: str = ""
    ):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class ArtifactMissingError(VoiceToggleError):
    """Raised when the recorded audio is missing or empty."""

    kind = ErrorKind.ARTIFACT_MISSING


class BackendNotConfiguredError(VoiceToggleError):
    """Raised when a backend lacks a required credential."""

    kind = ErrorKind.BACKEND_NOT_CONFIGURED


class BackendNotReadyError(VoiceToggleError):
    """Raised when the local engine or its model is not installed."""

    kind = ErrorKind.BACKEND_NOT_READY


class NetworkError(VoiceToggleError):
    """Raised when the transcription request fails in transport."""

    kind = ErrorKind.NETWORK_FAILURE


class OutputUnreadableError(VoiceToggleError):
    """Raised when a backend's output file cannot be read."""

    kind = ErrorKind.OUTPUT_UNREADABLE
