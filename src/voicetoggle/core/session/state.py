"""
Session state.

The controller holds exactly one of these objects at a time. Fields that only
make sense in a given phase live on that phase's state class, so an idle
session has no process handle or artifact path at all.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from ..settings import Settings

if TYPE_CHECKING:
    from ..asr import TranscriptionBackend, TranscriptionJob
    from .recording import RecordingSession


class Phase(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


@dataclass(frozen=True)
class IdleState:
    phase: Phase = field(default=Phase.IDLE, init=False)


@dataclass
class RecordingState:
    generation: int
    settings: Settings
    audio_path: Path
    recording: "RecordingSession"
    started_at: float
    phase: Phase = field(default=Phase.RECORDING, init=False)


@dataclass
class TranscribingState:
    generation: int
    settings: Settings
    audio_path: Path
    recording: "RecordingSession"
    backend: Optional["TranscriptionBackend"] = None
    job: Optional["TranscriptionJob"] = None
    phase: Phase = field(default=Phase.TRANSCRIBING, init=False)


SessionState = Union[IdleState, RecordingState, TranscribingState]
