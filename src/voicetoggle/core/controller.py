"""
Recording / transcription lifecycle.

LifecycleController is the single state machine behind the toggle and stop
commands:

    Idle --toggle--> Recording --stop or deadline--> Transcribing --> Idle

Everything asynchronous (capture process, deadline timer, backend job) reports
back through Qt signals on the event-loop thread. Each session gets a
generation number and every continuation checks it, so results that arrive
after ``cleanup()`` or after a newer session started are dropped.
"""

import time
from typing import Any, Callable, List, Optional

from PySide6.QtCore import QObject, QProcess, Signal

from ..errors import (
    ArtifactMissingError,
    ConfigInvalidError,
    DependencyMissingError,
    VoiceToggleError,
)
from ..utils.logger import get_logger
from ..utils.platform import missing_commands
from .asr import TranscriptionBackend, TranscriptionResult, create_backend
from .installer import WhisperCppInstaller
from .notifications import LogNotifier, Notifier, Severity
from .session import (
    CAPTURE_COMMAND,
    IdleState,
    Phase,
    RecordingSession,
    RecordingState,
    SessionState,
    TranscribingState,
    audio_artifact_path,
    is_artifact_ready,
    prepare_temp_dir,
    remove_artifacts,
    session_artifacts,
)
from .settings import Settings, SettingsProvider

logger = get_logger(__name__)

InsertText = Callable[[str], Any]
BackendFactory = Callable[[Settings, WhisperCppInstaller], TranscriptionBackend]


class LifecycleController(QObject):
    """
    Owns the one session state object of the application.

    Signals:
        phase_changed: Emitted with the new Phase on every transition
    """

    phase_changed = Signal(object)

    def __init__(
        self,
        settings_provider: SettingsProvider,
        installer: WhisperCppInstaller,
        insert_text: Optional[InsertText] = None,
        notifier: Optional[Notifier] = None,
        backend_factory: BackendFactory = create_backend,
        process_factory: Callable[..., QProcess] = QProcess,
        dependency_check: Callable[[List[str]], List[str]] = missing_commands,
        clock: Callable[[], float] = time.monotonic,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._settings_provider = settings_provider
        self._installer = installer
        self._insert_text = insert_text
        self._notifier = notifier or LogNotifier()
        self._backend_factory = backend_factory
        self._process_factory = process_factory
        self._dependency_check = dependency_check
        self._clock = clock

        self._state: SessionState = IdleState()
        self._generation = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def generation(self) -> int:
        return self._generation

    def toggle(self) -> bool:
        phase = self._state.phase
        if phase is Phase.IDLE:
            return self.start()
        if phase is Phase.RECORDING:
            return self.stop()
        logger.info("Transcription in progress, ignoring toggle")
        return False

    def start(self) -> bool:
        if self._state.phase is not Phase.IDLE:
            logger.info(f"Already {self._state.phase.value}, not starting a new recording")
            return False

        settings = self._settings_provider.get()

        missing = self._dependency_check([CAPTURE_COMMAND])
        if missing:
            self._report(
                DependencyMissingError(
                    "SoX (rec command) is required for audio recording", missing
                )
            )
            return False

        try:
            audio_path = prepare_temp_dir(settings.temp_dir)
        except OSError as e:
            logger.error(f"Cannot use temp directory {settings.temp_dir}: {e}")
            self._report(
                ConfigInvalidError(f"Temp directory is not usable: {settings.temp_dir}")
            )
            return False

        self._generation += 1
        generation = self._generation

        recording = RecordingSession(
            settings,
            audio_path,
            process_factory=self._process_factory,
            clock=self._clock,
            parent=self,
        )
        recording.progress.connect(
            lambda elapsed, limit: self._on_progress(generation, elapsed, limit)
        )
        recording.deadline_reached.connect(lambda: self._on_deadline(generation))
        recording.stopped.connect(lambda: self._on_capture_stopped(generation))
        recording.failed.connect(lambda error: self._on_capture_failed(generation, error))

        # State first: a spawn failure may be reported from inside start()
        self._set_state(
            RecordingState(
                generation=generation,
                settings=settings,
                audio_path=audio_path,
                recording=recording,
                started_at=self._clock(),
            )
        )
        logger.info(f"Recording started (session {generation})")
        if settings.ui.show_recording_status:
            self._notifier.notify(
                f"Recording... (0s/{settings.max_recording_seconds}s)", Severity.STATUS
            )
        recording.start()

        return self._is_current(generation) and self._state.phase is Phase.RECORDING

    def stop(self) -> bool:
        state = self._state
        if not isinstance(state, RecordingState):
            logger.debug("Not recording, nothing to stop")
            return False

        self._set_state(
            TranscribingState(
                generation=state.generation,
                settings=state.settings,
                audio_path=state.audio_path,
                recording=state.recording,
            )
        )
        logger.info(f"Recording stopped after {state.recording.elapsed_seconds}s")
        state.recording.stop()
        return True

    def cleanup(self) -> bool:
        """Kill whatever is running, delete temp files and go back to idle."""
        state = self._state
        if isinstance(state, IdleState):
            self._generation += 1
            settings = self._settings_provider.get()
            remove_artifacts(session_artifacts(audio_artifact_path(settings.temp_dir)))
            return True

        logger.info(f"Cleaning up session {state.generation} ({state.phase.value})")
        if isinstance(state, TranscribingState) and state.job is not None:
            state.job.cancel()
        state.recording.abort()
        self._teardown(state)
        return True

    def _is_current(self, generation: int) -> bool:
        state = self._state
        return not isinstance(state, IdleState) and state.generation == generation

    def _set_state(self, state: SessionState) -> None:
        previous = self._state.phase
        self._state = state
        if state.phase is not previous:
            logger.debug(f"Phase {previous.value} -> {state.phase.value}")
            self.phase_changed.emit(state.phase)

    def _report(self, error: VoiceToggleError) -> None:
        logger.error(f"{error.kind.value}: {error.message}")
        self._notifier.notify(error.message, Severity.ERROR)

    def _on_progress(self, generation: int, elapsed: int, limit: int) -> None:
        state = self._state
        if not isinstance(state, RecordingState) or state.generation != generation:
            return
        if state.settings.ui.show_recording_status:
            self._notifier.notify(f"Recording... ({elapsed}s/{limit}s)", Severity.STATUS)

    def _on_deadline(self, generation: int) -> None:
        state = self._state
        if not isinstance(state, RecordingState) or state.generation != generation:
            return
        if self.stop():
            self._notifier.notify("Maximum recording duration reached", Severity.WARNING)

    def _on_capture_stopped(self, generation: int) -> None:
        if not self._is_current(generation):
            return

        state = self._state
        if isinstance(state, RecordingState):
            # rec exited cleanly without being asked to
            state = TranscribingState(
                generation=state.generation,
                settings=state.settings,
                audio_path=state.audio_path,
                recording=state.recording,
            )
            self._set_state(state)
        self._submit(state)

    def _on_capture_failed(self, generation: int, error: VoiceToggleError) -> None:
        if not self._is_current(generation):
            return
        self._finish(generation, error=error)

    def _submit(self, state: TranscribingState) -> None:
        if not is_artifact_ready(state.audio_path):
            self._finish(state.generation, error=ArtifactMissingError("No audio was recorded"))
            return

        try:
            backend = self._backend_factory(state.settings, self._installer)
        except ValueError as e:
            self._finish(state.generation, error=ConfigInvalidError(str(e)))
            return

        state.backend = backend
        if state.settings.ui.show_transcription_progress:
            self._notifier.notify(f"Transcribing with {backend.name}...", Severity.STATUS)

        generation = state.generation
        job = backend.transcribe(state.audio_path)
        state.job = job
        job.finished.connect(lambda result: self._on_transcribed(generation, result))

    def _on_transcribed(self, generation: int, result: TranscriptionResult) -> None:
        if not self._is_current(generation):
            logger.debug(f"Discarding result of stale session {generation}")
            return
        if result.ok:
            self._finish(generation, text=result.text)
        else:
            self._finish(generation, error=result.error)

    def _finish(
        self,
        generation: int,
        text: Optional[str] = None,
        error: Optional[VoiceToggleError] = None,
    ) -> None:
        if not self._is_current(generation):
            return

        self._teardown(self._state)

        if error is not None:
            self._report(error)
            return

        if not text or text.isspace():
            logger.info("Transcription was empty, nothing to insert")
            return

        logger.info(f"Transcribed: '{text[:50]}{'...' if len(text) > 50 else ''}'")
        if self._insert_text is None:
            return
        try:
            self._insert_text(text)
        except Exception as e:
            logger.exception(f"Failed to insert text: {e}")
            self._notifier.notify("Failed to insert transcribed text", Severity.ERROR)

    def _teardown(self, state) -> None:
        self._generation += 1

        paths = session_artifacts(state.audio_path)
        backend = getattr(state, "backend", None)
        if backend is not None:
            paths += backend.output_paths(state.audio_path)
        remove_artifacts(paths)

        state.recording.deleteLater()
        self._set_state(IdleState())
