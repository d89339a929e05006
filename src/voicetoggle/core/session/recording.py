"""
Supervision of a single SoX ``rec`` capture process.

The session owns the process, the max-duration deadline and the once-a-second
status tick. It never changes controller state itself: it only reports what
happened through its signals.
"""

import time
from pathlib import Path
from typing import Callable, List, Optional

from PySide6.QtCore import QObject, QProcess, QTimer, Signal

from ...errors import SubprocessExitError, SubprocessSpawnError
from ...utils.logger import get_logger
from ..settings import Settings

logger = get_logger(__name__)

CAPTURE_COMMAND = "rec"
STATUS_INTERVAL_MS = 1000
STOP_GRACE_MS = 2000


def build_capture_args(settings: Settings, audio_path: Path) -> List[str]:
    rate = str(settings.sample_rate)
    args = ["-q", "-r", rate, "-c", "1", "-b", "16", str(audio_path)]
    args += ["rate", rate]
    # Start writing once sound rises above the threshold
    args += ["silence", "1", str(settings.silence_duration), settings.silence_threshold]
    return args


class RecordingSession(QObject):
    """
    One audio capture attempt.

    Signals:
        progress: (elapsed_seconds, max_seconds), once per second while capturing
        deadline_reached: the configured max duration elapsed
        stopped: capture ended normally and the artifact is finalised
        failed: capture could not start or exited abnormally (VoiceToggleError)
    """

    progress = Signal(int, int)
    deadline_reached = Signal()
    stopped = Signal()
    failed = Signal(object)

    def __init__(
        self,
        settings: Settings,
        audio_path: Path,
        process_factory: Callable[..., QProcess] = QProcess,
        clock: Callable[[], float] = time.monotonic,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._settings = settings
        self._audio_path = audio_path
        self._process_factory = process_factory
        self._clock = clock
        self._process: Optional[QProcess] = None
        self._started_at: Optional[float] = None
        self._stopping = False
        self._done = False

        self._deadline = QTimer(self)
        self._deadline.setSingleShot(True)
        self._deadline.setInterval(settings.max_recording_seconds * 1000)
        self._deadline.timeout.connect(self._on_deadline)

        self._ticker = QTimer(self)
        self._ticker.setInterval(STATUS_INTERVAL_MS)
        self._ticker.timeout.connect(self._on_tick)

        self._kill_timer = QTimer(self)
        self._kill_timer.setSingleShot(True)
        self._kill_timer.setInterval(STOP_GRACE_MS)
        self._kill_timer.timeout.connect(self._force_kill)

    @property
    def audio_path(self) -> Path:
        return self._audio_path

    @property
    def started_at(self) -> Optional[float]:
        return self._started_at

    @property
    def elapsed_seconds(self) -> int:
        if self._started_at is None:
            return 0
        return int(self._clock() - self._started_at)

    @property
    def is_active(self) -> bool:
        return self._process is not None and not self._done

    def start(self) -> None:
        process = self._process_factory(self)
        process.finished.connect(self._on_finished)
        process.errorOccurred.connect(self._on_error)
        self._process = process

        self._started_at = self._clock()
        self._deadline.start()
        self._ticker.start()

        args = build_capture_args(self._settings, self._audio_path)
        logger.info(f"Starting capture: {CAPTURE_COMMAND} {' '.join(args)}")
        process.start(CAPTURE_COMMAND, args)

    def stop(self) -> None:
        """Ask the capture process to finish; ``stopped`` follows once it exits."""
        if self._done or self._stopping:
            return
        self._stopping = True
        self._stop_timers()

        process = self._process
        if process is not None and process.state() != QProcess.ProcessState.NotRunning:
            # SIGTERM lets SoX write the final WAV header
            process.terminate()
            self._kill_timer.start()
        else:
            QTimer.singleShot(0, self._finish_stopped)

    def abort(self) -> None:
        """Kill the capture process without reporting anything."""
        if self._done:
            return
        self._done = True
        self._stop_timers()
        self._kill_timer.stop()

        process = self._process
        if process is not None and process.state() != QProcess.ProcessState.NotRunning:
            logger.info("Killing capture process")
            process.kill()
            process.waitForFinished(1000)

    def _stop_timers(self) -> None:
        self._deadline.stop()
        self._ticker.stop()

    def _on_tick(self) -> None:
        if not self._done and not self._stopping:
            self.progress.emit(self.elapsed_seconds, self._settings.max_recording_seconds)

    def _on_deadline(self) -> None:
        if not self._done and not self._stopping:
            logger.info("Maximum recording duration reached")
            self.deadline_reached.emit()

    def _force_kill(self) -> None:
        if self._process is not None and not self._done:
            logger.warning("Capture process ignored terminate, killing it")
            self._process.kill()

    def _finish_stopped(self) -> None:
        if self._done:
            return
        self._done = True
        self.stopped.emit()

    def _on_finished(self, exit_code: int, exit_status) -> None:
        self._kill_timer.stop()
        self._stop_timers()
        if self._done:
            return

        if self._stopping:
            self._finish_stopped()
            return

        if exit_code == 0 and exit_status == QProcess.ExitStatus.NormalExit:
            logger.info("Capture process exited on its own")
            self._finish_stopped()
            return

        stderr = bytes(self._process.readAllStandardError()).decode(
            "utf-8", errors="replace"
        ).strip()
        logger.error(f"Capture process exited with code {exit_code}: {stderr}")
        self._done = True
        self.failed.emit(
            SubprocessExitError(
                f"Recording failed (exit code {exit_code})",
                exit_code=exit_code,
                stderr=stderr,
            )
        )

    def _on_error(self, error) -> None:
        if error != QProcess.ProcessError.FailedToStart:
            logger.debug(f"Capture process error: {error}")
            return
        self._kill_timer.stop()
        self._stop_timers()
        if self._done:
            return
        self._done = True
        reason = self._process.errorString() if self._process is not None else ""
        logger.error(f"Failed to start {CAPTURE_COMMAND}: {reason}")
        self.failed.emit(
            SubprocessSpawnError(f"Failed to start {CAPTURE_COMMAND}: {reason}")
        )
