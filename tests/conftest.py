"""
Pytest configuration for Qt-based tests.

Qt runs on the offscreen platform. Subprocesses are replaced with FakeProcess,
a QObject exposing the slice of the QProcess API the application uses.
"""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest
from PySide6.QtCore import QCoreApplication, QEvent, QObject, QProcess, QTimer, Signal

from voicetoggle.core.installer import WhisperCppInstaller
from voicetoggle.core.notifications import Severity
from voicetoggle.core.settings import Settings, SettingsProvider


class FakeProcess(QObject):
    finished = Signal(int, object)
    errorOccurred = Signal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.program: Optional[str] = None
        self.args: List[str] = []
        self.working_dir: Optional[str] = None
        self.stderr = b""
        self.fail_to_start = False
        self.exit_on_terminate = True
        self.terminate_exit_code = 0
        self.on_start: Optional[Callable[["FakeProcess"], None]] = None
        self.terminated = False
        self.killed = False
        self._state = QProcess.ProcessState.NotRunning

    def start(self, program, args):
        self.program = program
        self.args = list(args)
        if self.fail_to_start:
            self.errorOccurred.emit(QProcess.ProcessError.FailedToStart)
            return
        self._state = QProcess.ProcessState.Running
        if self.on_start is not None:
            self.on_start(self)

    def state(self):
        return self._state

    def setWorkingDirectory(self, directory):
        self.working_dir = directory

    def terminate(self):
        self.terminated = True
        if self.exit_on_terminate:
            QTimer.singleShot(0, lambda: self.exit(self.terminate_exit_code))

    def kill(self):
        self.killed = True
        self.exit(9, QProcess.ExitStatus.CrashExit)

    def waitForFinished(self, msecs=30000):
        return self._state == QProcess.ProcessState.NotRunning

    def readAllStandardError(self):
        return self.stderr

    def errorString(self):
        return "No such file or directory"

    def exit(self, code=0, status=QProcess.ExitStatus.NormalExit):
        if self._state == QProcess.ProcessState.NotRunning:
            return
        self._state = QProcess.ProcessState.NotRunning
        self.finished.emit(code, status)


class ProcessFactory:
    """Creates FakeProcess instances and remembers them."""

    def __init__(self):
        self.processes: List[FakeProcess] = []
        self.configure: Optional[Callable[[FakeProcess], None]] = None

    def __call__(self, parent=None) -> FakeProcess:
        process = FakeProcess(parent)
        if self.configure is not None:
            self.configure(process)
        self.processes.append(process)
        return process

    @property
    def last(self) -> FakeProcess:
        return self.processes[-1]


class RecordingNotifier:
    def __init__(self):
        self.messages: List[Tuple[str, Severity]] = []

    def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        self.messages.append((message, severity))

    def by_severity(self, severity: Severity) -> List[str]:
        return [message for message, sev in self.messages if sev == severity]

    @property
    def errors(self) -> List[str]:
        return self.by_severity(Severity.ERROR)

    @property
    def warnings(self) -> List[str]:
        return self.by_severity(Severity.WARNING)


def write_wav(path: Path, size: int = 1024) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"RIFF" + b"\x00" * (size - 4))
    return path


@pytest.fixture(autouse=True)
def cleanup_qt_objects(qtbot):
    """Flush pending events and deferred deletes between tests."""
    yield
    app = QCoreApplication.instance()
    if app:
        app.processEvents()
        QCoreApplication.sendPostedEvents(None, QEvent.Type.DeferredDelete)


@pytest.fixture(autouse=True)
def no_openai_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def process_factory() -> ProcessFactory:
    return ProcessFactory()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        temp_dir=tmp_path / "tmp",
        install_dir=tmp_path / "whisper.cpp",
        max_recording_seconds=60,
    )


@pytest.fixture
def settings_provider(settings, notifier) -> SettingsProvider:
    return SettingsProvider(settings, notifier)


@pytest.fixture
def installer(settings_provider) -> WhisperCppInstaller:
    return WhisperCppInstaller(settings_provider)


@pytest.fixture
def ready_installer(installer) -> WhisperCppInstaller:
    executable = installer.install_dir / "build" / "bin" / "whisper-cli"
    executable.parent.mkdir(parents=True)
    executable.write_text("#!/bin/sh\n")
    executable.chmod(0o755)
    model = installer.model_path()
    model.parent.mkdir(parents=True)
    model.write_bytes(b"ggml")
    return installer
