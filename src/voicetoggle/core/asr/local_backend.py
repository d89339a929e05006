"""whisper.cpp command-line backend."""

from pathlib import Path
from typing import TYPE_CHECKING, Callable, List

from PySide6.QtCore import QProcess

from ...errors import (
    BackendNotReadyError,
    OutputUnreadableError,
    SubprocessExitError,
    SubprocessSpawnError,
)
from ...utils.logger import get_logger
from ..session.artifacts import remove_artifacts, transcript_path
from ..settings import BackendType, Settings
from .backends import (
    TranscriptionBackend,
    TranscriptionJob,
    clean_transcript,
    register_backend,
)

if TYPE_CHECKING:
    from ..installer import WhisperCppInstaller

logger = get_logger(__name__)


@register_backend(BackendType.WHISPER_CPP)
class WhisperCppBackend(TranscriptionBackend):
    name = "whisper.cpp"

    def __init__(
        self,
        settings: Settings,
        installer: "WhisperCppInstaller",
        process_factory: Callable[..., QProcess] = QProcess,
    ):
        self._settings = settings
        self._installer = installer
        self._process_factory = process_factory

    def output_paths(self, audio_path: Path) -> List[Path]:
        return [transcript_path(audio_path)]

    def build_args(self, audio_path: Path) -> List[str]:
        model = str(self._installer.model_path(self._settings.model))
        args = ["-m", model, "-f", str(audio_path), "-l", self._settings.language]
        args.append("--output-txt")
        return args

    def transcribe(self, audio_path: Path) -> TranscriptionJob:
        job = TranscriptionJob(self.name)

        if not self._installer.is_ready():
            logger.error("whisper.cpp is not installed")
            job.fail_later(
                BackendNotReadyError(
                    "whisper.cpp is not installed. Run 'voicetoggle install' first"
                )
            )
            return job

        process = self._process_factory(job)
        process.setWorkingDirectory(str(self._installer.install_dir))
        process.finished.connect(
            lambda code, status: self._on_finished(job, process, audio_path, code, status)
        )
        process.errorOccurred.connect(lambda error: self._on_error(job, process, error))
        job.set_cancel(lambda: self._kill(process))

        executable = str(self._installer.executable_path())
        args = self.build_args(audio_path)
        logger.info(f"Running {executable} {' '.join(args)}")
        process.start(executable, args)
        return job

    def _kill(self, process: QProcess) -> None:
        if process.state() != QProcess.ProcessState.NotRunning:
            process.kill()
            process.waitForFinished(1000)

    def _on_error(self, job: TranscriptionJob, process: QProcess, error) -> None:
        if error != QProcess.ProcessError.FailedToStart:
            return
        job.fail_later(
            SubprocessSpawnError(f"Failed to start whisper.cpp: {process.errorString()}")
        )

    def _on_finished(
        self,
        job: TranscriptionJob,
        process: QProcess,
        audio_path: Path,
        exit_code: int,
        exit_status,
    ) -> None:
        if job.is_done:
            return

        output_file = transcript_path(audio_path)
        if exit_code != 0 or exit_status != QProcess.ExitStatus.NormalExit:
            stderr = bytes(process.readAllStandardError()).decode(
                "utf-8", errors="replace"
            ).strip()
            logger.error(f"whisper.cpp exited with code {exit_code}: {stderr[-500:]}")
            remove_artifacts([output_file])
            job.fail(
                SubprocessExitError(
                    "Transcription failed", exit_code=exit_code, stderr=stderr
                )
            )
            return

        try:
            text = output_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {output_file}: {e}")
            job.fail(OutputUnreadableError("Failed to read transcription output"))
            return
        finally:
            remove_artifacts([output_file])

        job.resolve(clean_transcript(text))
