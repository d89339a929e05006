"""
whisper.cpp installation: fetch the sources, build the CLI and download the
configured ggml model.

This is an administrative, out-of-band operation that blocks the caller; the
recording path only ever asks ``is_ready()``.
"""

import os
import subprocess
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Tuple

import requests
from platformdirs import user_data_path

from ...utils.logger import get_logger
from ...utils.platform import command_exists, get_subprocess_kwargs
from .model_downloader import ModelDownloader
from .models import DEFAULT_MODEL, get_model_by_id

if TYPE_CHECKING:
    from ..settings import SettingsProvider

logger = get_logger(__name__)

WHISPER_CPP_REPO = "https://github.com/ggerganov/whisper.cpp.git"

# Newer whisper.cpp builds ship whisper-cli; older Makefile builds left ./main
EXECUTABLE_CANDIDATES = ("build/bin/whisper-cli", "build/bin/main", "main")


@dataclass(frozen=True)
class RequiredTool:
    name: str
    message: str


BUILD_TOOLS = [
    RequiredTool("git", "Git is required for installation"),
    RequiredTool("cmake", "CMake is required for building whisper.cpp"),
    RequiredTool("make", "Make is required for building whisper.cpp"),
]

CAPTURE_TOOLS = [
    RequiredTool("rec", "SoX (rec command) is required for audio recording"),
]


def check_dependencies(tools: Sequence[RequiredTool] = BUILD_TOOLS) -> List[RequiredTool]:
    return [tool for tool in tools if not command_exists(tool.name)]


def default_install_dir() -> Path:
    return user_data_path("voicetoggle", appauthor=False) / "whisper.cpp"


class InstallStatus(Enum):
    NOT_INSTALLED = auto()
    INSTALLING = auto()
    INSTALLED = auto()
    FAILED = auto()


@dataclass
class InstallProgress:
    stage: str
    status: str
    progress: float


class WhisperCppInstaller:
    def __init__(
        self,
        settings_provider: "SettingsProvider",
        downloader: Optional[ModelDownloader] = None,
    ):
        self._settings_provider = settings_provider
        self._downloader = downloader or ModelDownloader()
        self._status = InstallStatus.NOT_INSTALLED
        self._cancel_requested = False

    @property
    def install_dir(self) -> Path:
        return self._settings_provider.get().install_dir or default_install_dir()

    @property
    def models_dir(self) -> Path:
        return self.install_dir / "models"

    @property
    def status(self) -> InstallStatus:
        return self._status

    def executable_path(self) -> Path:
        for candidate in EXECUTABLE_CANDIDATES:
            path = self.install_dir / candidate
            if path.is_file():
                return path
        return self.install_dir / EXECUTABLE_CANDIDATES[0]

    def model_path(self, model_id: Optional[str] = None) -> Path:
        model_id = model_id or self._settings_provider.get().model
        model_info = get_model_by_id(model_id) or get_model_by_id(DEFAULT_MODEL)
        return self.models_dir / model_info.filename

    def is_ready(self) -> bool:
        executable = self.executable_path()
        return (
            executable.is_file()
            and os.access(executable, os.X_OK)
            and self.model_path().is_file()
        )

    def cancel(self) -> None:
        self._cancel_requested = True
        self._downloader.cancel()

    def install(
        self,
        progress_callback: Optional[Callable[[InstallProgress], None]] = None,
    ) -> Tuple[bool, str]:
        missing = check_dependencies(BUILD_TOOLS)
        if missing:
            self._status = InstallStatus.FAILED
            details = "; ".join(tool.message for tool in missing)
            return False, f"Missing required dependencies: {details}"

        self._status = InstallStatus.INSTALLING
        self._cancel_requested = False

        install_dir = self.install_dir
        try:
            install_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self._status = InstallStatus.FAILED
            return False, f"Failed to create installation directory: {e}"

        # init + fetch instead of clone so an existing models/ dir survives
        steps = [
            ("Fetching whisper.cpp...", ["git", "init", "-q"]),
            (
                "Fetching whisper.cpp...",
                ["git", "fetch", "--depth", "1", WHISPER_CPP_REPO, "HEAD"],
            ),
            ("Fetching whisper.cpp...", ["git", "checkout", "-q", "FETCH_HEAD"]),
            (
                "Configuring build...",
                ["cmake", "-B", "build", "-DCMAKE_BUILD_TYPE=Release"],
            ),
            (
                "Building whisper.cpp...",
                ["cmake", "--build", "build", "--config", "Release", "-j"],
            ),
        ]
        total_steps = len(steps) + 1

        for index, (stage, cmd) in enumerate(steps):
            success, msg = self._run_step(
                cmd, install_dir, stage, index, total_steps, progress_callback
            )
            if not success:
                self._status = InstallStatus.FAILED
                return False, msg

        try:
            downloaded = self.download_model(progress_callback)
        except requests.RequestException as e:
            self._status = InstallStatus.FAILED
            return False, f"Failed to download Whisper model: {e}"

        if not downloaded:
            self._status = InstallStatus.FAILED
            return False, "Installation cancelled"

        self._status = InstallStatus.INSTALLED
        return True, "Installation completed successfully"

    def download_model(
        self,
        progress_callback: Optional[Callable[[InstallProgress], None]] = None,
    ) -> bool:
        model_id = self._settings_provider.get().model

        def on_progress(downloaded: int, total: int) -> None:
            if progress_callback:
                progress_callback(
                    InstallProgress(
                        stage=f"Downloading {model_id} model...",
                        status=f"{downloaded / 1024 / 1024:.1f} / {total / 1024 / 1024:.1f} MB",
                        progress=downloaded / total,
                    )
                )

        logger.info(f"Ensuring model '{model_id}' in {self.models_dir}")
        return self._downloader.download(
            model_id, self.models_dir, on_progress=on_progress
        )

    def _run_step(
        self,
        cmd: List[str],
        cwd: Path,
        stage: str,
        index: int,
        total_steps: int,
        progress_callback: Optional[Callable[[InstallProgress], None]] = None,
    ) -> Tuple[bool, str]:
        logger.info(f"{stage} ({' '.join(cmd)})")
        last_line = ""

        try:
            process = subprocess.Popen(
                cmd,
                **get_subprocess_kwargs(
                    cwd=str(cwd),
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    bufsize=1,  # Line buffered
                ),
            )
        except OSError as e:
            return False, f"Failed to run {cmd[0]}: {e}"

        while True:
            if self._cancel_requested:
                process.terminate()
                try:
                    process.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    process.kill()
                return False, "Installation cancelled"

            output_line = process.stdout.readline()
            if output_line == "" and process.poll() is not None:
                break

            if output_line:
                line = output_line.strip()
                if line:
                    last_line = line
                    logger.debug(line)

                if progress_callback:
                    progress_callback(
                        InstallProgress(
                            stage=stage,
                            status=line[:60],
                            progress=index / total_steps,
                        )
                    )

        return_code = process.poll()
        if return_code != 0:
            return False, f"{stage.rstrip('.')} failed: {last_line}"

        if progress_callback:
            progress_callback(
                InstallProgress(
                    stage=stage, status="Done", progress=(index + 1) / total_steps
                )
            )
        return True, ""
