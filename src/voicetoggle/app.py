"""Application runtime and command-line entry point."""

import argparse
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

import requests
from PySide6.QtCore import QCoreApplication, QObject, QTimer, Slot

from voicetoggle import __app_name__, __version__
from voicetoggle.config import LOG_LEVEL
from voicetoggle.core.asr import wait_for_uploads
from voicetoggle.core.controller import InsertText, LifecycleController
from voicetoggle.core.input import HotkeyListener
from voicetoggle.core.installer import (
    AVAILABLE_MODELS,
    CAPTURE_TOOLS,
    InstallProgress,
    WhisperCppInstaller,
    check_dependencies,
)
from voicetoggle.core.notifications import LogNotifier, Notifier, Severity
from voicetoggle.core.output import KeyboardTextOutput, ScratchOutput
from voicetoggle.core.settings import BackendType, Settings, SettingsProvider
from voicetoggle.utils.logger import get_logger, set_log_level, shutdown_logging

logger = get_logger(__name__)

# Python signal handlers only run while the interpreter holds control
SIGNAL_POLL_INTERVAL_MS = 250


class VoiceToggleApp(QObject):

    def __init__(
        self,
        settings_provider: SettingsProvider,
        insert_text: Optional[InsertText] = None,
        notifier: Optional[Notifier] = None,
        enable_hotkeys: bool = True,
        installer: Optional[WhisperCppInstaller] = None,
        controller: Optional[LifecycleController] = None,
    ):
        super().__init__()

        self._settings_provider = settings_provider
        self._notifier = notifier or LogNotifier()
        self._installer = installer or WhisperCppInstaller(settings_provider)
        self._controller = controller or LifecycleController(
            settings_provider,
            self._installer,
            insert_text=insert_text,
            notifier=self._notifier,
            parent=self,
        )

        self._hotkey_listener: Optional[HotkeyListener] = None
        if enable_hotkeys:
            self._hotkey_listener = HotkeyListener(settings_provider.get().keymaps)
            self._hotkey_listener.toggle_requested.connect(self.toggle)
            self._hotkey_listener.stop_requested.connect(self.stop)

        self._signal_timer = QTimer(self)
        self._signal_timer.setInterval(SIGNAL_POLL_INTERVAL_MS)
        self._signal_timer.timeout.connect(lambda: None)

    @property
    def controller(self) -> LifecycleController:
        return self._controller

    @property
    def installer(self) -> WhisperCppInstaller:
        return self._installer

    @Slot()
    def toggle(self) -> bool:
        return self._controller.toggle()

    @Slot()
    def stop(self) -> bool:
        return self._controller.stop()

    def update_settings(self, partial: Dict[str, Any]) -> Settings:
        settings = self._settings_provider.update(partial)
        if self._hotkey_listener is not None:
            self._hotkey_listener.update_keymaps(settings.keymaps)
        return settings

    def check_startup(self) -> List[str]:
        """Report missing tools and an unready backend. Never blocks startup."""
        warnings = [tool.message for tool in check_dependencies(CAPTURE_TOOLS)]

        settings = self._settings_provider.get()
        if settings.backend == BackendType.WHISPER_CPP and not self._installer.is_ready():
            warnings.append("whisper.cpp is not installed. Run 'voicetoggle install' first")

        for warning in warnings:
            self._notifier.notify(warning, Severity.WARNING)
        return warnings

    def install_signal_handlers(self) -> None:
        if hasattr(signal, "SIGUSR1"):
            signal.signal(signal.SIGUSR1, lambda *args: QTimer.singleShot(0, self.toggle))
            signal.signal(signal.SIGUSR2, lambda *args: QTimer.singleShot(0, self.stop))
        signal.signal(signal.SIGINT, lambda *args: QTimer.singleShot(0, self.quit))
        signal.signal(signal.SIGTERM, lambda *args: QTimer.singleShot(0, self.quit))
        self._signal_timer.start()

    def run(self) -> None:
        settings = self._settings_provider.get()
        logger.info(f"Starting {__app_name__} v{__version__}")
        logger.info(
            f"Settings: backend={settings.backend.value}, model={settings.model}, "
            f"max_recording_seconds={settings.max_recording_seconds}"
        )

        self.check_startup()

        if self._hotkey_listener is not None:
            self._hotkey_listener.start()

        self._notifier.notify(f"{__app_name__} ready", Severity.INFO)

    @Slot()
    def quit(self) -> None:
        logger.info("Shutting down application")
        self.shutdown()
        QCoreApplication.quit()

    def shutdown(self) -> None:
        self._signal_timer.stop()
        if self._hotkey_listener is not None:
            self._hotkey_listener.stop()
        self._controller.cleanup()

        # Upload threads cannot be interrupted, the request timeout bounds them
        timeout_ms = int(self._settings_provider.get().openai.timeout_seconds * 1000)
        if not wait_for_uploads(timeout_ms):
            logger.warning("Upload still running at shutdown")
        logger.info("Application shutdown complete")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voicetoggle",
        description="Toggle-to-talk speech-to-text with whisper.cpp or OpenAI.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        default=None,
        help=f"Logging verbosity (default: {LOG_LEVEL})",
    )
    subparsers = parser.add_subparsers(dest="command")

    model_ids = [model.id for model in AVAILABLE_MODELS]

    run_parser = subparsers.add_parser("run", help="Listen for hotkeys and signals (default)")
    run_parser.add_argument("--backend", choices=[b.value for b in BackendType])
    run_parser.add_argument("--model", choices=model_ids)
    run_parser.add_argument("--max-seconds", type=int, dest="max_seconds")
    run_parser.add_argument(
        "--output",
        choices=["type", "scratch"],
        default="type",
        help="Type into the focused window or echo to this terminal",
    )

    subparsers.add_parser("install", help="Build whisper.cpp and download the model")

    download_parser = subparsers.add_parser("download-model", help="Download a model")
    download_parser.add_argument("--model", choices=model_ids)

    subparsers.add_parser("check", help="Check dependencies and installation")
    return parser


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if getattr(args, "backend", None):
        overrides["backend"] = args.backend
    if getattr(args, "model", None):
        overrides["model"] = args.model
    if getattr(args, "max_seconds", None) is not None:
        overrides["max_recording_seconds"] = args.max_seconds
    return overrides


def _print_progress(progress: InstallProgress) -> None:
    print(f"\r[{progress.progress:4.0%}] {progress.stage} {progress.status}"[:100], end="")


def _run(provider: SettingsProvider, notifier: Notifier, output: str) -> int:
    app = QCoreApplication(sys.argv)
    app.setApplicationName(__app_name__)

    insert_text = ScratchOutput() if output == "scratch" else KeyboardTextOutput()
    voice_app = VoiceToggleApp(provider, insert_text=insert_text, notifier=notifier)
    voice_app.install_signal_handlers()
    voice_app.run()
    return app.exec()


def _install(provider: SettingsProvider) -> int:
    installer = WhisperCppInstaller(provider)
    ok, message = installer.install(_print_progress)
    print()
    print(message)
    return 0 if ok else 1


def _download_model(provider: SettingsProvider) -> int:
    installer = WhisperCppInstaller(provider)
    try:
        ok = installer.download_model(_print_progress)
    except (requests.RequestException, OSError) as e:
        print()
        print(f"Failed to download Whisper model: {e}")
        return 1
    print()
    print(f"Model ready: {installer.model_path()}" if ok else "Download cancelled")
    return 0 if ok else 1


def _check(provider: SettingsProvider) -> int:
    installer = WhisperCppInstaller(provider)
    settings = provider.get()
    problems = [tool.message for tool in check_dependencies(CAPTURE_TOOLS)]

    print(f"backend: {settings.backend.value}")
    print(f"model: {settings.model} ({installer.model_path()})")
    print(f"whisper.cpp: {installer.executable_path()}")
    print(f"whisper.cpp ready: {'yes' if installer.is_ready() else 'no'}")

    if settings.backend == BackendType.WHISPER_CPP and not installer.is_ready():
        problems.append("whisper.cpp is not installed. Run 'voicetoggle install' first")
    if settings.backend == BackendType.OPENAI and not settings.openai.resolve_api_key():
        problems.append("OpenAI API key not configured")

    for problem in problems:
        print(f"- {problem}")
    return 1 if problems else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    command = args.command or "run"
    if args.log_level:
        set_log_level(getattr(logging, args.log_level))

    notifier = LogNotifier()
    settings = Settings.load(notifier)
    overrides = _cli_overrides(args)
    if overrides:
        settings = settings.merged(overrides, notifier)
    provider = SettingsProvider(settings, notifier)

    try:
        if command == "install":
            return _install(provider)
        if command == "download-model":
            return _download_model(provider)
        if command == "check":
            return _check(provider)
        return _run(provider, notifier, getattr(args, "output", "type"))
    finally:
        shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
