from .installer import (
    BUILD_TOOLS,
    CAPTURE_TOOLS,
    InstallProgress,
    InstallStatus,
    RequiredTool,
    WhisperCppInstaller,
    check_dependencies,
    default_install_dir,
)
from .model_downloader import ModelDownloader
from .models import AVAILABLE_MODELS, DEFAULT_MODEL, ModelInfo, get_model_by_id

__all__ = [
    "AVAILABLE_MODELS",
    "BUILD_TOOLS",
    "CAPTURE_TOOLS",
    "DEFAULT_MODEL",
    "InstallProgress",
    "InstallStatus",
    "ModelDownloader",
    "ModelInfo",
    "RequiredTool",
    "WhisperCppInstaller",
    "check_dependencies",
    "default_install_dir",
    "get_model_by_id",
]
