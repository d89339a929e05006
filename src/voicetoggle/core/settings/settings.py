"""
Settings management with JSON persistence.

Builds an immutable settings snapshot by merging user overrides onto the
defaults. Each field is validated on its own; an invalid value falls back to
its default and a warning is emitted instead of aborting startup.
Uses platformdirs for cross-platform directory resolution.
"""

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional, Type

from platformdirs import user_config_path
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ...utils.logger import get_logger
from ...utils.platform import default_temp_dir
from ..installer.models import DEFAULT_MODEL, available_model_ids
from ..notifications import Notifier, Severity

logger = get_logger(__name__)

APP_NAME = "voicetoggle"
RECOMMENDED_SAMPLE_RATE = 16000
OPENAI_TRANSCRIPTION_URL = "https://api.openai.com/v1/audio/transcriptions"


class BackendType(str, Enum):
    WHISPER_CPP = "whisper.cpp"
    OPENAI = "openai"


def get_config_dir() -> Path:
    return user_config_path(APP_NAME, appauthor=False, ensure_exists=True)


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``overrides`` onto ``base``; overrides win."""
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _notify(notifier: Optional[Notifier], message: str, severity: Severity) -> None:
    if notifier is not None:
        notifier.notify(message, severity)
    elif severity == Severity.ERROR:
        logger.error(message)
    else:
        logger.warning(message)


def _display(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class KeymapConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    toggle_recording: Optional[str] = "ctrl+alt+r"
    stop_recording: Optional[str] = None

    @field_validator("toggle_recording", "stop_recording")
    @classmethod
    def combo_well_formed(cls, v):
        if v is None:
            return v
        if not isinstance(v, str) or not all(part.strip() for part in v.split("+")):
            raise ValueError("key combination must look like 'ctrl+alt+r'")
        return v.strip().lower()


class OpenAISettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    api_key: Optional[str] = None
    model: str = "whisper-1"
    endpoint: str = OPENAI_TRANSCRIPTION_URL
    timeout_seconds: float = Field(default=120.0, gt=0)

    def resolve_api_key(self) -> Optional[str]:
        return self.api_key or os.environ.get("OPENAI_API_KEY") or None


class UISettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    show_recording_status: bool = True
    show_transcription_progress: bool = True


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: str = DEFAULT_MODEL
    backend: BackendType = BackendType.WHISPER_CPP

    max_recording_seconds: int = Field(default=60, gt=0)
    sample_rate: int = Field(default=RECOMMENDED_SAMPLE_RATE, ge=8000, le=192000)
    audio_format: Literal["wav"] = "wav"
    silence_duration: float = Field(default=0.1, ge=0)
    silence_threshold: str = "1%"
    language: str = "auto"

    temp_dir: Path = Field(default_factory=default_temp_dir)
    install_dir: Optional[Path] = None

    keymaps: KeymapConfig = Field(default_factory=KeymapConfig)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    ui: UISettings = Field(default_factory=UISettings)

    @field_validator("model")
    @classmethod
    def model_known(cls, v):
        if v not in available_model_ids():
            raise ValueError(f"model must be one of {', '.join(available_model_ids())}")
        return v

    @field_validator("language", "silence_threshold")
    @classmethod
    def not_empty(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("must be a non-empty string")
        return v

    @classmethod
    def from_overrides(
        cls,
        overrides: Optional[Mapping[str, Any]] = None,
        notifier: Optional[Notifier] = None,
    ) -> "Settings":
        data = deep_merge(cls().model_dump(), dict(overrides or {}))
        settings = _validate_with_fallbacks(cls, data, notifier)
        settings._report_advisories(notifier)
        return settings

    def merged(
        self, partial: Mapping[str, Any], notifier: Optional[Notifier] = None
    ) -> "Settings":
        return Settings.from_overrides(deep_merge(self.model_dump(), partial), notifier)

    def _report_advisories(self, notifier: Optional[Notifier]) -> None:
        if self.sample_rate != RECOMMENDED_SAMPLE_RATE:
            _notify(
                notifier,
                f"Sample rate changed from recommended 16kHz to {self.sample_rate}Hz",
                Severity.WARNING,
            )
        if (
            self.backend == BackendType.OPENAI
            and self.openai.resolve_api_key() is None
        ):
            _notify(
                notifier,
                "OpenAI backend selected but no API key provided",
                Severity.ERROR,
            )

    @classmethod
    def load(cls, notifier: Optional[Notifier] = None) -> "Settings":
        config_file = get_config_dir() / "settings.json"

        if config_file.exists():
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise TypeError("settings.json must contain a JSON object")
                return cls.from_overrides(data, notifier)
            except (json.JSONDecodeError, TypeError) as e:
                logger.warning(
                    f"Could not load settings: {e}. Using defaults.", exc_info=True
                )

        return cls.from_overrides(notifier=notifier)

    def save(self) -> None:
        config_file = get_config_dir() / "settings.json"

        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)


def _validate_with_fallbacks(
    model_cls: Type[BaseModel],
    data: Mapping[str, Any],
    notifier: Optional[Notifier],
    prefix: str = "",
) -> Any:
    """Validate each field individually, falling back to defaults on error."""
    defaults = model_cls()
    result: Dict[str, Any] = {}

    for field_name, field_info in model_cls.model_fields.items():
        if field_name not in data:
            result[field_name] = getattr(defaults, field_name)
            continue

        value = data[field_name]
        annotation = field_info.annotation
        if (
            isinstance(annotation, type)
            and issubclass(annotation, BaseModel)
            and isinstance(value, Mapping)
        ):
            result[field_name] = _validate_with_fallbacks(
                annotation, value, notifier, prefix=f"{prefix}{field_name}."
            )
            continue

        try:
            model_cls.model_validate({field_name: value})
            result[field_name] = value
        except ValidationError:
            default_val = getattr(defaults, field_name)
            _notify(
                notifier,
                f"Invalid {prefix}{field_name} {_display(value)!r}. "
                f"Using default: {_display(default_val)}",
                Severity.WARNING,
            )
            result[field_name] = default_val

    unknown = set(data) - set(model_cls.model_fields)
    if unknown:
        logger.debug(f"Ignoring unknown settings: {', '.join(sorted(unknown))}")

    return model_cls.model_validate(result)


class SettingsProvider:
    """Holds the current settings snapshot and replaces it on update."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        notifier: Optional[Notifier] = None,
    ):
        self._notifier = notifier
        self._settings = settings or Settings.from_overrides(notifier=notifier)

    def get(self) -> Settings:
        return self._settings

    def update(self, partial: Mapping[str, Any]) -> Settings:
        self._settings = self._settings.merged(partial, self._notifier)
        logger.info(
            f"Settings updated: backend={self._settings.backend.value}, "
            f"model={self._settings.model}"
        )
        return self._settings
