from .settings import (
    OPENAI_TRANSCRIPTION_URL,
    RECOMMENDED_SAMPLE_RATE,
    BackendType,
    KeymapConfig,
    OpenAISettings,
    Settings,
    SettingsProvider,
    UISettings,
    deep_merge,
    get_config_dir,
)

__all__ = [
    "OPENAI_TRANSCRIPTION_URL",
    "RECOMMENDED_SAMPLE_RATE",
    "BackendType",
    "KeymapConfig",
    "OpenAISettings",
    "Settings",
    "SettingsProvider",
    "UISettings",
    "deep_merge",
    "get_config_dir",
]
