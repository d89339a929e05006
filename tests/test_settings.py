"""Tests for settings validation, merging and persistence."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from conftest import RecordingNotifier
from voicetoggle.core.notifications import Severity
from voicetoggle.core.settings import (
    BackendType,
    KeymapConfig,
    Settings,
    SettingsProvider,
    deep_merge,
)


class TestDeepMerge:
    def test_nested_overrides_win(self):
        base = {"a": 1, "ui": {"x": True, "y": True}}
        merged = deep_merge(base, {"ui": {"y": False}, "b": 2})
        assert merged == {"a": 1, "b": 2, "ui": {"x": True, "y": False}}
        assert base["ui"]["y"] is True

    def test_non_mapping_replaces(self):
        assert deep_merge({"keymaps": {"a": 1}}, {"keymaps": None}) == {"keymaps": None}


class TestDefaults:
    def test_default_values(self):
        settings = Settings()
        assert settings.model == "small"
        assert settings.backend is BackendType.WHISPER_CPP
        assert settings.max_recording_seconds == 60
        assert settings.sample_rate == 16000
        assert settings.audio_format == "wav"
        assert settings.language == "auto"
        assert settings.temp_dir.name == "voicetoggle"
        assert settings.install_dir is None
        assert settings.keymaps.toggle_recording == "ctrl+alt+r"
        assert settings.keymaps.stop_recording is None
        assert settings.openai.model == "whisper-1"
        assert settings.ui.show_recording_status is True

    def test_settings_are_immutable(self):
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.max_recording_seconds = 10

    def test_keymap_lowercased(self):
        assert KeymapConfig(toggle_recording="Ctrl+Shift+V").toggle_recording == "ctrl+shift+v"


class TestFromOverrides:
    def test_valid_overrides(self, notifier):
        settings = Settings.from_overrides(
            {"model": "medium", "max_recording_seconds": 30, "ui": {"show_recording_status": False}},
            notifier,
        )
        assert settings.model == "medium"
        assert settings.max_recording_seconds == 30
        assert settings.ui.show_recording_status is False
        assert settings.ui.show_transcription_progress is True
        assert notifier.messages == []

    def test_invalid_model_falls_back(self, notifier):
        settings = Settings.from_overrides({"model": "tiny"}, notifier)
        assert settings.model == "small"
        assert notifier.warnings == ["Invalid model 'tiny'. Using default: small"]

    def test_invalid_backend_falls_back(self, notifier):
        settings = Settings.from_overrides({"backend": "azure"}, notifier)
        assert settings.backend is BackendType.WHISPER_CPP
        assert notifier.warnings == ["Invalid backend 'azure'. Using default: whisper.cpp"]

    @pytest.mark.parametrize("value", [0, -5, "soon"])
    def test_invalid_duration_falls_back(self, notifier, value):
        settings = Settings.from_overrides({"max_recording_seconds": value}, notifier)
        assert settings.max_recording_seconds == 60
        assert len(notifier.warnings) == 1

    def test_invalid_nested_field(self, notifier):
        settings = Settings.from_overrides({"ui": {"show_recording_status": "maybe"}}, notifier)
        assert settings.ui.show_recording_status is True
        assert notifier.warnings == [
            "Invalid ui.show_recording_status 'maybe'. Using default: True"
        ]

    def test_non_default_sample_rate_kept_with_warning(self, notifier):
        settings = Settings.from_overrides({"sample_rate": 44100}, notifier)
        assert settings.sample_rate == 44100
        assert notifier.warnings == [
            "Sample rate changed from recommended 16kHz to 44100Hz"
        ]

    def test_openai_without_key_is_error_not_abort(self, notifier):
        settings = Settings.from_overrides({"backend": "openai"}, notifier)
        assert settings.backend is BackendType.OPENAI
        assert notifier.errors == ["OpenAI backend selected but no API key provided"]

    def test_openai_key_from_environment(self, notifier, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        settings = Settings.from_overrides({"backend": "openai"}, notifier)
        assert settings.openai.resolve_api_key() == "sk-env"
        assert notifier.errors == []

    def test_unknown_keys_ignored(self, notifier):
        settings = Settings.from_overrides({"floating_window": True}, notifier)
        assert settings == Settings.from_overrides({}, notifier)


class TestSettingsProvider:
    def test_update_replaces_snapshot(self, settings, notifier):
        provider = SettingsProvider(settings, notifier)
        before = provider.get()

        after = provider.update({"backend": "openai", "openai": {"api_key": "sk-1"}})

        assert provider.get() is after
        assert after.backend is BackendType.OPENAI
        assert after.openai.api_key == "sk-1"
        assert before.backend is BackendType.WHISPER_CPP
        assert after.temp_dir == before.temp_dir

    def test_update_validates(self, settings, notifier):
        provider = SettingsProvider(settings, notifier)
        provider.update({"max_recording_seconds": -1})
        assert provider.get().max_recording_seconds == 60
        assert len(notifier.warnings) == 1


class TestPersistence:
    def test_save_load_cycle(self, tmp_path):
        with patch(
            "voicetoggle.core.settings.settings.get_config_dir", return_value=tmp_path
        ):
            original = Settings(
                model="medium",
                max_recording_seconds=15,
                temp_dir=tmp_path / "tmp",
                keymaps=KeymapConfig(toggle_recording="alt+v", stop_recording="alt+s"),
            )
            original.save()

            data = json.loads((tmp_path / "settings.json").read_text())
            assert data["backend"] == "whisper.cpp"

            loaded = Settings.load()

        assert loaded == original

    def test_load_missing_file_returns_defaults(self, tmp_path):
        with patch(
            "voicetoggle.core.settings.settings.get_config_dir", return_value=tmp_path
        ):
            loaded = Settings.load()
        assert loaded.model == Settings().model
        assert loaded.max_recording_seconds == 60

    def test_load_corrupt_file_returns_defaults(self, tmp_path):
        (tmp_path / "settings.json").write_text("{not json")
        notifier = RecordingNotifier()
        with patch(
            "voicetoggle.core.settings.settings.get_config_dir", return_value=tmp_path
        ):
            loaded = Settings.load(notifier)
        assert loaded.model == "small"

    def test_load_reports_invalid_values(self, tmp_path):
        (tmp_path / "settings.json").write_text(json.dumps({"model": "huge"}))
        notifier = RecordingNotifier()
        with patch(
            "voicetoggle.core.settings.settings.get_config_dir", return_value=tmp_path
        ):
            loaded = Settings.load(notifier)
        assert loaded.model == "small"
        assert notifier.warnings == ["Invalid model 'huge'. Using default: small"]
