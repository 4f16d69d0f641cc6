# tests/unit/config/test_unit_settings.py — v2
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from docintel.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_duplicate_defaults(self):
        s = Settings(_env_file=None)
        assert s.default_temporal_tolerance_days == 30
        assert s.default_duplicate_scope == "company"
        assert s.candidate_limit == 500

    def test_upload_limits(self):
        s = Settings(_env_file=None)
        assert s.max_file_size_bytes == 50 * 1024 * 1024
        assert "application/pdf" in s.supported_mime_types_list
        assert s.blocked_extensions_list == ["exe", "bat", "scr", "com", "cmd", "pif"]

    def test_storage_defaults(self):
        s = Settings(_env_file=None)
        assert s.storage_backend == "memory"
        assert s.storage_root == Path("~/.docintel/store")


class TestSettingsParsing:
    def test_lists_are_normalised(self):
        s = Settings(
            _env_file=None,
            supported_mime_types=" Text/Plain , ,image/PNG",
            blocked_extensions=".EXE, js",
        )
        assert s.supported_mime_types_list == ["text/plain", "image/png"]
        assert s.blocked_extensions_list == ["exe", "js"]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_TEMPORAL_TOLERANCE_DAYS", "7")
        monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
        s = Settings(_env_file=None)
        assert s.default_temporal_tolerance_days == 7
        assert s.storage_backend == "sqlite"

    def test_load_settings_overrides(self):
        s = load_settings(_env_file=None, candidate_limit=10)
        assert s.candidate_limit == 10


class TestSettingsValidation:
    @pytest.mark.parametrize("days", [0, 366])
    def test_tolerance_range(self, days):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, default_temporal_tolerance_days=days)

    def test_timeout_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, content_analysis_timeout_s=0)

    def test_unknown_backend(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, storage_backend="s3")

    def test_consistency_errors_are_collected(self):
        with pytest.raises(ConfigurationError, match="MAX_FILE_SIZE_MB.*CANDIDATE_LIMIT"):
            Settings(_env_file=None, max_file_size_mb=0, candidate_limit=0)

    def test_empty_mime_list(self):
        with pytest.raises(ConfigurationError, match="SUPPORTED_MIME_TYPES"):
            Settings(_env_file=None, supported_mime_types=" , ")
