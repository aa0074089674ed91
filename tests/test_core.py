"""
Tests for error bodies and settings.
"""

from pathlib import Path

from releasedesk.core.config import Settings
from releasedesk.core.exceptions import (
    BadRequestError,
    DuplicateError,
    NotFoundException,
    UnprocessableContentError,
)


class TestErrorBodies:
    """Every error serializes to {success: false, error, ...}."""

    def test_bad_request(self):
        exc = BadRequestError("Missing labelName")
        assert exc.status_code == 400
        assert exc.to_response() == {"success": False, "error": "Missing labelName"}

    def test_not_found(self):
        body = NotFoundException("Release", "abc").to_response()
        assert body == {"success": False, "error": "Release not found", "message": "No release found with ID \"abc\""}

    def test_duplicate(self):
        exc = DuplicateError("Version", "primary", message="Use another name")
        assert exc.status_code == 409
        assert exc.to_response()["error"] == "Version 'primary' already exists"

    def test_unprocessable_carries_file_and_reason(self):
        body = UnprocessableContentError("Audio file validation failed", "a.wav", "too long").to_response()
        assert body["file"] == "a.wav"
        assert body["reason"] == "too long"


class TestSettings:
    def test_env_overrides(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("RELEASES_ROOT", str(tmp_path))
        monkeypatch.setenv("MAX_AUDIO_DURATION_SECONDS", "600")
        settings = Settings()
        assert settings.RELEASES_ROOT == tmp_path
        assert settings.MAX_AUDIO_DURATION_SECONDS == 600

    def test_home_is_expanded(self, monkeypatch):
        monkeypatch.setenv("RELEASES_ROOT", "~/Releases")
        assert "~" not in str(Settings().RELEASES_ROOT)
