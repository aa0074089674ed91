"""
Tests for upload classification.
"""

import pytest

from releasedesk.services.classifier import classify


class TestClassify:
    """Media type first, extension second."""

    @pytest.mark.parametrize("content_type,expected", [
        ("audio/wav", "audio"),
        ("audio/mpeg", "audio"),
        ("image/png", "artwork"),
        ("video/mp4", "video"),
    ])
    def test_media_type_decides(self, content_type, expected):
        assert classify(content_type, "whatever.bin") == expected

    def test_media_type_beats_extension(self):
        """A declared image/* wins over a .wav name."""
        assert classify("image/jpeg", "cover.wav") == "artwork"

    @pytest.mark.parametrize("filename,expected", [
        ("Tell Me (Master).WAV", "audio"),
        ("mix.flac", "audio"),
        ("cover.webp", "artwork"),
        ("visualizer.mkv", "video"),
    ])
    def test_extension_fallback(self, filename, expected):
        assert classify("application/octet-stream", filename) == expected
        assert classify(None, filename) == expected

    def test_unknown_is_other(self):
        assert classify("application/pdf", "contract.pdf") == "other"

    def test_never_raises_on_missing_input(self):
        assert classify(None, None) == "other"
        assert classify("", "") == "other"
        assert classify("audio", "noext") == "other"
