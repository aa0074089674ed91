"""
Pytest configuration and shared fixtures.
"""

import wave
from pathlib import Path
from types import SimpleNamespace
from typing import Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from main import app
from releasedesk.services.release_store import ReleaseStore, get_release_store


RELEASE_ID = "2026-02-08_SophieJoe_TellMe"


@pytest.fixture
def anyio_backend() -> str:
    """Run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture
def releases_root(tmp_path: Path) -> Path:
    """An empty releases folder for one test."""
    root = tmp_path / "Releases"
    root.mkdir()
    return root


@pytest.fixture
def store(releases_root: Path) -> ReleaseStore:
    return ReleaseStore(releases_root)


@pytest.fixture
def client(store: ReleaseStore) -> Generator[TestClient, None, None]:
    """API client whose endpoints all use the temporary store."""
    app.dependency_overrides[get_release_store] = lambda: store
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def write_wav(path: Path, seconds: float = 1.0, sample_rate: int = 8000) -> Path:
    """Write a silent mono 16-bit WAV file."""
    with wave.open(str(path), "wb") as handle:
        handle.setnchannels(1)
        handle.setsampwidth(2)
        handle.setframerate(sample_rate)
        handle.writeframes(b"\x00\x00" * int(seconds * sample_rate))
    return path


@pytest.fixture
def wav_file(tmp_path: Path) -> Path:
    """A real one-second WAV file."""
    return write_wav(tmp_path / "tell-me.wav")


@pytest.fixture
def audio_duration():
    """Make mutagen report a chosen duration for any file.

    Usage:
        with audio_duration(210):
            ...
    """
    def _patch(length: float):
        fake = SimpleNamespace(
            info=SimpleNamespace(length=length, bitrate=1411200, sample_rate=44100, channels=2, codec="PCM")
        )
        return patch("releasedesk.services.audio_validator.MutagenFile", return_value=fake)
    return _patch
