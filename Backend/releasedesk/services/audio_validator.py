"""
Audio file validation.

Reads container/codec information with mutagen and applies the only
business rule on ingested audio: the file must be readable and its duration
must fall within (0, max_duration] seconds.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from mutagen import File as MutagenFile

logger = logging.getLogger(__name__)

DEFAULT_MAX_DURATION_SECONDS = 3600

UNREADABLE_MESSAGE = "Could not read audio metadata - file may be corrupt"


@dataclass
class AudioValidation:
    """Outcome of validating one audio file."""
    valid: bool
    metadata: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


def describe_limit(seconds: float) -> str:
    """3600 -> "1 hour", 300 -> "5 minutes", 90 -> "90s"."""
    for unit, size in (("hour", 3600), ("minute", 60)):
        if seconds >= size and seconds % size == 0:
            count = int(seconds // size)
            return f"{count} {unit}" if count == 1 else f"{count} {unit}s"
    return f"{seconds:g}s"


def _read_audio(file_path: Path):
    try:
        return MutagenFile(str(file_path))
    except Exception as e:
        logger.debug(f"mutagen could not parse {file_path}: {e}")
        return None


def validate_audio_file(
    file_path: Path,
    max_duration: float = DEFAULT_MAX_DURATION_SECONDS
) -> AudioValidation:
    """
    Check that an audio file is readable and has a sensible duration.

    Args:
        file_path: Path to the audio file on disk
        max_duration: Longest accepted duration in seconds

    Returns:
        AudioValidation with the extracted metadata on success, or a
        human-readable reason on failure
    """
    audio = _read_audio(Path(file_path))
    info = getattr(audio, "info", None) if audio is not None else None
    duration = getattr(info, "length", None) if info is not None else None

    if duration is None:
        return AudioValidation(valid=False, error=UNREADABLE_MESSAGE)

    if duration <= 0 or duration > max_duration:
        return AudioValidation(
            valid=False,
            error=f"Invalid audio duration: {duration:g}s (expected 1s - {describe_limit(max_duration)})"
        )

    codec = getattr(info, "codec", None) or type(audio).__name__
    return AudioValidation(
        valid=True,
        metadata={
            "duration": int(round(duration)),
            "bitrate": getattr(info, "bitrate", None),
            "sampleRate": getattr(info, "sample_rate", None),
            "channels": getattr(info, "channels", None),
            "codec": codec,
        }
    )
