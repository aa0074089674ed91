import os
from typing import Optional

AUDIO = "audio"
ARTWORK = "artwork"
VIDEO = "video"
OTHER = "other"

FILE_TYPES = (AUDIO, ARTWORK, VIDEO)

# Top-level media type -> category
_MEDIA_CATEGORIES = {
    "audio": AUDIO,
    "image": ARTWORK,
    "video": VIDEO,
}

# Fallback when the declared media type is missing or unhelpful
_EXTENSION_CATEGORIES = {
    AUDIO: {".wav", ".mp3", ".flac", ".aiff", ".m4a", ".ogg"},
    ARTWORK: {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"},
    VIDEO: {".mp4", ".mov", ".avi", ".mkv", ".webm"},
}


def classify(content_type: Optional[str], filename: Optional[str]) -> str:
    """Decide which folder an uploaded file belongs in.

    The declared media type wins when its top-level category is one we know
    (``audio/*``, ``image/*``, ``video/*``); otherwise the file extension is
    checked against a fixed allow-list. Never raises.
    """
    if content_type:
        top_level = content_type.split("/", 1)[0].strip().lower()
        if top_level in _MEDIA_CATEGORIES and "/" in content_type:
            return _MEDIA_CATEGORIES[top_level]

    extension = os.path.splitext(filename or "")[1].lower()
    for category, extensions in _EXTENSION_CATEGORIES.items():
        if extension in extensions:
            return category

    return OTHER
