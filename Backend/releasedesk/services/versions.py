"""
Version registration.

A version is a named audio variant of a release (e.g. "Radio Edit"). Its id is
derived from the name, its audio lives in ``versions/<versionId>/audio/`` and
it shares the release-level ``artwork/`` and ``video/`` folders.
"""

import asyncio
import logging
import os
import re
import shutil
import uuid
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Protocol, Sequence, Tuple

from fastapi import Depends

from releasedesk.core.config import settings
from releasedesk.core.exceptions import BadRequestError, DuplicateError, UnprocessableContentError
from releasedesk.services.audio_validator import validate_audio_file
from releasedesk.services.classifier import AUDIO, FILE_TYPES, classify
from releasedesk.services.release_store import (
    ReleaseStore,
    get_release_store,
    safe_filename,
    utc_timestamp,
    validate_release_id,
)

logger = logging.getLogger(__name__)

PRIMARY_VERSION_ID = "primary"
PRIMARY_VERSION_NAME = "Primary Version"

# Uploads are written below <release>/.upload-<hex>/ until they validate
STAGING_PREFIX = ".upload-"


def version_id_for(version_name: Optional[str]) -> str:
    """
    Derive a version id from a human version name.

    "Radio Edit" -> "radio-edit"; "Primary Version" and "" -> "primary".
    """
    collapsed = " ".join((version_name or "").split())
    if not collapsed or collapsed.lower() == PRIMARY_VERSION_NAME.lower():
        return PRIMARY_VERSION_ID

    slug = re.sub(r"\s+", "-", collapsed.lower())
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug or PRIMARY_VERSION_ID


class IncomingFile(Protocol):
    """What the registrar needs from an upload (FastAPI's UploadFile fits)."""
    filename: Optional[str]
    content_type: Optional[str]
    file: BinaryIO


Placed = List[Tuple[Path, Optional[Path]]]


def move_into_place(moves: Dict[Path, Path]) -> Placed:
    """
    Move staged files onto their destinations.

    A file already at a destination is first moved aside next to its staged
    replacement. Returns (destination, backup or None) pairs for
    ``restore_placed``; on error everything moved so far is put back.
    """
    placed: Placed = []
    try:
        for final, staged in moves.items():
            backup = None
            if final.exists():
                backup = staged.with_name(f"{staged.name}.previous")
                os.replace(final, backup)
            placed.append((final, backup))
            final.parent.mkdir(parents=True, exist_ok=True)
            os.replace(staged, final)
    except Exception:
        restore_placed(placed)
        raise
    return placed


def restore_placed(placed: Placed, stop_at: Optional[Path] = None) -> None:
    """Undo ``move_into_place`` and drop folders it left empty below ``stop_at``."""
    for final, backup in reversed(placed):
        if backup is not None:
            os.replace(backup, final)
        elif final.is_file():
            final.unlink()

    if stop_at is None:
        return
    for final, _ in placed:
        folder = final.parent
        while folder != stop_at and stop_at in folder.parents:
            if folder.is_dir() and not any(folder.iterdir()):
                folder.rmdir()
            folder = folder.parent


class VersionRegistrar:
    def __init__(self, store: ReleaseStore, max_duration: float = settings.MAX_AUDIO_DURATION_SECONDS):
        self.store = store
        self.max_duration = max_duration

    def audio_dir(self, release_id: str, version_id: str) -> Path:
        return self.store.release_dir(release_id) / "versions" / version_id / "audio"

    def has_stored_audio(self, release_id: str, version_id: str) -> bool:
        audio_dir = self.audio_dir(release_id, version_id)
        return audio_dir.is_dir() and any(path.is_file() for path in audio_dir.iterdir())

    def _destination(self, version_id: str, category: str, filename: str) -> List[str]:
        if category == AUDIO:
            return ["versions", version_id, "audio", filename]
        return [category, filename]

    async def _stage(
        self,
        release_id: str,
        version_id: str,
        staging: str,
        files: Sequence[IncomingFile]
    ) -> Tuple[Dict[Path, Path], Dict[str, List[Dict[str, Any]]], List[Dict[str, Any]], List[Dict[str, Any]]]:
        """Write every upload below ``staging`` and validate the audio there."""
        moves: Dict[Path, Path] = {}
        descriptors: Dict[str, List[Dict[str, Any]]] = {file_type: [] for file_type in FILE_TYPES}
        uploaded: List[Dict[str, Any]] = []
        validations: List[Dict[str, Any]] = []

        for upload in files:
            filename = safe_filename(upload.filename)
            category = classify(upload.content_type, filename)
            parts = self._destination(version_id, category, filename)
            staged, size = await self.store.write_file(release_id, [staging, *parts], upload.file)
            final = self.store.resolve_file(release_id, *parts)
            moves[final] = staged

            descriptor = {"filename": filename, "size": size, "mimetype": upload.content_type}
            if category == AUDIO:
                logger.info(f"Validating audio: {filename}")
                result = validate_audio_file(staged, self.max_duration)
                if not result.valid:
                    logger.error(f"Audio validation failed for {filename}: {result.error}")
                    raise UnprocessableContentError("Audio file validation failed", filename, result.error)
                descriptor.update(result.metadata)
                validations.append({"file": filename, **result.metadata})
                logger.info(f"Audio valid: {filename} ({result.metadata['duration']}s, {result.metadata['codec']})")

            descriptors.setdefault(category, []).append(descriptor)
            uploaded.append({"originalName": filename, "savedTo": str(final), "size": size,
                             "mimetype": upload.content_type, "type": category})

        return moves, descriptors, uploaded, validations

    async def register(
        self,
        release_id: str,
        files: Sequence[IncomingFile],
        version_name: Optional[str] = None,
        artist: Optional[str] = None,
        title: Optional[str] = None,
        genre: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Store the uploaded files as a new version of a release.

        Files are staged and validated first and only then moved into the
        release, so a rejected upload leaves existing files untouched.
        Registrations of one release run one at a time.

        Raises:
            DuplicateError: the version already has audio on disk
            UnprocessableContentError: an audio file failed validation
        """
        release_id = validate_release_id(release_id)
        if not files:
            raise BadRequestError("No files uploaded")

        version_id = version_id_for(version_name)

        async with self.store.registration_lock(release_id):
            if self.has_stored_audio(release_id, version_id):
                logger.warning(f"Duplicate version blocked: {release_id}/{version_id} already has audio")
                raise DuplicateError(
                    "Version", version_id,
                    message=f"Release \"{release_id}\" already has audio for version \"{version_id}\". "
                            f"Use a different version name or delete the existing release first."
                )

            await self.store.create_release(release_id)
            logger.info(f"Upload received: {len(files)} file(s) for {release_id} ({version_id})")

            staging = f"{STAGING_PREFIX}{uuid.uuid4().hex}"
            release_dir = self.store.resolve_file(release_id)
            try:
                moves, descriptors, uploaded, validations = await self._stage(
                    release_id, version_id, staging, files
                )

                def record(document: Dict[str, Any]) -> Dict[str, Any]:
                    for key, value in (("artist", artist), ("title", title), ("genre", genre)):
                        if value:
                            document[key] = value

                    existing = document["versions"].get(version_id) or {}
                    files_by_type = existing.get("files") or {}
                    for category, new_files in descriptors.items():
                        names = {item["filename"] for item in new_files}
                        kept = [item for item in files_by_type.get(category, []) if item.get("filename") not in names]
                        files_by_type[category] = kept + new_files

                    version = {
                        "versionName": existing.get("versionName") or version_name or PRIMARY_VERSION_NAME,
                        "versionId": version_id,
                        "createdAt": existing.get("createdAt") or utc_timestamp(),
                        "files": files_by_type,
                    }
                    document["versions"][version_id] = version
                    return version

                placed = await asyncio.to_thread(move_into_place, moves)
                try:
                    version = await self.store.update(release_id, record, must_exist=False)
                except Exception:
                    logger.error(f"Recording {release_id}/{version_id} failed, restoring previous files")
                    await asyncio.to_thread(restore_placed, placed, release_dir)
                    raise
            finally:
                await asyncio.to_thread(shutil.rmtree, release_dir / staging, ignore_errors=True)

        return {
            "releaseId": release_id,
            "versionId": version_id,
            "version": version,
            "filesUploaded": uploaded,
            "audioValidation": validations,
        }


# Dependency
async def get_version_registrar(store: ReleaseStore = Depends(get_release_store)) -> VersionRegistrar:
    return VersionRegistrar(store, settings.MAX_AUDIO_DURATION_SECONDS)
