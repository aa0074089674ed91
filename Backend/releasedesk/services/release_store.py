"""
On-disk release documents.

Every release lives in its own directory under the releases root and is
described by a single ``metadata.json`` document. All mutation goes through
``ReleaseStore.update`` (or ``save``, which is built on it): the document is
read, changed in memory and written back whole while holding a per-release
lock, and the write replaces the file atomically.
"""

import asyncio
import copy
import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Sequence, Tuple

from releasedesk.core.config import settings
from releasedesk.core.exceptions import BadRequestError, NotFoundException
from releasedesk.services.classifier import FILE_TYPES

logger = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"
DISTRIBUTION_PATHS = ("release", "submit", "promote")

Document = Dict[str, Any]


# --- Timestamps ---

def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2026-02-08T12:00:00.000Z"""
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def next_timestamp(previous: Any = None) -> str:
    """A timestamp strictly later than ``previous`` (when it parses)."""
    now = datetime.now(timezone.utc)
    now = now.replace(microsecond=(now.microsecond // 1000) * 1000)
    last = parse_timestamp(previous)
    if last is not None and now <= last:
        now = last + timedelta(milliseconds=1)
    return utc_timestamp(now)


# --- Document shape ---

def default_label_info() -> Dict[str, Any]:
    return {
        "isSigned": False,
        "label": "",
        "signedDate": None,
        "contractDocuments": [],
    }


def new_document(release_id: str) -> Document:
    return {
        "releaseId": release_id,
        "artist": "",
        "title": "",
        "genre": "",
        "createdAt": None,
        "updatedAt": None,
        "versions": {},
        "distribution": {path: [] for path in DISTRIBUTION_PATHS},
        "labelInfo": default_label_info(),
    }


def normalize_document(release_id: str, document: Document) -> Document:
    """Bring a document read from disk into the flat canonical shape.

    Older revisions wrapped everything in ``{"metadata": {...}}``. The wrapped
    keys are lifted to the top level; keys already at the top level win.
    """
    wrapped = document.get("metadata")
    if isinstance(wrapped, dict):
        flat = {key: value for key, value in wrapped.items()}
        flat.update({key: value for key, value in document.items() if key != "metadata"})
        document = flat

    document.setdefault("releaseId", release_id)
    for key in ("artist", "title", "genre"):
        document.setdefault(key, "")
    document.setdefault("createdAt", None)
    document.setdefault("updatedAt", None)
    if not isinstance(document.get("versions"), dict):
        document["versions"] = {}

    distribution = document.get("distribution")
    if not isinstance(distribution, dict):
        distribution = document["distribution"] = {}
    for path in DISTRIBUTION_PATHS:
        if not isinstance(distribution.get(path), list):
            distribution[path] = []

    label_info = document.get("labelInfo")
    if not isinstance(label_info, dict):
        label_info = document["labelInfo"] = {}
    for key, value in default_label_info().items():
        label_info.setdefault(key, value)

    return document


def file_counts(document: Document) -> Dict[str, int]:
    counts = {file_type: 0 for file_type in FILE_TYPES}
    for version in document.get("versions", {}).values():
        files = version.get("files") or {}
        for file_type in FILE_TYPES:
            counts[file_type] += len(files.get(file_type) or [])
    return counts


def release_view(document: Document) -> Document:
    """Document plus derived fields for API responses. Never persisted."""
    view = copy.deepcopy(document)
    view["versionCount"] = len(document.get("versions", {}))
    view["fileCounts"] = file_counts(document)
    return view


# --- Path safety ---

def validate_release_id(release_id: Optional[str]) -> str:
    release_id = (release_id or "").strip()
    if not release_id:
        raise BadRequestError("Missing releaseId parameter")
    if release_id in (".", "..") or any(sep in release_id for sep in ("/", "\\", "\x00")):
        raise BadRequestError("Invalid releaseId", f"\"{release_id}\" is not a valid release ID")
    return release_id


def safe_filename(filename: Optional[str]) -> str:
    """Strip any directory part a client sent along with a file name."""
    name = os.path.basename((filename or "").replace("\\", "/")).strip()
    if not name or name in (".", "..") or "\x00" in name:
        raise BadRequestError("Invalid filename", f"\"{filename}\" is not a valid file name")
    return name


class ReleaseStore:
    """Reads and writes release documents under a releases root."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self._locks: Dict[str, asyncio.Lock] = {}
        self._registration_locks: Dict[str, asyncio.Lock] = {}

    # Locks stay in their maps for the life of the store so every waiter
    # shares the same lock object, even across a delete
    def _lock(self, release_id: str) -> asyncio.Lock:
        return self._locks.setdefault(release_id, asyncio.Lock())

    def registration_lock(self, release_id: str) -> asyncio.Lock:
        """Held while a version is checked, written and recorded. Taken before the document lock."""
        return self._registration_locks.setdefault(validate_release_id(release_id), asyncio.Lock())

    # Paths

    def release_dir(self, release_id: str) -> Path:
        return self.root / validate_release_id(release_id)

    def metadata_path(self, release_id: str) -> Path:
        return self.release_dir(release_id) / METADATA_FILENAME

    def resolve_file(self, release_id: str, *parts: str) -> Path:
        """Join ``parts`` below the release directory, refusing to escape it."""
        base = self.release_dir(release_id).resolve()
        candidate = base.joinpath(*parts).resolve()
        if candidate != base and base not in candidate.parents:
            raise BadRequestError("Invalid file path")
        return candidate

    def exists(self, release_id: str) -> bool:
        return self.release_dir(release_id).is_dir()

    # Raw document IO

    @staticmethod
    def _read_document(path: Path) -> Document:
        with open(path, "r", encoding="utf-8") as handle:
            return json.load(handle)

    @staticmethod
    def _write_document(path: Path, document: Document) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".metadata-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def _load(self, release_id: str, must_exist: bool) -> Document:
        path = self.metadata_path(release_id)
        if not await asyncio.to_thread(path.is_file):
            if must_exist:
                raise NotFoundException("Release", release_id)
            return new_document(release_id)
        raw = await asyncio.to_thread(self._read_document, path)
        return normalize_document(release_id, raw)

    # Public operations

    async def load(self, release_id: str) -> Document:
        """The release document, or an empty default when none exists yet."""
        return await self._load(release_id, must_exist=False)

    async def load_existing(self, release_id: str) -> Document:
        return await self._load(release_id, must_exist=True)

    async def update(
        self,
        release_id: str,
        mutator: Callable[[Document], Any],
        must_exist: bool = True
    ) -> Any:
        """
        Read-modify-write a release document.

        ``mutator`` receives the document and changes it in place. If it raises,
        nothing is written. Returns whatever the mutator returns.
        """
        release_id = validate_release_id(release_id)
        async with self._lock(release_id):
            document = await self._load(release_id, must_exist=must_exist)
            result = mutator(document)

            document["releaseId"] = release_id
            stamp = next_timestamp(document.get("updatedAt"))
            if not document.get("createdAt"):
                document["createdAt"] = stamp
            document["updatedAt"] = stamp

            await asyncio.to_thread(self._write_document, self.metadata_path(release_id), document)
            return result

    async def save(self, release_id: str, partial: Dict[str, Any]) -> Document:
        """Shallow-merge top-level keys of ``partial`` into the document."""
        def merge(document: Document) -> Document:
            for key, value in partial.items():
                if key != "releaseId":
                    document[key] = value
            return document

        document = await self.update(release_id, merge, must_exist=False)
        logger.info(f"Saved metadata for {release_id} ({len(partial)} field(s))")
        return document

    async def create_release(self, release_id: str) -> Path:
        release_dir = self.release_dir(release_id)
        await asyncio.to_thread(release_dir.mkdir, parents=True, exist_ok=True)
        return release_dir

    async def delete_release(self, release_id: str) -> None:
        release_id = validate_release_id(release_id)
        release_dir = self.release_dir(release_id)
        async with self.registration_lock(release_id), self._lock(release_id):
            if not release_dir.is_dir():
                raise NotFoundException("Release", release_id)
            await asyncio.to_thread(shutil.rmtree, release_dir)
        logger.info(f"Deleted release {release_id}")

    # Files inside a release

    @staticmethod
    def _copy_stream(source: BinaryIO, destination: Path) -> int:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if hasattr(source, "seek"):
            source.seek(0)
        with open(destination, "wb") as handle:
            shutil.copyfileobj(source, handle)
        return destination.stat().st_size

    async def write_file(self, release_id: str, parts: Sequence[str], source: BinaryIO) -> Tuple[Path, int]:
        """Copy an uploaded stream to ``<release>/<parts...>``; returns (path, size)."""
        destination = self.resolve_file(release_id, *parts)
        size = await asyncio.to_thread(self._copy_stream, source, destination)
        return destination, size

    async def remove_file(self, path: Path) -> bool:
        """Delete a file if it is there. Returns whether anything was removed."""
        def _remove() -> bool:
            if path.is_file():
                path.unlink()
                return True
            return False
        return await asyncio.to_thread(_remove)

    def locate_file(
        self,
        release_id: str,
        file_type: str,
        filename: str,
        version_id: Optional[str] = None
    ) -> Path:
        """Find a stored upload; audio is searched across versions unless one is given."""
        name = safe_filename(filename)
        if file_type == "audio":
            if version_id:
                version_ids = [version_id]
            else:
                versions_dir = self.resolve_file(release_id, "versions")
                version_ids = sorted(p.name for p in versions_dir.iterdir() if p.is_dir()) \
                    if versions_dir.is_dir() else []
            candidates = [self.resolve_file(release_id, "versions", vid, "audio", name) for vid in version_ids]
        elif file_type in ("artwork", "video", "other"):
            candidates = [self.resolve_file(release_id, file_type, name)]
        else:
            raise BadRequestError("Invalid file type", f"\"{file_type}\" is not one of audio, artwork, video")

        for candidate in candidates:
            if candidate.is_file():
                return candidate
        raise NotFoundException("File", name)

    def first_artwork(self, release_id: str) -> Path:
        artwork_dir = self.resolve_file(release_id, "artwork")
        if artwork_dir.is_dir():
            for path in sorted(artwork_dir.iterdir()):
                if path.is_file():
                    return path
        raise NotFoundException("Artwork", release_id)

    async def list_releases(self) -> List[Document]:
        """All readable release documents, newest ``createdAt`` first."""
        if not self.root.is_dir():
            return []

        releases = []
        for entry in sorted(self.root.iterdir()):
            if not entry.is_dir():
                continue
            path = entry / METADATA_FILENAME
            try:
                raw = await asyncio.to_thread(self._read_document, path)
            except (OSError, ValueError) as e:
                logger.warning(f"Could not read metadata for {entry.name}: {e}")
                continue
            releases.append(normalize_document(entry.name, raw))

        oldest = datetime.min.replace(tzinfo=timezone.utc)
        releases.sort(key=lambda doc: parse_timestamp(doc.get("createdAt")) or oldest, reverse=True)
        return releases


@lru_cache()
def _shared_store(root: str) -> ReleaseStore:
    return ReleaseStore(Path(root))


# Dependency
async def get_release_store() -> ReleaseStore:
    """One store per releases root so the per-release locks are shared."""
    return _shared_store(str(settings.RELEASES_ROOT))
