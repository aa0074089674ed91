"""
Distribution bundles.

A package is a zip of everything a platform upload needs for one version:
the version's audio, the release artwork and a metadata snapshot. Packages
are written to ``packages/<platform>-<versionId>.zip``.
"""

import asyncio
import json
import logging
import re
import zipfile
from pathlib import Path
from typing import Any, Dict

from fastapi import Depends

from releasedesk.core.exceptions import BadRequestError, NotFoundException
from releasedesk.services.release_store import ReleaseStore, get_release_store, safe_filename, utc_timestamp

logger = logging.getLogger(__name__)

PACKAGES_FOLDER = "packages"


def platform_slug(platform: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (platform or "").lower()).strip("-")
    if not slug:
        raise BadRequestError("Missing platform")
    return slug


def package_filename(platform: str, version_id: str) -> str:
    return f"{platform_slug(platform)}-{version_id}.zip"


class PackageBuilder:
    def __init__(self, store: ReleaseStore):
        self.store = store

    def _write_zip(self, destination: Path, files: Dict[str, Path], snapshot: Dict[str, Any]) -> int:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for arcname, path in files.items():
                archive.write(path, arcname)
            archive.writestr("metadata.json", json.dumps(snapshot, indent=2, ensure_ascii=False))
        return destination.stat().st_size

    async def build_package(self, release_id: str, platform: str, version_id: str) -> Dict[str, Any]:
        document = await self.store.load_existing(release_id)
        version = document["versions"].get(version_id)
        if not version:
            raise NotFoundException("Version", version_id)

        files: Dict[str, Path] = {}
        for item in (version.get("files") or {}).get("audio", []):
            path = self.store.resolve_file(release_id, "versions", version_id, "audio", item["filename"])
            if path.is_file():
                files[f"audio/{item['filename']}"] = path
        artwork_dir = self.store.resolve_file(release_id, "artwork")
        if artwork_dir.is_dir():
            for path in sorted(artwork_dir.iterdir()):
                if path.is_file():
                    files[f"artwork/{path.name}"] = path

        snapshot = {
            "releaseId": document["releaseId"],
            "artist": document.get("artist"),
            "title": document.get("title"),
            "genre": document.get("genre"),
            "releaseDate": document.get("releaseDate") or document.get("trackDate"),
            "platform": platform,
            "version": {key: value for key, value in version.items() if key != "files"},
            "generatedAt": utc_timestamp(),
        }

        filename = package_filename(platform, version_id)
        destination = self.store.resolve_file(release_id, PACKAGES_FOLDER, filename)
        size = await asyncio.to_thread(self._write_zip, destination, files, snapshot)
        logger.info(f"Built package {filename} for {release_id} ({len(files)} file(s))")

        return {
            "filename": filename,
            "path": str(destination),
            "size": size,
            "files": sorted(files),
        }

    def package_path(self, release_id: str, filename: str) -> Path:
        path = self.store.resolve_file(release_id, PACKAGES_FOLDER, safe_filename(filename))
        if not path.is_file():
            raise NotFoundException("Package", filename)
        return path


# Dependency
async def get_package_builder(store: ReleaseStore = Depends(get_release_store)) -> PackageBuilder:
    return PackageBuilder(store)
