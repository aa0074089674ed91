import logging
import time
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional
from urllib.parse import urlparse

from fastapi import Depends

from releasedesk.core.exceptions import BadRequestError, NotFoundException
from releasedesk.services.release_store import (
    ReleaseStore,
    get_release_store,
    safe_filename,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

NOTES_FOLDER = "notes"


class NotesService:
    """Free-text notes, note documents and song links attached to a release."""

    def __init__(self, store: ReleaseStore):
        self.store = store

    async def save_notes(self, release_id: str, notes: Optional[str]) -> Dict[str, Any]:
        def apply(document: Dict[str, Any]) -> Dict[str, Any]:
            document["notes"] = notes or ""
            return document

        return await self.store.update(release_id, apply)

    # Documents

    async def add_document(
        self,
        release_id: str,
        filename: Optional[str],
        source: BinaryIO,
        content_type: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        await self.store.load_existing(release_id)
        name = safe_filename(filename)
        path, size = await self.store.write_file(release_id, [NOTES_FOLDER, name], source)

        def apply(document: Dict[str, Any]) -> List[Dict[str, Any]]:
            documents = [item for item in document.get("notesDocuments") or []
                         if item.get("filename") != name]
            documents.append({
                "filename": name,
                "size": size,
                "mimetype": content_type,
                "uploadedAt": utc_timestamp(),
            })
            document["notesDocuments"] = documents
            return documents

        try:
            return await self.store.update(release_id, apply)
        except Exception:
            await self.store.remove_file(path)
            raise

    def document_path(self, release_id: str, filename: str) -> Path:
        path = self.store.resolve_file(release_id, NOTES_FOLDER, safe_filename(filename))
        if not path.is_file():
            raise NotFoundException("File", filename)
        return path

    async def delete_document(self, release_id: str, filename: str) -> List[Dict[str, Any]]:
        name = safe_filename(filename)

        def apply(document: Dict[str, Any]) -> List[Dict[str, Any]]:
            documents = document.get("notesDocuments") or []
            remaining = [item for item in documents if item.get("filename") != name]
            if len(remaining) == len(documents):
                raise NotFoundException("File", name)
            document["notesDocuments"] = remaining
            return remaining

        remaining = await self.store.update(release_id, apply)
        await self.store.remove_file(self.store.resolve_file(release_id, NOTES_FOLDER, name))
        return remaining

    # Song links

    async def add_link(self, release_id: str, link: Dict[str, Any]) -> Dict[str, Any]:
        url = str(link.get("url") or "").strip()
        title = str(link.get("title") or "").strip()
        if not url or not title:
            raise BadRequestError("URL and title are required")
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise BadRequestError("Invalid URL", "Links must start with http:// or https://")

        def apply(document: Dict[str, Any]) -> Dict[str, Any]:
            links = document.setdefault("songLinks", [])
            links.append({
                "id": link.get("id") or f"link_{int(time.time() * 1000)}",
                "url": url,
                "title": title,
                "note": link.get("note") or "",
                "addedAt": link.get("addedAt") or utc_timestamp(),
            })
            return document

        document = await self.store.update(release_id, apply)
        logger.info(f"Added song link to {release_id}: {url}")
        return document

    async def delete_link(self, release_id: str, link_id: str) -> Dict[str, Any]:
        def apply(document: Dict[str, Any]) -> Dict[str, Any]:
            links = document.get("songLinks") or []
            remaining = [item for item in links if item.get("id") != link_id]
            if len(remaining) == len(links):
                raise NotFoundException("Link", link_id)
            document["songLinks"] = remaining
            return document

        return await self.store.update(release_id, apply)


# Dependency
async def get_notes_service(store: ReleaseStore = Depends(get_release_store)) -> NotesService:
    return NotesService(store)
