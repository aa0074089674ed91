import logging
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional

from fastapi import Depends

from releasedesk.core.exceptions import BadRequestError, NotFoundException
from releasedesk.services.release_store import (
    ReleaseStore,
    get_release_store,
    safe_filename,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

LABEL_DEAL_FOLDER = "label-deal"
CONTACT_FIELDS = ("name", "label", "email", "phone", "location", "role", "notes")


class LabelDealService:
    """Label contact details and contract documents for a signed release."""

    def __init__(self, store: ReleaseStore):
        self.store = store

    async def save_contact(self, release_id: str, contact: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(contact, dict) or not str(contact.get("name") or "").strip():
            raise BadRequestError("Contact name is required")

        def apply(document: Dict[str, Any]) -> Dict[str, Any]:
            saved = {field: contact.get(field) or "" for field in CONTACT_FIELDS}
            if not saved["label"]:
                saved["label"] = document["labelInfo"].get("label") or ""
            saved["updatedAt"] = utc_timestamp()
            document["labelInfo"]["contact"] = saved
            return saved

        saved = await self.store.update(release_id, apply)
        logger.info(f"Saved label contact {saved['name']} for {release_id}")
        return saved

    async def delete_contact(self, release_id: str) -> None:
        def apply(document: Dict[str, Any]) -> None:
            if not document["labelInfo"].pop("contact", None):
                raise NotFoundException("Label contact", release_id)

        await self.store.update(release_id, apply)
        logger.info(f"Deleted label contact for {release_id}")

    async def add_document(
        self,
        release_id: str,
        filename: Optional[str],
        source: BinaryIO,
        content_type: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Store a contract document and list it under ``labelInfo.contractDocuments``."""
        await self.store.load_existing(release_id)
        name = safe_filename(filename)
        path, size = await self.store.write_file(release_id, [LABEL_DEAL_FOLDER, name], source)

        def apply(document: Dict[str, Any]) -> List[Dict[str, Any]]:
            documents = [item for item in document["labelInfo"]["contractDocuments"]
                         if item.get("filename") != name]
            documents.append({
                "filename": name,
                "size": size,
                "mimetype": content_type,
                "uploadedAt": utc_timestamp(),
            })
            document["labelInfo"]["contractDocuments"] = documents
            return documents

        try:
            documents = await self.store.update(release_id, apply)
        except Exception:
            await self.store.remove_file(path)
            raise
        logger.info(f"Uploaded label-deal document {name} for {release_id}")
        return documents

    def document_path(self, release_id: str, filename: str) -> Path:
        path = self.store.resolve_file(release_id, LABEL_DEAL_FOLDER, safe_filename(filename))
        if not path.is_file():
            raise NotFoundException("File", filename)
        return path

    async def delete_document(self, release_id: str, filename: str) -> List[Dict[str, Any]]:
        name = safe_filename(filename)

        def apply(document: Dict[str, Any]) -> List[Dict[str, Any]]:
            documents = document["labelInfo"]["contractDocuments"]
            remaining = [item for item in documents if item.get("filename") != name]
            if len(remaining) == len(documents):
                raise NotFoundException("File", name)
            document["labelInfo"]["contractDocuments"] = remaining
            return remaining

        remaining = await self.store.update(release_id, apply)
        await self.store.remove_file(self.store.resolve_file(release_id, LABEL_DEAL_FOLDER, name))
        logger.info(f"Deleted label-deal document {name} from {release_id}")
        return remaining


# Dependency
async def get_label_deal_service(store: ReleaseStore = Depends(get_release_store)) -> LabelDealService:
    return LabelDealService(store)
