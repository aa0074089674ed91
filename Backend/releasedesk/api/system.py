from fastapi import APIRouter, Depends
from typing import Any, Dict

from releasedesk.core.config import settings
from releasedesk.services.release_store import ReleaseStore, get_release_store
from releasedesk.services.storage import disk_status

router = APIRouter()


@router.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok", "message": "File handler is running"}


@router.get("/storage/status")
async def storage_status(store: ReleaseStore = Depends(get_release_store)) -> Dict[str, Any]:
    """Free space on the drive that holds the releases folder"""
    return disk_status(store.root, settings.LOW_DISK_SPACE_GB)
