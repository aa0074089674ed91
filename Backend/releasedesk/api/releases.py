import logging
from fastapi import APIRouter, Depends, Query
from starlette.responses import FileResponse
from typing import Any, Dict, Optional

from releasedesk.core.exceptions import BadRequestError
from releasedesk.schemas.release import (
    DeleteResponse,
    MetadataSave,
    MetadataSaveResponse,
    ReleaseListResponse,
)
from releasedesk.services.release_store import ReleaseStore, get_release_store, release_view


logger = logging.getLogger(__name__)


router = APIRouter()

# Static routes first
@router.post("/metadata", response_model=MetadataSaveResponse)
async def save_metadata(
    payload: MetadataSave,
    store: ReleaseStore = Depends(get_release_store)
) -> MetadataSaveResponse:
    """Create or update a release document (top-level keys are merged)"""
    if not payload.releaseId:
        raise BadRequestError("Missing releaseId or metadata")

    fields = payload.fields_to_save()
    document = await store.save(payload.releaseId, fields)
    return MetadataSaveResponse(
        message="Metadata saved successfully",
        path=str(store.metadata_path(payload.releaseId)),
        release=release_view(document)
    )


@router.get("/releases", response_model=ReleaseListResponse)
async def list_releases(store: ReleaseStore = Depends(get_release_store)) -> ReleaseListResponse:
    """List all releases, newest first"""
    releases = [release_view(document) for document in await store.list_releases()]
    logger.info(f"Listed {len(releases)} release(s)")
    return ReleaseListResponse(count=len(releases), releases=releases)


# Dynamic routes after static ones
@router.get("/releases/{release_id}")
async def read_release(release_id: str, store: ReleaseStore = Depends(get_release_store)) -> Dict[str, Any]:
    """Get a single release document with its file counts"""
    document = await store.load_existing(release_id)
    logger.info(f"Found release: {release_id}")
    return release_view(document)


@router.delete("/releases/{release_id}", response_model=DeleteResponse)
async def delete_release(release_id: str, store: ReleaseStore = Depends(get_release_store)) -> DeleteResponse:
    """Delete a release and every file stored for it"""
    await store.delete_release(release_id)
    return DeleteResponse(message=f"Release \"{release_id}\" deleted")


@router.get("/releases/{release_id}/artwork")
async def read_artwork(release_id: str, store: ReleaseStore = Depends(get_release_store)) -> FileResponse:
    """Serve the release's cover image"""
    return FileResponse(store.first_artwork(release_id))


@router.get("/releases/{release_id}/files/{file_type}/{filename}")
async def download_file(
    release_id: str,
    file_type: str,
    filename: str,
    version_id: Optional[str] = Query(None, alias="versionId"),
    store: ReleaseStore = Depends(get_release_store)
) -> FileResponse:
    """Download an uploaded audio, artwork or video file"""
    path = store.locate_file(release_id, file_type, filename, version_id)
    return FileResponse(path, filename=path.name)
