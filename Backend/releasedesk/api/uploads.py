import logging
from fastapi import APIRouter, Depends, Query, Request
from starlette.datastructures import UploadFile
from typing import Optional

from releasedesk.schemas.release import UploadResponse
from releasedesk.services.versions import VersionRegistrar, get_version_registrar

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload_files(
    request: Request,
    release_id: Optional[str] = Query(None, alias="releaseId"),
    artist: Optional[str] = Query(None),
    title: Optional[str] = Query(None),
    genre: Optional[str] = Query(None),
    version_name: Optional[str] = Query(None, alias="versionName"),
    registrar: VersionRegistrar = Depends(get_version_registrar)
) -> UploadResponse:
    """
    Upload the files of a release version.

    Files may arrive under any multipart field name; each one is classified as
    audio, artwork or video by its media type or extension. Audio is validated
    and the whole request is rolled back if any file fails.
    """
    form = await request.form()
    try:
        files = [value for _, value in form.multi_items() if isinstance(value, UploadFile)]
        result = await registrar.register(
            release_id,
            files,
            version_name=version_name,
            artist=artist,
            title=title,
            genre=genre
        )
    finally:
        await form.close()

    return UploadResponse(artist=artist, title=title, genre=genre, **result)
