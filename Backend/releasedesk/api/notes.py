from fastapi import APIRouter, Depends, File, UploadFile
from starlette.responses import FileResponse
from typing import Any, Dict

from releasedesk.schemas.label_deal import DocumentsResponse
from releasedesk.schemas.notes import NotesUpdate, SongLinkCreate
from releasedesk.services.notes import NotesService, get_notes_service
from releasedesk.services.release_store import release_view

router = APIRouter()


@router.patch("/releases/{release_id}/notes")
async def save_notes(
    release_id: str,
    payload: NotesUpdate,
    service: NotesService = Depends(get_notes_service)
) -> Dict[str, Any]:
    document = await service.save_notes(release_id, payload.notes)
    return {"success": True, "notes": document["notes"]}


@router.post("/releases/{release_id}/notes/files", response_model=DocumentsResponse)
async def upload_note_document(
    release_id: str,
    file: UploadFile = File(...),
    service: NotesService = Depends(get_notes_service)
) -> DocumentsResponse:
    documents = await service.add_document(release_id, file.filename, file.file, file.content_type)
    return DocumentsResponse(documents=documents)


@router.get("/releases/{release_id}/notes/files/{filename}")
async def download_note_document(
    release_id: str,
    filename: str,
    service: NotesService = Depends(get_notes_service)
) -> FileResponse:
    path = service.document_path(release_id, filename)
    return FileResponse(path, filename=path.name)


@router.delete("/releases/{release_id}/notes/files/{filename}", response_model=DocumentsResponse)
async def delete_note_document(
    release_id: str,
    filename: str,
    service: NotesService = Depends(get_notes_service)
) -> DocumentsResponse:
    documents = await service.delete_document(release_id, filename)
    return DocumentsResponse(documents=documents)


# Song links respond with the whole release so the UI can refresh in one go
@router.post("/releases/{release_id}/song-links")
async def add_song_link(
    release_id: str,
    link: SongLinkCreate,
    service: NotesService = Depends(get_notes_service)
) -> Dict[str, Any]:
    document = await service.add_link(release_id, link.model_dump())
    return release_view(document)


@router.delete("/releases/{release_id}/song-links/{link_id}")
async def delete_song_link(
    release_id: str,
    link_id: str,
    service: NotesService = Depends(get_notes_service)
) -> Dict[str, Any]:
    document = await service.delete_link(release_id, link_id)
    return release_view(document)
