from fastapi import APIRouter, Depends, File, UploadFile
from starlette.responses import FileResponse

from releasedesk.schemas.label_deal import ContactResponse, DocumentsResponse, LabelContact
from releasedesk.schemas.release import DeleteResponse
from releasedesk.services.label_deal import LabelDealService, get_label_deal_service

router = APIRouter()


@router.patch("/releases/{release_id}/label-deal/contact", response_model=ContactResponse)
async def save_contact(
    release_id: str,
    contact: LabelContact,
    service: LabelDealService = Depends(get_label_deal_service)
) -> ContactResponse:
    saved = await service.save_contact(release_id, contact.model_dump())
    return ContactResponse(contact=saved)


@router.delete("/releases/{release_id}/label-deal/contact", response_model=DeleteResponse)
async def delete_contact(
    release_id: str,
    service: LabelDealService = Depends(get_label_deal_service)
) -> DeleteResponse:
    await service.delete_contact(release_id)
    return DeleteResponse(message="Contact deleted")


@router.post("/releases/{release_id}/label-deal/files", response_model=DocumentsResponse)
async def upload_contract_document(
    release_id: str,
    file: UploadFile = File(...),
    service: LabelDealService = Depends(get_label_deal_service)
) -> DocumentsResponse:
    documents = await service.add_document(release_id, file.filename, file.file, file.content_type)
    return DocumentsResponse(documents=documents)


@router.get("/releases/{release_id}/label-deal/files/{filename}")
async def download_contract_document(
    release_id: str,
    filename: str,
    service: LabelDealService = Depends(get_label_deal_service)
) -> FileResponse:
    path = service.document_path(release_id, filename)
    return FileResponse(path, filename=path.name)


@router.delete("/releases/{release_id}/label-deal/files/{filename}", response_model=DocumentsResponse)
async def delete_contract_document(
    release_id: str,
    filename: str,
    service: LabelDealService = Depends(get_label_deal_service)
) -> DocumentsResponse:
    documents = await service.delete_document(release_id, filename)
    return DocumentsResponse(documents=documents)
