from fastapi import APIRouter, Depends, status
from starlette.responses import FileResponse

from releasedesk.core.exceptions import BadRequestError
from releasedesk.schemas.package import PackageRequest, PackageResponse
from releasedesk.services.packages import PackageBuilder, get_package_builder

router = APIRouter()


@router.post("/releases/{release_id}/packages", response_model=PackageResponse, status_code=status.HTTP_201_CREATED)
async def build_package(
    release_id: str,
    payload: PackageRequest,
    builder: PackageBuilder = Depends(get_package_builder)
) -> PackageResponse:
    """Zip a version's audio and the release artwork for a platform upload"""
    if not payload.platform:
        raise BadRequestError("Missing platform")
    result = await builder.build_package(release_id, payload.platform, payload.versionId)
    return PackageResponse(**result)


@router.get("/releases/{release_id}/packages/{filename}")
async def download_package(
    release_id: str,
    filename: str,
    builder: PackageBuilder = Depends(get_package_builder)
) -> FileResponse:
    path = builder.package_path(release_id, filename)
    return FileResponse(path, filename=path.name, media_type="application/zip")
