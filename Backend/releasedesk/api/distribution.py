from fastapi import APIRouter, Body, Depends
from typing import Any, Dict

from releasedesk.schemas.distribution import DistributionResponse, DistributionUpdate, SignRequest
from releasedesk.services.distribution import DistributionTracker, get_distribution_tracker

router = APIRouter()


@router.patch("/releases/{release_id}/distribution", response_model=DistributionResponse)
async def update_distribution(
    release_id: str,
    payload: DistributionUpdate,
    tracker: DistributionTracker = Depends(get_distribution_tracker)
) -> DistributionResponse:
    """Log a platform upload, label submission or promotion (updates in place when already logged)"""
    result = await tracker.append_or_update(release_id, payload.path, payload.entry)
    platform = result["entry"]["platform"]
    message = f"Added {platform}" if result["created"] else f"Updated {platform}"
    return DistributionResponse(
        message=message,
        entry=result["entry"],
        distribution=result["distribution"],
        labelInfo=result["labelInfo"]
    )


@router.patch("/releases/{release_id}/distribution/{path}/{key}", response_model=DistributionResponse)
async def edit_distribution_entry(
    release_id: str,
    path: str,
    key: str,
    patch: Dict[str, Any] = Body(...),
    tracker: DistributionTracker = Depends(get_distribution_tracker)
) -> DistributionResponse:
    """Edit an entry, addressed by its id or its timestamp"""
    result = await tracker.edit(release_id, path, key, patch)
    return DistributionResponse(message="Entry updated", **result)


@router.delete("/releases/{release_id}/distribution/{path}/{key}", response_model=DistributionResponse)
async def delete_distribution_entry(
    release_id: str,
    path: str,
    key: str,
    tracker: DistributionTracker = Depends(get_distribution_tracker)
) -> DistributionResponse:
    """Delete an entry, addressed by its id or its timestamp"""
    result = await tracker.delete(release_id, path, key)
    return DistributionResponse(message="Entry deleted", **result)


@router.patch("/releases/{release_id}/sign", response_model=DistributionResponse)
async def mark_signed(
    release_id: str,
    payload: SignRequest,
    tracker: DistributionTracker = Depends(get_distribution_tracker)
) -> DistributionResponse:
    """Mark the release as signed to a label it was submitted to"""
    result = await tracker.mark_signed(release_id, payload.labelName)
    return DistributionResponse(message=f"Marked as signed to {result['entry']['label']}", **result)
