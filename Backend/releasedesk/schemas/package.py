from pydantic import BaseModel
from typing import List, Optional


class PackageRequest(BaseModel):
    platform: Optional[str] = None
    versionId: str = "primary"


class PackageResponse(BaseModel):
    success: bool = True
    filename: str
    path: str
    size: int
    files: List[str] = []
