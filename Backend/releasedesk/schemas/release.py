from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Optional


class MetadataSave(BaseModel):
    releaseId: Optional[str] = None
    # Older clients wrap the fields as {"releaseId": ..., "metadata": {...}}
    metadata: Optional[Dict[str, Any]] = None

    # Everything else is stored as-is on the release document
    model_config = ConfigDict(extra="allow")

    def fields_to_save(self) -> Dict[str, Any]:
        fields = dict(self.model_extra or {})
        if self.metadata:
            fields = {**self.metadata, **fields}
        fields.pop("releaseId", None)
        return fields


class MetadataSaveResponse(BaseModel):
    success: bool = True
    message: str
    path: str
    release: Dict[str, Any]


class ReleaseListResponse(BaseModel):
    count: int
    releases: List[Dict[str, Any]] = []


class DeleteResponse(BaseModel):
    success: bool = True
    message: str


class UploadResponse(BaseModel):
    success: bool = True
    releaseId: str
    versionId: str
    artist: Optional[str] = None
    title: Optional[str] = None
    genre: Optional[str] = None
    version: Dict[str, Any]
    filesUploaded: List[Dict[str, Any]] = []
    audioValidation: List[Dict[str, Any]] = []
