from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class DistributionUpdate(BaseModel):
    path: Optional[str] = None  # release / submit / promote
    entry: Optional[Dict[str, Any]] = None


class SignRequest(BaseModel):
    labelName: Optional[str] = None


class DistributionResponse(BaseModel):
    success: bool = True
    message: str
    entry: Optional[Dict[str, Any]] = None
    distribution: Dict[str, List[Dict[str, Any]]]
    labelInfo: Dict[str, Any]
