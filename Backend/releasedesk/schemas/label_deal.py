from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class LabelContact(BaseModel):
    name: Optional[str] = None
    label: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    role: Optional[str] = None
    notes: Optional[str] = None


class ContactResponse(BaseModel):
    success: bool = True
    contact: Dict[str, Any]


class DocumentsResponse(BaseModel):
    success: bool = True
    documents: List[Dict[str, Any]] = []
