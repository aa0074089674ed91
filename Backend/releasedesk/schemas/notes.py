from pydantic import BaseModel, ConfigDict
from typing import Optional


class NotesUpdate(BaseModel):
    notes: Optional[str] = ""


class SongLinkCreate(BaseModel):
    url: Optional[str] = None
    title: Optional[str] = None
    note: Optional[str] = None
    id: Optional[str] = None
    addedAt: Optional[str] = None

    model_config = ConfigDict(extra="ignore")
