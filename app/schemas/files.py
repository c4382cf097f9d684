from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ProjectFileResponse(BaseModel):
    id: str
    job_id: str
    uploaded_by_user: Optional[str] = None
    uploaded_by_worker: Optional[str] = None
    file_type: str
    file_category: Optional[str] = None
    file_name: str
    original_file_name: str
    mime_type: str
    file_size: int
    file_extension: Optional[str] = None
    storage_bucket: Optional[str] = None
    storage_key: str
    description: Optional[str] = None
    taken_at: Optional[datetime] = None
    url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NoteCreate(BaseModel):
    body: str


class NoteResponse(BaseModel):
    id: str
    job_id: str
    author_id: str
    author_kind: str
    body: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PartCreate(BaseModel):
    name: str
    quantity: int = 1
    unit_price: Optional[float] = None


class PartResponse(BaseModel):
    id: str
    job_id: str
    name: str
    quantity: int
    unit_price: Optional[float] = None
    created_by: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PhotoCreate(BaseModel):
    url: str
    caption: Optional[str] = None


class PhotoResponse(BaseModel):
    id: str
    job_id: str
    url: str
    caption: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
