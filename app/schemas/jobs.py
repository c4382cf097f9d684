from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class JobCreate(BaseModel):
    customer_id: str
    technician_id: Optional[str] = None
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: Optional[int] = Field(None, ge=0)
    price: Optional[float] = None
    metadata: Optional[dict[str, Any]] = None
    # accepted for compatibility, new jobs always start as "scheduled"
    status: Optional[str] = None


class JobUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, ge=0)
    price: Optional[float] = None
    status: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class AssignPayload(BaseModel):
    technician_id: Optional[str] = None


class StatusPayload(BaseModel):
    status: str


class JobCustomerSummary(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None


class JobResponse(BaseModel):
    id: str
    organization_id: str
    created_by: str
    customer_id: str
    technician_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: str
    scheduled_at: datetime
    completed_at: Optional[datetime] = None
    duration_minutes: int
    price: Optional[float] = None
    metadata: Optional[dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
    customer: Optional[JobCustomerSummary] = None
