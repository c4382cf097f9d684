from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    company_name: str = Field(..., min_length=1)
    name: Optional[str] = None
    phone: Optional[str] = None
    industry: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    organization_id: str
    email: str
    name: Optional[str] = None
    role: str
    phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrganizationResponse(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    industry: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse
    organization: Optional[OrganizationResponse] = None


class WorkerTokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    worker_id: str
