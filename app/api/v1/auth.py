from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.errors import Forbidden
from app.core.tenancy import TenantContext, get_tenant_context
from app.db.session import get_db
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    OrganizationResponse,
    RegisterRequest,
    UserResponse,
    WorkerTokenResponse,
)
from app.services import accounts

router = APIRouter(tags=["Auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    organization, user, token = accounts.register_organization(db, payload)
    return AuthResponse(
        token=token,
        user=UserResponse.model_validate(user),
        organization=OrganizationResponse.model_validate(organization),
    )


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user, token = accounts.authenticate(db, payload.email, payload.password)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def me(ctx: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    return accounts.get_profile(db, ctx)


@router.post("/workers/{worker_id}/token", response_model=WorkerTokenResponse)
def worker_token(
    worker_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """Pair a field device: issues a token that acts as the worker."""
    if ctx.is_worker:
        raise Forbidden("Workers cannot issue tokens")
    worker, token = accounts.issue_worker_token(db, worker_id, ctx.organization_id)
    return WorkerTokenResponse(token=token, worker_id=worker.id)
