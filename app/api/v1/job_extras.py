from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.tenancy import TenantContext, get_tenant_context
from app.db.session import get_db
from app.schemas.files import (
    NoteCreate,
    NoteResponse,
    PartCreate,
    PartResponse,
    PhotoCreate,
    PhotoResponse,
)
from app.services import job_extras

router = APIRouter(tags=["Job records"])


@router.post("/jobs/{job_id}/notes", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
def add_note(
    job_id: str,
    payload: NoteCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return job_extras.add_note(db, ctx, job_id, payload)


@router.get("/jobs/{job_id}/notes", response_model=list[NoteResponse])
def list_notes(
    job_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return job_extras.list_notes(db, job_id, ctx.organization_id)


@router.post("/jobs/{job_id}/parts", response_model=PartResponse, status_code=status.HTTP_201_CREATED)
def add_part(
    job_id: str,
    payload: PartCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return job_extras.add_part(db, ctx, job_id, payload)


@router.get("/jobs/{job_id}/parts", response_model=list[PartResponse])
def list_parts(
    job_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return job_extras.list_parts(db, job_id, ctx.organization_id)


@router.post("/jobs/{job_id}/photos", response_model=PhotoResponse, status_code=status.HTTP_201_CREATED)
def add_photo(
    job_id: str,
    payload: PhotoCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return job_extras.add_photo(db, ctx, job_id, payload)


@router.get("/jobs/{job_id}/photos", response_model=list[PhotoResponse])
def list_photos(
    job_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return job_extras.list_photos(db, job_id, ctx.organization_id)
