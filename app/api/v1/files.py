from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.core.tenancy import TenantContext, get_tenant_context
from app.db.session import get_db
from app.schemas.files import ProjectFileResponse
from app.services import files as file_service
from app.services.storage import ObjectStore, get_object_store

router = APIRouter(tags=["Files"])


@router.post(
    "/jobs/{job_id}/files",
    response_model=ProjectFileResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_job_file(
    job_id: str,
    file: UploadFile = File(...),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
):
    upload = file_service.UploadRequest(
        stream=file.file,
        mime_type=file.content_type or "",
        original_filename=file.filename or "",
        category=category,
        description=description,
        declared_size=file.size,
    )
    return file_service.upload_file(db, store, ctx, job_id, upload)


@router.get("/jobs/{job_id}/files", response_model=list[ProjectFileResponse])
def list_job_files(
    job_id: str,
    file_type: Optional[str] = Query(None, alias="type"),
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
):
    return file_service.list_files(db, store, job_id, ctx.organization_id, file_type)


@router.get("/files/{file_id}", response_model=ProjectFileResponse)
def get_file(
    file_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
):
    return file_service.get_file(db, store, file_id, ctx.organization_id)


@router.delete("/files/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(
    file_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
):
    file_service.delete_file(db, store, file_id, ctx.organization_id)
    return None
