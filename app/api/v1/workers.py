from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.tenancy import TenantContext, get_tenant_context
from app.db import models
from app.db.session import get_db
from app.schemas.resources import PersonCreate, PersonUpdate, WorkerResponse
from app.services import personnel

router = APIRouter(tags=["Workers"])


@router.post("/workers", response_model=WorkerResponse, status_code=status.HTTP_201_CREATED)
def create_worker(
    payload: PersonCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return personnel.create_person(db, models.Worker, ctx, payload)


@router.get("/workers", response_model=list[WorkerResponse])
def list_workers(
    active_only: bool = False,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return personnel.list_people(db, models.Worker, ctx.organization_id, active_only)


@router.get("/workers/{worker_id}", response_model=WorkerResponse)
def get_worker(
    worker_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return personnel.get_person(db, models.Worker, worker_id, ctx.organization_id)


@router.put("/workers/{worker_id}", response_model=WorkerResponse)
@router.patch("/workers/{worker_id}", response_model=WorkerResponse)
def update_worker(
    worker_id: str,
    payload: PersonUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return personnel.update_person(db, models.Worker, worker_id, ctx.organization_id, payload)


@router.delete("/workers/{worker_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_worker(
    worker_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    personnel.delete_person(db, models.Worker, worker_id, ctx.organization_id)
    return None
