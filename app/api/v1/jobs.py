from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.tenancy import TenantContext, get_tenant_context
from app.db.session import get_db
from app.schemas.jobs import AssignPayload, JobCreate, JobResponse, JobUpdate, StatusPayload
from app.services import jobs as job_service
from app.services.jobs import JobFilters

router = APIRouter(tags=["Jobs"])


@router.post("/jobs", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
def create_job(
    payload: JobCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    job = job_service.create_job(db, ctx, payload)
    return job_service.job_to_response(job)


@router.get("/jobs", response_model=list[JobResponse])
def list_jobs(
    status_filter: Optional[str] = Query(None, alias="status"),
    technician_id: Optional[str] = None,
    scheduled_date: Optional[date] = Query(None, alias="date"),
    sort: Optional[str] = None,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    filters = JobFilters(status=status_filter, technician_id=technician_id, scheduled_date=scheduled_date)
    items = job_service.list_jobs(db, ctx.organization_id, filters, sort)
    return [job_service.job_to_response(job) for job in items]


@router.get("/jobs/{job_id}", response_model=JobResponse)
def get_job(
    job_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return job_service.job_to_response(job_service.get_job(db, job_id, ctx.organization_id))


@router.put("/jobs/{job_id}", response_model=JobResponse)
@router.patch("/jobs/{job_id}", response_model=JobResponse)
def update_job(
    job_id: str,
    payload: JobUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    job = job_service.update_job(db, job_id, ctx.organization_id, payload)
    return job_service.job_to_response(job)


@router.patch("/jobs/{job_id}/assign", response_model=JobResponse)
def assign_job(
    job_id: str,
    payload: AssignPayload,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    job = job_service.assign_technician(db, job_id, ctx.organization_id, payload.technician_id)
    return job_service.job_to_response(job)


@router.patch("/jobs/{job_id}/status", response_model=JobResponse)
def update_job_status(
    job_id: str,
    payload: StatusPayload,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    job = job_service.set_status(db, job_id, ctx.organization_id, payload.status)
    return job_service.job_to_response(job)


@router.delete("/jobs/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job(
    job_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    job_service.delete_job(db, job_id, ctx.organization_id)
    return None
