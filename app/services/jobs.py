"""Job lifecycle: creation, scoped lookup, listing, partial update, assignment
and the status state machine.

Any status may move to any other status. The only side effect is the
completion stamp: entering ``completed`` from another status sets
``completed_at`` to now, and leaving ``completed`` never clears it.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.errors import Conflict, InvalidArgument, NotFound
from app.core.tenancy import TenantContext
from app.db import models
from app.schemas.jobs import JobCreate, JobCustomerSummary, JobResponse, JobUpdate
from app.services.common import clean_text, require_id, to_naive_utc, utcnow

logger = logging.getLogger("fieldservice.jobs")

DEFAULT_DURATION_MINUTES = 60
STATUS_SCHEDULED = "scheduled"
STATUS_COMPLETED = "completed"
VALID_STATUSES = set(models.JOB_STATUSES)

SORT_SCHEDULED = "scheduled_at"
SORT_STATUS = "status"


@dataclass(frozen=True)
class JobFilters:
    status: Optional[str] = None
    technician_id: Optional[str] = None
    scheduled_date: Optional[date] = None


def job_to_response(job: models.Job) -> JobResponse:
    customer = None
    if job.customer is not None:
        customer = JobCustomerSummary(
            id=job.customer.id,
            name=job.customer.name,
            phone=job.customer.phone,
            address=job.customer.address,
        )
    return JobResponse(
        id=job.id,
        organization_id=job.organization_id,
        created_by=job.created_by,
        customer_id=job.customer_id,
        technician_id=job.technician_id,
        title=job.title,
        description=job.description,
        status=job.status,
        scheduled_at=job.scheduled_at,
        completed_at=job.completed_at,
        duration_minutes=job.duration_minutes,
        price=job.price,
        metadata=job.extra,
        created_at=job.created_at,
        updated_at=job.updated_at,
        customer=customer,
    )


def validate_status(value: str | None) -> str:
    normalized = (value or "").strip()
    if normalized not in VALID_STATUSES:
        raise InvalidArgument("Invalid status")
    return normalized


def _apply_status(job: models.Job, new_status: str) -> None:
    if new_status == STATUS_COMPLETED and job.status != STATUS_COMPLETED:
        job.completed_at = utcnow()
    job.status = new_status


def _ensure_customer_in_scope(db: Session, customer_id: str, organization_id: str) -> str:
    customer_id = require_id(customer_id, "customer ID")
    found = (
        db.query(models.Customer.id)
        .filter(models.Customer.id == customer_id, models.Customer.organization_id == organization_id)
        .first()
    )
    if not found:
        raise NotFound("Customer not found")
    return customer_id


def _ensure_technician_in_scope(db: Session, technician_id: str, organization_id: str) -> str:
    technician_id = require_id(technician_id, "technician ID")
    found = (
        db.query(models.Technician.id)
        .filter(
            models.Technician.id == technician_id,
            models.Technician.organization_id == organization_id,
        )
        .first()
    )
    if not found:
        raise NotFound("Technician not found")
    return technician_id


def create_job(db: Session, ctx: TenantContext, draft: JobCreate) -> models.Job:
    if not draft.customer_id:
        raise InvalidArgument("customer_id is required")
    if draft.scheduled_at is None:
        raise InvalidArgument("scheduled_at is required")

    customer_id = _ensure_customer_in_scope(db, draft.customer_id, ctx.organization_id)
    technician_id = None
    if draft.technician_id:
        technician_id = _ensure_technician_in_scope(db, draft.technician_id, ctx.organization_id)

    job = models.Job(
        id=str(uuid.uuid4()),
        organization_id=ctx.organization_id,
        created_by=ctx.actor_id,
        customer_id=customer_id,
        technician_id=technician_id,
        title=draft.title.strip(),
        description=draft.description,
        status=STATUS_SCHEDULED,
        scheduled_at=to_naive_utc(draft.scheduled_at),
        duration_minutes=draft.duration_minutes or DEFAULT_DURATION_MINUTES,
        price=draft.price,
        extra=draft.metadata,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("job created id=%s organization_id=%s", job.id, job.organization_id)
    return job


def get_job(db: Session, job_id: str, organization_id: str) -> models.Job:
    job = (
        db.query(models.Job)
        .options(joinedload(models.Job.customer))
        .filter(
            models.Job.id == require_id(job_id, "job ID"),
            models.Job.organization_id == organization_id,
        )
        .first()
    )
    if not job:
        raise NotFound("Job not found")
    return job


def list_jobs(
    db: Session,
    organization_id: str,
    filters: JobFilters | None = None,
    sort: str | None = None,
) -> list[models.Job]:
    filters = filters or JobFilters()
    query = (
        db.query(models.Job)
        .options(joinedload(models.Job.customer))
        .filter(models.Job.organization_id == organization_id)
    )
    if filters.status:
        query = query.filter(models.Job.status == filters.status)
    if filters.technician_id:
        query = query.filter(models.Job.technician_id == filters.technician_id)
    if filters.scheduled_date:
        day_start = datetime.combine(filters.scheduled_date, time.min)
        query = query.filter(
            models.Job.scheduled_at >= day_start,
            models.Job.scheduled_at < day_start + timedelta(days=1),
        )

    if sort == SORT_SCHEDULED:
        query = query.order_by(models.Job.scheduled_at.asc())
    elif sort == SORT_STATUS:
        query = query.order_by(models.Job.status.asc(), models.Job.scheduled_at.asc())
    else:
        query = query.order_by(models.Job.created_at.desc(), models.Job.id.desc())
    return query.all()


def update_job(db: Session, job_id: str, organization_id: str, patch: JobUpdate) -> models.Job:
    job = get_job(db, job_id, organization_id)
    fields = patch.model_fields_set

    # empty title and zero duration mean "no change"
    job.title = clean_text(patch.title) or job.title
    if patch.duration_minutes:
        job.duration_minutes = patch.duration_minutes
    if patch.scheduled_at is not None:
        job.scheduled_at = to_naive_utc(patch.scheduled_at)
    if "description" in fields:
        job.description = patch.description
    if "price" in fields:
        job.price = patch.price
    if "metadata" in fields:
        job.extra = patch.metadata
    if patch.status:
        _apply_status(job, validate_status(patch.status))

    db.commit()
    db.refresh(job)
    return job


def assign_technician(
    db: Session, job_id: str, organization_id: str, technician_id: str | None
) -> models.Job:
    job = get_job(db, job_id, organization_id)
    if technician_id:
        job.technician_id = _ensure_technician_in_scope(db, technician_id, organization_id)
    else:
        job.technician_id = None
    db.commit()
    db.refresh(job)
    logger.info("job assignment job_id=%s technician_id=%s", job.id, job.technician_id)
    return job


def set_status(db: Session, job_id: str, organization_id: str, new_status: str) -> models.Job:
    normalized = validate_status(new_status)
    job = get_job(db, job_id, organization_id)
    previous = job.status
    _apply_status(job, normalized)
    db.commit()
    db.refresh(job)
    logger.info("job status job_id=%s from=%s to=%s", job.id, previous, job.status)
    return job


def delete_job(db: Session, job_id: str, organization_id: str) -> None:
    job = get_job(db, job_id, organization_id)
    db.delete(job)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("job delete blocked by child rows job_id=%s", job.id)
        raise Conflict("Job still has files or records attached")
    logger.info("job deleted id=%s organization_id=%s", job.id, organization_id)
