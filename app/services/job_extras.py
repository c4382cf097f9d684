"""Append-only notes, parts and photo links hanging off a job.

Every call checks that the job belongs to the organization with one boolean
query, then appends or lists with a second statement. The two statements
are not wrapped in a transaction: a job deleted in between can leave an
orphaned row behind.
"""
import uuid

from sqlalchemy import exists
from sqlalchemy.orm import Session

from app.core.errors import InvalidArgument, NotFound
from app.core.tenancy import TenantContext
from app.db import models
from app.schemas.files import NoteCreate, PartCreate, PhotoCreate
from app.services.common import clean_text, require_id


def job_exists(db: Session, job_id: str, organization_id: str) -> bool:
    return db.query(
        exists().where(models.Job.id == job_id, models.Job.organization_id == organization_id)
    ).scalar()


def _require_job(db: Session, job_id: str, organization_id: str) -> str:
    job_id = require_id(job_id, "job ID")
    if not job_exists(db, job_id, organization_id):
        raise NotFound("Job not found")
    return job_id


def _append(db: Session, row):
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def add_note(db: Session, ctx: TenantContext, job_id: str, payload: NoteCreate) -> models.JobNote:
    job_id = _require_job(db, job_id, ctx.organization_id)
    body = clean_text(payload.body)
    if not body:
        raise InvalidArgument("Note body is required")
    return _append(
        db,
        models.JobNote(
            id=str(uuid.uuid4()),
            job_id=job_id,
            author_id=ctx.actor_id,
            author_kind=ctx.actor_kind,
            body=body,
        ),
    )


def list_notes(db: Session, job_id: str, organization_id: str) -> list[models.JobNote]:
    job_id = _require_job(db, job_id, organization_id)
    return (
        db.query(models.JobNote)
        .filter(models.JobNote.job_id == job_id)
        .order_by(models.JobNote.created_at.asc())
        .all()
    )


def add_part(db: Session, ctx: TenantContext, job_id: str, payload: PartCreate) -> models.JobPart:
    job_id = _require_job(db, job_id, ctx.organization_id)
    name = clean_text(payload.name)
    if not name:
        raise InvalidArgument("Part name is required")
    if payload.quantity < 1:
        raise InvalidArgument("Quantity must be at least 1")
    return _append(
        db,
        models.JobPart(
            id=str(uuid.uuid4()),
            job_id=job_id,
            name=name,
            quantity=payload.quantity,
            unit_price=payload.unit_price,
            created_by=ctx.actor_id,
        ),
    )


def list_parts(db: Session, job_id: str, organization_id: str) -> list[models.JobPart]:
    job_id = _require_job(db, job_id, organization_id)
    return (
        db.query(models.JobPart)
        .filter(models.JobPart.job_id == job_id)
        .order_by(models.JobPart.created_at.asc())
        .all()
    )


def add_photo(db: Session, ctx: TenantContext, job_id: str, payload: PhotoCreate) -> models.JobPhoto:
    job_id = _require_job(db, job_id, ctx.organization_id)
    url = clean_text(payload.url)
    if not url:
        raise InvalidArgument("Photo URL is required")
    return _append(
        db,
        models.JobPhoto(
            id=str(uuid.uuid4()),
            job_id=job_id,
            url=url,
            caption=clean_text(payload.caption),
            created_by=ctx.actor_id,
        ),
    )


def list_photos(db: Session, job_id: str, organization_id: str) -> list[models.JobPhoto]:
    job_id = _require_job(db, job_id, organization_id)
    return (
        db.query(models.JobPhoto)
        .filter(models.JobPhoto.job_id == job_id)
        .order_by(models.JobPhoto.created_at.asc())
        .all()
    )
