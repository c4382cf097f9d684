"""Job file attachments kept consistent across the object store and the
``project_files`` table.

Upload is a two-step saga: write the object, then insert its metadata row. If
the insert fails the object is deleted again before the error is returned. A
failed compensating delete leaves an orphaned object, which is logged and
recorded in ``storage_incidents`` for reconciliation.

Delete runs the other way round: object first, row second, so a failed store
delete never leaves a row pointing at nothing.
"""
import logging
import ntpath
import posixpath
import time
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import BinaryIO, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import Forbidden, InvalidArgument, NotFound, UnsupportedMediaType, internal_error
from app.core.tenancy import TenantContext
from app.db import models
from app.schemas.files import ProjectFileResponse
from app.services import jobs
from app.services.common import clean_text, require_id
from app.services.storage import ObjectStore, ObjectTooLarge, StorageError

logger = logging.getLogger("fieldservice.files")

FILE_TYPE_PHOTO = "photo"
FILE_TYPE_DOCUMENT = "document"
FILE_TYPES = {FILE_TYPE_PHOTO, FILE_TYPE_DOCUMENT}


@dataclass
class UploadRequest:
    stream: BinaryIO
    mime_type: str
    original_filename: str
    category: Optional[str] = None
    description: Optional[str] = None
    declared_size: Optional[int] = None


def classify_mime_type(mime_type: str | None) -> str:
    normalized = (mime_type or "").split(";", 1)[0].strip().lower()
    if normalized.startswith("image/"):
        return FILE_TYPE_PHOTO
    if normalized.startswith("application/"):
        return FILE_TYPE_DOCUMENT
    raise UnsupportedMediaType("Unsupported file type")


def sanitize_filename(filename: str | None) -> str:
    name = ntpath.basename(posixpath.basename(filename or ""))
    name = name.strip().replace(" ", "_")
    if name in {"", ".", ".."}:
        return "file"
    return name


def build_storage_key(
    organization_id: str, job_id: str, file_type: str, filename: str, timestamp_ns: int
) -> str:
    return (
        f"organizations/{organization_id}/jobs/{job_id}/{file_type}/"
        f"{timestamp_ns}_{sanitize_filename(filename)}"
    )


def _signed_url_ttl() -> timedelta:
    return timedelta(minutes=settings.SIGNED_URL_TTL_MINUTES)


def _safe_signed_url(store: ObjectStore, key: str) -> str | None:
    try:
        return store.sign_get(key, _signed_url_ttl())
    except StorageError:
        logger.exception("could not sign url key=%s", key)
        return None


def file_to_response(record: models.ProjectFile, url: str | None = None) -> ProjectFileResponse:
    response = ProjectFileResponse.model_validate(record)
    response.url = url
    return response


def _record_incident(
    db: Session, organization_id: str, job_id: str | None, key: str, kind: str, detail: str
) -> None:
    try:
        db.add(
            models.StorageIncident(
                organization_id=organization_id,
                job_id=job_id,
                storage_key=key,
                kind=kind,
                detail=detail[:500],
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("could not record storage incident kind=%s key=%s", kind, key)


def _compensate_upload(db: Session, store: ObjectStore, organization_id: str, job_id: str, key: str) -> None:
    try:
        store.delete(key)
        logger.info("rolled back object after failed metadata insert key=%s", key)
    except StorageError as exc:
        logger.error("orphaned object left in store key=%s error=%s", key, exc)
        _record_incident(db, organization_id, job_id, key, "orphaned_object", str(exc))


def upload_file(
    db: Session,
    store: ObjectStore,
    ctx: TenantContext,
    job_id: str,
    upload: UploadRequest,
) -> ProjectFileResponse:
    job = jobs.get_job(db, job_id, ctx.organization_id)
    file_type = classify_mime_type(upload.mime_type)
    if upload.declared_size is not None and upload.declared_size > settings.MAX_UPLOAD_BYTES:
        raise InvalidArgument("File exceeds the maximum allowed size")
    original_name = upload.original_filename or "file"
    safe_name = sanitize_filename(original_name)
    # the except branch below runs after a rollback has expired ``job``
    job_id, organization_id = job.id, ctx.organization_id
    key = build_storage_key(organization_id, job_id, file_type, safe_name, time.time_ns())

    try:
        size = store.put(key, upload.stream, upload.mime_type, max_bytes=settings.MAX_UPLOAD_BYTES)
    except ObjectTooLarge:
        raise InvalidArgument("File exceeds the maximum allowed size")
    except StorageError as exc:
        logger.exception("object upload failed key=%s", key)
        raise internal_error("Failed to upload file", exc, settings.is_development)

    uploaded_by_user = None
    uploaded_by_worker = None
    if ctx.is_worker:
        uploaded_by_worker = ctx.actor_id
    else:
        uploaded_by_user = ctx.actor_id

    extension = posixpath.splitext(safe_name)[1].lstrip(".").lower() or None
    record = models.ProjectFile(
        id=str(uuid.uuid4()),
        job_id=job_id,
        uploaded_by_user=uploaded_by_user,
        uploaded_by_worker=uploaded_by_worker,
        file_type=file_type,
        file_category=clean_text(upload.category),
        file_name=safe_name,
        original_file_name=original_name,
        mime_type=upload.mime_type,
        file_size=size,
        file_extension=extension,
        storage_bucket=store.bucket_label,
        storage_key=key,
        description=clean_text(upload.description),
    )
    try:
        db.add(record)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("metadata insert failed job_id=%s key=%s", job_id, key)
        _compensate_upload(db, store, organization_id, job_id, key)
        raise internal_error("Failed to save file", exc, settings.is_development)

    db.refresh(record)
    logger.info("file uploaded id=%s job_id=%s type=%s size=%s", record.id, job_id, file_type, size)
    return file_to_response(record, _safe_signed_url(store, key))


def list_files(
    db: Session,
    store: ObjectStore,
    job_id: str,
    organization_id: str,
    file_type: str | None = None,
) -> list[ProjectFileResponse]:
    job = jobs.get_job(db, job_id, organization_id)
    query = db.query(models.ProjectFile).filter(models.ProjectFile.job_id == job.id)
    if file_type:
        query = query.filter(models.ProjectFile.file_type == file_type)
    records = query.order_by(models.ProjectFile.created_at.desc()).all()
    return [file_to_response(record, _safe_signed_url(store, record.storage_key)) for record in records]


def _get_scoped_file(db: Session, file_id: str, organization_id: str) -> models.ProjectFile:
    record = (
        db.query(models.ProjectFile)
        .filter(models.ProjectFile.id == require_id(file_id, "file ID"))
        .first()
    )
    if not record:
        raise NotFound("File not found")
    owned = (
        db.query(models.Job.id)
        .filter(models.Job.id == record.job_id, models.Job.organization_id == organization_id)
        .first()
    )
    if not owned:
        raise Forbidden("Unauthorized")
    return record


def get_file(db: Session, store: ObjectStore, file_id: str, organization_id: str) -> ProjectFileResponse:
    record = _get_scoped_file(db, file_id, organization_id)
    try:
        url = store.sign_get(record.storage_key, _signed_url_ttl())
    except StorageError as exc:
        logger.exception("could not sign url file_id=%s", record.id)
        raise internal_error("Failed to generate download URL", exc, settings.is_development)
    return file_to_response(record, url)


def delete_file(db: Session, store: ObjectStore, file_id: str, organization_id: str) -> None:
    record = _get_scoped_file(db, file_id, organization_id)
    try:
        store.delete(record.storage_key)
    except StorageError as exc:
        logger.exception("object delete failed, keeping metadata file_id=%s", record.id)
        raise internal_error("Failed to delete from storage", exc, settings.is_development)

    file_id, job_id, key = record.id, record.job_id, record.storage_key
    try:
        db.delete(record)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("metadata row now points at a deleted object file_id=%s key=%s", file_id, key)
        _record_incident(db, organization_id, job_id, key, "dangling_metadata", f"file_id={file_id}")
        raise internal_error("Failed to delete file record", exc, settings.is_development)
    logger.info("file deleted id=%s job_id=%s", file_id, job_id)
