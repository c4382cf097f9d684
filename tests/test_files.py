import uuid
from datetime import datetime
from io import BytesIO

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.errors import Forbidden, Internal, InvalidArgument, NotFound, UnsupportedMediaType
from app.core.tenancy import TenantContext
from app.db import models
from app.schemas.jobs import JobCreate
from app.schemas.resources import CustomerCreate
from app.services import customers, files, jobs
from app.services.storage import StorageError


def _job(db, ctx):
    customer = customers.create_customer(db, ctx, CustomerCreate(name="Jane Doe"))
    return jobs.create_job(
        db,
        ctx,
        JobCreate(customer_id=customer.id, title="AC tune-up", scheduled_at=datetime(2024, 6, 1, 9, 0)),
    )


def _upload(content=b"%PDF-1.4 test", mime_type="application/pdf", filename="Service Report.pdf"):
    return files.UploadRequest(
        stream=BytesIO(content),
        mime_type=mime_type,
        original_filename=filename,
        category="report",
        description="Signed by customer",
    )


def _stored_files(store):
    return [path for path in store.base_dir.rglob("*") if path.is_file()]


def test_classify_mime_type():
    assert files.classify_mime_type("image/jpeg") == "photo"
    assert files.classify_mime_type("IMAGE/PNG") == "photo"
    assert files.classify_mime_type("application/pdf") == "document"
    assert files.classify_mime_type("application/pdf; charset=binary") == "document"
    for value in ("text/plain", "video/mp4", "", None):
        with pytest.raises(UnsupportedMediaType):
            files.classify_mime_type(value)


def test_sanitize_filename():
    assert files.sanitize_filename("Service Report.pdf") == "Service_Report.pdf"
    assert files.sanitize_filename("../../etc/passwd") == "passwd"
    assert files.sanitize_filename("C:\\Users\\me\\photo 1.jpg") == "photo_1.jpg"
    assert files.sanitize_filename("") == "file"
    assert files.sanitize_filename("..") == "file"


def test_build_storage_key():
    key = files.build_storage_key("org-1", "job-1", "photo", "front door.jpg", 1717232400000000000)
    assert key == "organizations/org-1/jobs/job-1/photo/1717232400000000000_front_door.jpg"


def test_upload_writes_object_and_row(db_session, store, ctx):
    job = _job(db_session, ctx)
    result = files.upload_file(db_session, store, ctx, job.id, _upload())

    assert result.file_type == "document"
    assert result.file_name == "Service_Report.pdf"
    assert result.original_file_name == "Service Report.pdf"
    assert result.file_extension == "pdf"
    assert result.file_size == len(b"%PDF-1.4 test")
    assert result.file_category == "report"
    assert result.uploaded_by_user == ctx.actor_id
    assert result.uploaded_by_worker is None
    assert result.storage_key.startswith(f"organizations/{ctx.organization_id}/jobs/{job.id}/document/")
    assert result.storage_key.endswith("_Service_Report.pdf")
    assert result.url.startswith("file://")
    assert store.exists(result.storage_key)


def test_worker_upload_records_worker(db_session, store, ctx):
    job = _job(db_session, ctx)
    worker_ctx = TenantContext(ctx.organization_id, str(uuid.uuid4()), "worker", "worker")
    result = files.upload_file(
        db_session, store, worker_ctx, job.id, _upload(b"\xff\xd8", "image/jpeg", "site.jpg")
    )
    assert result.file_type == "photo"
    assert result.uploaded_by_worker == worker_ctx.actor_id
    assert result.uploaded_by_user is None


def test_upload_rejects_unsupported_type(db_session, store, ctx):
    job = _job(db_session, ctx)
    with pytest.raises(UnsupportedMediaType):
        files.upload_file(db_session, store, ctx, job.id, _upload(b"hello", "text/plain", "notes.txt"))
    assert _stored_files(store) == []


def test_upload_to_foreign_job(db_session, store, ctx, other_ctx):
    job = _job(db_session, ctx)
    with pytest.raises(NotFound):
        files.upload_file(db_session, store, other_ctx, job.id, _upload())
    assert _stored_files(store) == []


def test_upload_too_large(db_session, store, ctx, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
    job = _job(db_session, ctx)
    with pytest.raises(InvalidArgument):
        files.upload_file(db_session, store, ctx, job.id, _upload(b"0123456789"))
    assert _stored_files(store) == []


def test_failed_metadata_insert_removes_object(db_session, store, ctx, monkeypatch):
    job = _job(db_session, ctx)

    def failing_commit():
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(Internal):
        files.upload_file(db_session, store, ctx, job.id, _upload())
    monkeypatch.undo()

    assert _stored_files(store) == []
    assert db_session.query(models.ProjectFile).count() == 0


def test_upload_compensates_when_job_is_deleted_mid_upload(database, db_session, store, ctx, monkeypatch):
    job = _job(db_session, ctx)
    job_id = job.id
    real_put = store.put

    def put_then_delete_job(key, file_obj, content_type, max_bytes=None):
        size = real_put(key, file_obj, content_type, max_bytes=max_bytes)
        other = database.session()
        try:
            other.query(models.Job).filter(models.Job.id == job_id).delete()
            other.commit()
        finally:
            other.close()
        return size

    monkeypatch.setattr(store, "put", put_then_delete_job)
    with pytest.raises(Internal):
        files.upload_file(db_session, store, ctx, job_id, _upload())
    monkeypatch.undo()

    assert _stored_files(store) == []
    assert db_session.query(models.ProjectFile).count() == 0
    assert db_session.query(models.StorageIncident).count() == 0


def test_upload_with_oversized_declared_size_never_touches_store(db_session, store, ctx, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
    job = _job(db_session, ctx)

    def unexpected_put(*args, **kwargs):
        raise AssertionError("store.put should not be called")

    monkeypatch.setattr(store, "put", unexpected_put)
    upload = _upload(b"0123456789")
    upload.declared_size = 10
    with pytest.raises(InvalidArgument):
        files.upload_file(db_session, store, ctx, job.id, upload)
    assert _stored_files(store) == []


def test_failed_compensation_records_incident(db_session, store, ctx, monkeypatch):
    job = _job(db_session, ctx)
    real_commit = db_session.commit
    calls = {"count": 0}

    def flaky_commit():
        calls["count"] += 1
        if calls["count"] == 1:
            raise SQLAlchemyError("insert failed")
        return real_commit()

    def failing_delete(key):
        raise StorageError("store unavailable")

    monkeypatch.setattr(db_session, "commit", flaky_commit)
    monkeypatch.setattr(store, "delete", failing_delete)
    with pytest.raises(Internal):
        files.upload_file(db_session, store, ctx, job.id, _upload())
    monkeypatch.undo()

    incident = db_session.query(models.StorageIncident).one()
    assert incident.kind == "orphaned_object"
    assert incident.job_id == job.id
    assert store.exists(incident.storage_key)
    assert db_session.query(models.ProjectFile).count() == 0


def test_list_files_newest_first_with_type_filter(db_session, store, ctx):
    job = _job(db_session, ctx)
    document = files.upload_file(db_session, store, ctx, job.id, _upload())
    photo = files.upload_file(db_session, store, ctx, job.id, _upload(b"\x89PNG", "image/png", "unit.png"))
    db_session.query(models.ProjectFile).filter(models.ProjectFile.id == document.id).update(
        {"created_at": datetime(2024, 1, 1)}
    )
    db_session.commit()

    listed = files.list_files(db_session, store, job.id, ctx.organization_id)
    assert [item.id for item in listed] == [photo.id, document.id]
    assert all(item.url for item in listed)

    photos = files.list_files(db_session, store, job.id, ctx.organization_id, "photo")
    assert [item.id for item in photos] == [photo.id]


def test_get_file_scope(db_session, store, ctx, other_ctx):
    job = _job(db_session, ctx)
    uploaded = files.upload_file(db_session, store, ctx, job.id, _upload())

    fetched = files.get_file(db_session, store, uploaded.id, ctx.organization_id)
    assert fetched.id == uploaded.id
    assert "expires=" in fetched.url

    with pytest.raises(Forbidden):
        files.get_file(db_session, store, uploaded.id, other_ctx.organization_id)
    with pytest.raises(NotFound):
        files.get_file(db_session, store, str(uuid.uuid4()), ctx.organization_id)
    with pytest.raises(InvalidArgument):
        files.get_file(db_session, store, "abc", ctx.organization_id)


def test_delete_file_removes_object_then_row(db_session, store, ctx, other_ctx):
    job = _job(db_session, ctx)
    uploaded = files.upload_file(db_session, store, ctx, job.id, _upload())

    with pytest.raises(Forbidden):
        files.delete_file(db_session, store, uploaded.id, other_ctx.organization_id)
    assert store.exists(uploaded.storage_key)

    files.delete_file(db_session, store, uploaded.id, ctx.organization_id)
    assert not store.exists(uploaded.storage_key)
    assert db_session.query(models.ProjectFile).count() == 0


def test_delete_file_keeps_row_when_store_fails(db_session, store, ctx, monkeypatch):
    job = _job(db_session, ctx)
    uploaded = files.upload_file(db_session, store, ctx, job.id, _upload())

    def failing_delete(key):
        raise StorageError("store unavailable")

    monkeypatch.setattr(store, "delete", failing_delete)
    with pytest.raises(Internal):
        files.delete_file(db_session, store, uploaded.id, ctx.organization_id)
    monkeypatch.undo()

    assert db_session.query(models.ProjectFile).count() == 1
    assert store.exists(uploaded.storage_key)
