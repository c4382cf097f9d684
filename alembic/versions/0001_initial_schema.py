"""organizations, crews, jobs and job files

Revision ID: 0001_initial_schema
Revises: 
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True) -> list:
    columns = [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
    ]
    if updated:
        columns.append(
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)"))
        )
    return columns


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("industry", sa.String(), nullable=False, server_default="hvac"),
        *_timestamps(),
    )

    op.create_table(
        "organization_users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("organization_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=False, server_default="owner"),
        sa.Column("phone", sa.String(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_organization_users_email"),
    )
    op.create_index("ix_organization_users_organization_id", "organization_users", ["organization_id"])

    op.create_table(
        "customers",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("organization_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_customers_organization_id", "customers", ["organization_id"])

    for table in ("technicians", "workers"):
        extra = []
        if table == "technicians":
            extra = [
                sa.Column("last_lat", sa.Float(), nullable=True),
                sa.Column("last_lng", sa.Float(), nullable=True),
                sa.Column("last_seen_at", sa.DateTime(), nullable=True),
            ]
        op.create_table(
            table,
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("organization_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=False),
            sa.Column("created_by", sa.String(), nullable=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("email", sa.String(), nullable=True),
            sa.Column("phone", sa.String(), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *extra,
            *_timestamps(),
        )
        op.create_index(f"ix_{table}_organization_id", table, ["organization_id"])

    op.create_table(
        "jobs",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("organization_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("customer_id", sa.String(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("technician_id", sa.String(), sa.ForeignKey("technicians.id"), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="scheduled"),
        sa.Column("scheduled_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_jobs_organization_id", "jobs", ["organization_id"])
    op.create_index("ix_jobs_status", "jobs", ["organization_id", "status"])
    op.create_index("ix_jobs_scheduled_at", "jobs", ["organization_id", "scheduled_at"])

    op.create_table(
        "project_files",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("job_id", sa.String(), sa.ForeignKey("jobs.id"), nullable=False),
        sa.Column("uploaded_by_user", sa.String(), nullable=True),
        sa.Column("uploaded_by_worker", sa.String(), nullable=True),
        sa.Column("file_type", sa.String(), nullable=False),
        sa.Column("file_category", sa.String(), nullable=True),
        sa.Column("file_name", sa.String(), nullable=False),
        sa.Column("original_file_name", sa.String(), nullable=False),
        sa.Column("mime_type", sa.String(), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("file_extension", sa.String(), nullable=True),
        sa.Column("storage_bucket", sa.String(), nullable=True),
        sa.Column("storage_key", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("taken_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "(uploaded_by_user IS NULL) <> (uploaded_by_worker IS NULL)",
            name="ck_project_files_single_uploader",
        ),
    )
    op.create_index("ix_project_files_job_id", "project_files", ["job_id"])

    op.create_table(
        "job_notes",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("job_id", sa.String(), sa.ForeignKey("jobs.id"), nullable=False),
        sa.Column("author_id", sa.String(), nullable=False),
        sa.Column("author_kind", sa.String(), nullable=False, server_default="user"),
        sa.Column("body", sa.Text(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_job_notes_job_id", "job_notes", ["job_id"])

    op.create_table(
        "job_parts",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("job_id", sa.String(), sa.ForeignKey("jobs.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Float(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_job_parts_job_id", "job_parts", ["job_id"])

    op.create_table(
        "job_photos",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("job_id", sa.String(), sa.ForeignKey("jobs.id"), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("caption", sa.String(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_job_photos_job_id", "job_photos", ["job_id"])

    op.create_table(
        "storage_incidents",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("job_id", sa.String(), nullable=True),
        sa.Column("storage_key", sa.String(), nullable=False),
        sa.Column("kind", sa.String(), nullable=False, server_default="orphaned_object"),
        sa.Column("detail", sa.String(), nullable=True),
        *_timestamps(updated=False),
    )


def downgrade() -> None:
    op.drop_table("storage_incidents")
    op.drop_index("ix_job_photos_job_id", table_name="job_photos")
    op.drop_table("job_photos")
    op.drop_index("ix_job_parts_job_id", table_name="job_parts")
    op.drop_table("job_parts")
    op.drop_index("ix_job_notes_job_id", table_name="job_notes")
    op.drop_table("job_notes")
    op.drop_index("ix_project_files_job_id", table_name="project_files")
    op.drop_table("project_files")
    op.drop_index("ix_jobs_scheduled_at", table_name="jobs")
    op.drop_index("ix_jobs_status", table_name="jobs")
    op.drop_index("ix_jobs_organization_id", table_name="jobs")
    op.drop_table("jobs")
    for table in ("workers", "technicians"):
        op.drop_index(f"ix_{table}_organization_id", table_name=table)
        op.drop_table(table)
    op.drop_index("ix_customers_organization_id", table_name="customers")
    op.drop_table("customers")
    op.drop_index("ix_organization_users_organization_id", table_name="organization_users")
    op.drop_table("organization_users")
    op.drop_table("organizations")
