import logging
import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, InvalidArgument, NotFound, Unauthenticated
from app.core.security import create_access_token, get_password_hash, verify_password
from app.core.tenancy import TenantContext
from app.db import models
from app.schemas.auth import RegisterRequest
from app.services import personnel
from app.services.common import clean_text

logger = logging.getLogger("fieldservice.accounts")

DEFAULT_INDUSTRY = "hvac"
OWNER_ROLE = "owner"


def _normalize_email(email: str) -> str:
    normalized = (email or "").strip().lower()
    if "@" not in normalized or normalized.startswith("@") or normalized.endswith("@"):
        raise InvalidArgument("Invalid email")
    return normalized


def _find_user_by_email(db: Session, email: str) -> models.OrganizationUser | None:
    return (
        db.query(models.OrganizationUser)
        .filter(func.lower(models.OrganizationUser.email) == email)
        .first()
    )


def issue_user_token(user: models.OrganizationUser) -> str:
    return create_access_token(
        actor_id=user.id,
        organization_id=user.organization_id,
        role=user.role,
        kind="user",
        email=user.email,
    )


def register_organization(
    db: Session, payload: RegisterRequest
) -> tuple[models.Organization, models.OrganizationUser, str]:
    email = _normalize_email(payload.email)
    if _find_user_by_email(db, email):
        raise Conflict("Email already registered")
    try:
        password_hash = get_password_hash(payload.password)
    except ValueError as exc:
        raise InvalidArgument(str(exc))

    organization = models.Organization(
        id=str(uuid.uuid4()),
        name=payload.company_name.strip(),
        phone=clean_text(payload.phone),
        industry=clean_text(payload.industry) or DEFAULT_INDUSTRY,
    )
    user = models.OrganizationUser(
        id=str(uuid.uuid4()),
        organization_id=organization.id,
        email=email,
        password_hash=password_hash,
        name=clean_text(payload.name) or payload.company_name.strip(),
        role=OWNER_ROLE,
        phone=clean_text(payload.phone),
    )
    # organization and owner are written in one transaction
    db.add(organization)
    db.flush()
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Email already registered")
    db.refresh(organization)
    db.refresh(user)
    logger.info("organization registered id=%s owner_id=%s", organization.id, user.id)
    return organization, user, issue_user_token(user)


def authenticate(db: Session, email: str, password: str) -> tuple[models.OrganizationUser, str]:
    user = _find_user_by_email(db, (email or "").strip().lower())
    if not user or not verify_password(password, user.password_hash):
        raise Unauthenticated("Invalid email or password")
    return user, issue_user_token(user)


def get_profile(db: Session, ctx: TenantContext) -> models.OrganizationUser:
    if ctx.is_worker:
        raise NotFound("User not found")
    user = (
        db.query(models.OrganizationUser)
        .filter(
            models.OrganizationUser.id == ctx.actor_id,
            models.OrganizationUser.organization_id == ctx.organization_id,
        )
        .first()
    )
    if not user:
        raise NotFound("User not found")
    return user


def issue_worker_token(db: Session, worker_id: str, organization_id: str) -> tuple[models.Worker, str]:
    worker = personnel.get_person(db, models.Worker, worker_id, organization_id)
    if not worker.is_active:
        raise InvalidArgument("Worker is inactive")
    token = create_access_token(
        actor_id=worker.id,
        organization_id=worker.organization_id,
        role="worker",
        kind="worker",
        email=worker.email,
    )
    logger.info("worker token issued worker_id=%s", worker.id)
    return worker, token
