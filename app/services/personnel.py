"""Technicians and workers share one tenant-scoped repository.

``model`` is either ``models.Technician`` or ``models.Worker``; technicians
additionally carry a last-known position.
"""
import logging
import uuid
from typing import Type, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound
from app.core.tenancy import TenantContext
from app.db import models
from app.schemas.resources import PersonCreate, PersonUpdate
from app.services.common import clean_text, require_id, utcnow

logger = logging.getLogger("fieldservice.personnel")

PersonModel = Type[Union[models.Technician, models.Worker]]

_LABELS = {models.Technician: "Technician", models.Worker: "Worker"}


def _label(model: PersonModel) -> str:
    return _LABELS.get(model, "Record")


def create_person(db: Session, model: PersonModel, ctx: TenantContext, payload: PersonCreate):
    person = model(
        id=str(uuid.uuid4()),
        organization_id=ctx.organization_id,
        created_by=ctx.actor_id,
        name=payload.name.strip(),
        phone=payload.phone.strip(),
        email=clean_text(payload.email),
        is_active=payload.is_active,
    )
    db.add(person)
    db.commit()
    db.refresh(person)
    return person


def get_person(db: Session, model: PersonModel, person_id: str, organization_id: str):
    person = (
        db.query(model)
        .filter(
            model.id == require_id(person_id, f"{_label(model).lower()} ID"),
            model.organization_id == organization_id,
        )
        .first()
    )
    if not person:
        raise NotFound(f"{_label(model)} not found")
    return person


def list_people(db: Session, model: PersonModel, organization_id: str, active_only: bool = False):
    query = db.query(model).filter(model.organization_id == organization_id)
    if active_only:
        query = query.filter(model.is_active.is_(True))
    return query.order_by(model.name.asc()).all()


def update_person(
    db: Session, model: PersonModel, person_id: str, organization_id: str, payload: PersonUpdate
):
    person = get_person(db, model, person_id, organization_id)
    person.name = clean_text(payload.name) or person.name
    person.phone = clean_text(payload.phone) or person.phone
    if "email" in payload.model_fields_set:
        person.email = clean_text(payload.email)
    if payload.is_active is not None:
        person.is_active = payload.is_active
    db.commit()
    db.refresh(person)
    return person


def delete_person(db: Session, model: PersonModel, person_id: str, organization_id: str) -> None:
    person = get_person(db, model, person_id, organization_id)
    db.delete(person)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("%s delete blocked by references id=%s", _label(model).lower(), person.id)
        raise Conflict(f"{_label(model)} is still assigned to jobs")


def update_technician_location(
    db: Session, technician_id: str, organization_id: str, lat: float, lng: float
) -> models.Technician:
    technician = get_person(db, models.Technician, technician_id, organization_id)
    technician.last_lat = lat
    technician.last_lng = lng
    technician.last_seen_at = utcnow()
    db.commit()
    db.refresh(technician)
    return technician
