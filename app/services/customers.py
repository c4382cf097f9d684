import logging
import uuid

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound
from app.core.tenancy import TenantContext
from app.db import models
from app.schemas.resources import CustomerCreate, CustomerUpdate
from app.services.common import clean_text, require_id

logger = logging.getLogger("fieldservice.customers")


def create_customer(db: Session, ctx: TenantContext, payload: CustomerCreate) -> models.Customer:
    customer = models.Customer(
        id=str(uuid.uuid4()),
        organization_id=ctx.organization_id,
        created_by=ctx.actor_id,
        name=payload.name.strip(),
        email=clean_text(payload.email),
        phone=clean_text(payload.phone),
        address=clean_text(payload.address),
        latitude=payload.latitude,
        longitude=payload.longitude,
        notes=payload.notes,
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def get_customer(db: Session, customer_id: str, organization_id: str) -> models.Customer:
    customer = (
        db.query(models.Customer)
        .filter(
            models.Customer.id == require_id(customer_id, "customer ID"),
            models.Customer.organization_id == organization_id,
        )
        .first()
    )
    if not customer:
        raise NotFound("Customer not found")
    return customer


def list_customers(db: Session, organization_id: str, search: str | None = None) -> list[models.Customer]:
    query = db.query(models.Customer).filter(models.Customer.organization_id == organization_id)
    term = clean_text(search)
    if term:
        escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        query = query.filter(
            or_(
                func.lower(models.Customer.name).like(pattern, escape="\\"),
                func.lower(models.Customer.phone).like(pattern, escape="\\"),
                func.lower(models.Customer.address).like(pattern, escape="\\"),
            )
        )
    return query.order_by(models.Customer.name.asc()).all()


def update_customer(
    db: Session, customer_id: str, organization_id: str, payload: CustomerUpdate
) -> models.Customer:
    customer = get_customer(db, customer_id, organization_id)
    fields = payload.model_fields_set

    # name, phone and address cannot be cleared through a partial update
    customer.name = clean_text(payload.name) or customer.name
    customer.phone = clean_text(payload.phone) or customer.phone
    customer.address = clean_text(payload.address) or customer.address
    if "email" in fields:
        customer.email = clean_text(payload.email)
    if "latitude" in fields:
        customer.latitude = payload.latitude
    if "longitude" in fields:
        customer.longitude = payload.longitude
    if "notes" in fields:
        customer.notes = payload.notes

    db.commit()
    db.refresh(customer)
    return customer


def delete_customer(db: Session, customer_id: str, organization_id: str) -> None:
    customer = get_customer(db, customer_id, organization_id)
    db.delete(customer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("customer delete blocked by jobs customer_id=%s", customer.id)
        raise Conflict("Customer still has jobs")
