import uuid
from datetime import datetime

import pytest

from app.core.errors import Conflict, InvalidArgument, NotFound
from app.db import models
from app.schemas.jobs import JobCreate
from app.schemas.resources import CustomerCreate, CustomerUpdate, PersonCreate, PersonUpdate
from app.services import customers, jobs, personnel


def _customer(db, ctx, **overrides):
    data = {"name": "Jane Doe", "phone": "555-0100", "address": "12 Elm St", "email": "jane@example.com"}
    data.update(overrides)
    return customers.create_customer(db, ctx, CustomerCreate(**data))


def test_customer_partial_update_keeps_name_when_empty(db_session, ctx):
    customer = _customer(db_session, ctx)
    updated = customers.update_customer(db_session, customer.id, ctx.organization_id, CustomerUpdate(name=""))
    assert updated.name == "Jane Doe"
    assert updated.phone == "555-0100"

    renamed = customers.update_customer(
        db_session, customer.id, ctx.organization_id, CustomerUpdate(name="Jane Smith")
    )
    assert renamed.name == "Jane Smith"
    assert renamed.address == "12 Elm St"
    assert renamed.email == "jane@example.com"


def test_customer_update_clears_optional_fields_when_present(db_session, ctx):
    customer = _customer(db_session, ctx, notes="Dog in yard", latitude=40.1, longitude=-74.2)
    updated = customers.update_customer(
        db_session, customer.id, ctx.organization_id, CustomerUpdate(notes=None, latitude=None)
    )
    assert updated.notes is None
    assert updated.latitude is None
    assert updated.longitude == -74.2


def test_customer_is_tenant_scoped(db_session, ctx, other_ctx):
    customer = _customer(db_session, ctx)
    with pytest.raises(NotFound):
        customers.get_customer(db_session, customer.id, other_ctx.organization_id)
    with pytest.raises(NotFound):
        customers.update_customer(
            db_session, customer.id, other_ctx.organization_id, CustomerUpdate(name="Hijack")
        )
    with pytest.raises(NotFound):
        customers.delete_customer(db_session, customer.id, other_ctx.organization_id)
    assert customers.get_customer(db_session, customer.id, ctx.organization_id).name == "Jane Doe"


def test_customer_malformed_id(db_session, ctx):
    with pytest.raises(InvalidArgument):
        customers.get_customer(db_session, "42", ctx.organization_id)


def test_customer_search(db_session, ctx, other_ctx):
    _customer(db_session, ctx, name="Jane Doe", address="12 Elm St")
    _customer(db_session, ctx, name="Bob Stone", phone="555-0111", address="9 Oak Ave")
    _customer(db_session, other_ctx, name="Jane Elsewhere")

    assert [c.name for c in customers.list_customers(db_session, ctx.organization_id, "jane")] == ["Jane Doe"]
    assert [c.name for c in customers.list_customers(db_session, ctx.organization_id, "OAK")] == ["Bob Stone"]
    assert [c.name for c in customers.list_customers(db_session, ctx.organization_id)] == [
        "Bob Stone",
        "Jane Doe",
    ]
    assert customers.list_customers(db_session, ctx.organization_id, "nobody") == []


def test_customer_search_treats_wildcards_literally(db_session, ctx):
    _customer(db_session, ctx, name="Unit 500 Main", address=None)
    _customer(db_session, ctx, name="Unit_7", address=None)
    _customer(db_session, ctx, name="Discount 50% Off", address=None)

    def names(term):
        return [c.name for c in customers.list_customers(db_session, ctx.organization_id, term)]

    assert names("50%") == ["Discount 50% Off"]
    assert names("unit_") == ["Unit_7"]
    assert names("nit_5") == []


def test_customer_with_jobs_cannot_be_deleted(db_session, ctx):
    customer = _customer(db_session, ctx)
    jobs.create_job(
        db_session,
        ctx,
        JobCreate(customer_id=customer.id, title="Inspection", scheduled_at=datetime(2024, 6, 1, 9, 0)),
    )
    with pytest.raises(Conflict):
        customers.delete_customer(db_session, customer.id, ctx.organization_id)


def test_customer_delete(db_session, ctx):
    customer = _customer(db_session, ctx)
    customers.delete_customer(db_session, customer.id, ctx.organization_id)
    with pytest.raises(NotFound):
        customers.get_customer(db_session, customer.id, ctx.organization_id)


@pytest.mark.parametrize("model", [models.Technician, models.Worker])
def test_person_crud(db_session, ctx, other_ctx, model):
    person = personnel.create_person(
        db_session, model, ctx, PersonCreate(name="Sam Field", phone="555-0199", email="sam@example.com")
    )
    assert person.is_active is True
    assert person.organization_id == ctx.organization_id

    with pytest.raises(NotFound):
        personnel.get_person(db_session, model, person.id, other_ctx.organization_id)

    updated = personnel.update_person(
        db_session, model, person.id, ctx.organization_id, PersonUpdate(name="", is_active=False)
    )
    assert updated.name == "Sam Field"
    assert updated.is_active is False
    assert updated.email == "sam@example.com"

    personnel.delete_person(db_session, model, person.id, ctx.organization_id)
    with pytest.raises(NotFound):
        personnel.get_person(db_session, model, person.id, ctx.organization_id)


@pytest.mark.parametrize("model", [models.Technician, models.Worker])
def test_person_active_only_listing(db_session, ctx, model):
    personnel.create_person(db_session, model, ctx, PersonCreate(name="Active", phone="1"))
    personnel.create_person(db_session, model, ctx, PersonCreate(name="Benched", phone="2", is_active=False))
    assert [p.name for p in personnel.list_people(db_session, model, ctx.organization_id)] == [
        "Active",
        "Benched",
    ]
    assert [p.name for p in personnel.list_people(db_session, model, ctx.organization_id, True)] == ["Active"]


def test_technician_location(db_session, ctx, other_ctx):
    technician = personnel.create_person(
        db_session, models.Technician, ctx, PersonCreate(name="Sam", phone="555")
    )
    updated = personnel.update_technician_location(db_session, technician.id, ctx.organization_id, 40.7, -74.0)
    assert (updated.last_lat, updated.last_lng) == (40.7, -74.0)
    assert updated.last_seen_at is not None
    with pytest.raises(NotFound):
        personnel.update_technician_location(db_session, technician.id, other_ctx.organization_id, 0, 0)


def test_assigned_technician_cannot_be_deleted(db_session, ctx):
    customer = _customer(db_session, ctx)
    technician = personnel.create_person(
        db_session, models.Technician, ctx, PersonCreate(name="Sam", phone="555")
    )
    jobs.create_job(
        db_session,
        ctx,
        JobCreate(
            customer_id=customer.id,
            technician_id=technician.id,
            title="Inspection",
            scheduled_at=datetime(2024, 6, 1, 9, 0),
        ),
    )
    with pytest.raises(Conflict):
        personnel.delete_person(db_session, models.Technician, technician.id, ctx.organization_id)


def test_unknown_person(db_session, ctx):
    with pytest.raises(NotFound):
        personnel.get_person(db_session, models.Worker, str(uuid.uuid4()), ctx.organization_id)
