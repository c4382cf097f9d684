import pytest
from fastapi.testclient import TestClient

from app.core.tenancy import TenantContext
from app.db import models
from app.db.session import Database
from app.main import create_app
from app.services.storage import ObjectStore


def seed_organization(db, name="Acme HVAC", email=None):
    organization = models.Organization(name=name)
    db.add(organization)
    db.commit()
    user = models.OrganizationUser(
        organization_id=organization.id,
        email=email or f"owner-{organization.id}@example.com",
        password_hash="x",
        name="Owner",
        role="owner",
    )
    db.add(user)
    db.commit()
    return TenantContext(
        organization_id=organization.id,
        actor_id=user.id,
        actor_role=user.role,
        actor_kind="user",
    )


@pytest.fixture()
def database():
    database = Database("sqlite://")
    database.init()
    database.create_schema()
    yield database
    database.close()


@pytest.fixture()
def db_session(database):
    db = database.session()
    yield db
    db.close()


@pytest.fixture()
def store(tmp_path):
    store = ObjectStore(use_local=True, base_dir=str(tmp_path / "storage"))
    store.init()
    yield store
    store.close()


@pytest.fixture()
def ctx(db_session):
    return seed_organization(db_session, "Acme HVAC")


@pytest.fixture()
def other_ctx(db_session):
    return seed_organization(db_session, "Borealis Plumbing")


@pytest.fixture()
def client(database, store):
    app = create_app(database=database, storage=store)
    with TestClient(app) as test_client:
        yield test_client
