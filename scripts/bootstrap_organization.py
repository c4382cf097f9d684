import os

from app.core.config import settings
from app.core.errors import ServiceError
from app.db.session import Database
from app.schemas.auth import RegisterRequest
from app.services import accounts


def main() -> None:
    email = os.getenv("BOOTSTRAP_OWNER_EMAIL")
    password = os.getenv("BOOTSTRAP_OWNER_PASSWORD")
    company = os.getenv("BOOTSTRAP_COMPANY_NAME")
    if not email or not password or not company:
        raise SystemExit(
            "BOOTSTRAP_OWNER_EMAIL, BOOTSTRAP_OWNER_PASSWORD and BOOTSTRAP_COMPANY_NAME are required."
        )

    database = Database(settings.SQLALCHEMY_DATABASE_URI)
    database.create_schema()
    db = database.session()
    try:
        payload = RegisterRequest(email=email, password=password, company_name=company)
        organization, user, _ = accounts.register_organization(db, payload)
        print(f"Organization created: {organization.name} ({organization.id}) owner={user.email}")
    except ServiceError as exc:
        raise SystemExit(exc.message)
    finally:
        db.close()
        database.close()


if __name__ == "__main__":
    main()
