import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import models

logger = logging.getLogger("fieldservice.db")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Engine and session factory shared by every request of the process."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._engine: Engine | None = None
        self._sessionmaker: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self.init()
        return self._engine

    def init(self) -> None:
        if self._engine is not None:
            return
        kwargs: dict = {}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in self.url or self.url == "sqlite://":
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self._engine = create_engine(self.url, **kwargs)
        if self.url.startswith("sqlite"):
            event.listen(self._engine, "connect", _enable_sqlite_foreign_keys)
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        logger.info("database initialized url=%s", self._engine.url.render_as_string(hide_password=True))

    def create_schema(self) -> None:
        models.Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        if self._sessionmaker is None:
            self.init()
        return self._sessionmaker()

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.exec_driver_sql("SELECT 1")
        except Exception:
            logger.exception("database ping failed")
            return False
        return True

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            logger.info("database pool disposed")
        self._engine = None
        self._sessionmaker = None


def get_db(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
