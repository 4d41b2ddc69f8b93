"""In-memory SQLite databases for persistence, query, and API tests."""

from collections.abc import Callable

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, Repository


def make_session_factory() -> tuple[Engine, Callable[[], Session]]:
    """Fresh schema on a single shared connection, with foreign keys (and cascades) enforced."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)


def add_repository(session: Session, project_id: str = "proj-1", name: str = "acme/web") -> Repository:
    repo = Repository(project_id=project_id, name=name)
    session.add(repo)
    session.commit()
    session.refresh(repo)
    return repo
