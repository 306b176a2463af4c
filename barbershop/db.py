# barbershop/db.py

import logging

from sqlmodel import SQLModel, Session, create_engine, select

from .config import SERVICES, get_settings
from .models import Service

logger = logging.getLogger(__name__)

settings = get_settings()

connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False  # required for SQLite + FastAPI

engine = create_engine(
    settings.database_url,
    echo=False,
    connect_args=connect_args,
)


def init_db(bind=None) -> None:
    """Create tables and seed the services catalogue if it is empty."""
    bind = bind or engine
    SQLModel.metadata.create_all(bind)
    with Session(bind) as session:
        if session.exec(select(Service)).first() is None:
            for name, minutes in SERVICES.items():
                session.add(Service(name=name, duration=minutes))
            session.commit()
            logger.info("Seeded %d services", len(SERVICES))


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
