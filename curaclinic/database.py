from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine, Session
import logging

from .core.config import settings
# Importing the models registers every table on SQLModel.metadata
from .db import models  # noqa: F401
from .db.models.health.appointment import ACTIVE_SLOT_INDEX

logger = logging.getLogger(__name__)

# Choose engine options based on database scheme
db_url = settings.DATABASE_URL
engine_kwargs = {}

if db_url.startswith("sqlite"):
    # SQLite specific connect args
    engine_kwargs.update({
        "connect_args": {"check_same_thread": False}
    })
else:
    # Better resiliency for managed Postgres
    engine_kwargs.update({
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": 5,
        "max_overflow": 10,
    })

engine = create_engine(db_url, echo=settings.DEBUG, **engine_kwargs)

def create_db_and_tables(bind=None):
    bind = bind or engine
    SQLModel.metadata.create_all(bind)
    migrate_database(bind)
    logger.info("Database tables ensured")

def migrate_database(bind):
    """Add indexes that create_all skips on tables created by older versions."""
    existing = {ix["name"] for ix in inspect(bind).get_indexes(models.Appointment.__tablename__)}
    if ACTIVE_SLOT_INDEX in existing:
        return
    index = next(ix for ix in models.Appointment.__table__.indexes if ix.name == ACTIVE_SLOT_INDEX)
    try:
        index.create(bind)
        logger.info(f"Created index {ACTIVE_SLOT_INDEX}")
    except SQLAlchemyError as e:
        # Usually means the table already holds two active bookings for one slot
        logger.error(f"Could not create {ACTIVE_SLOT_INDEX}: {e}")
        raise

def get_session():
    with Session(engine) as session:
        yield session
