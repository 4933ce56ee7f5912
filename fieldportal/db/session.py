# fieldportal/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fieldportal.core.config import settings
from fieldportal.db.base import Base  # <- use the single Base

_engine_kwargs = {"pool_pre_ping": True}
if settings.sqlalchemy_url.startswith("sqlite"):
    _engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(settings.sqlalchemy_url, **_engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_models():
    # Import ALL model modules so metadata is populated before create_all
    from fieldportal.models import (
        user, role, setting, commessa, receipt,
        site, piezometer, sampling_event, schedule, waste_log,
    )  # noqa: F401
    Base.metadata.create_all(bind=engine)
