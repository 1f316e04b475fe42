# backend/geomeasure/db.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from geomeasure.config import settings
# モデル定義側の Base（geomeasure.models.base）を利用してメタデータを統一
from geomeasure.models.base import Base

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL
_is_sqlite = SQLALCHEMY_DATABASE_URL.startswith("sqlite")

_connect_args = {"check_same_thread": False} if _is_sqlite else {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=_connect_args,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    import geomeasure.models.measurement  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
