from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from cashier.core.config import settings

DB_SYNC_URL = settings.DB_SYNC_URL

engine = create_engine(DB_SYNC_URL, future=True, echo=False) if DB_SYNC_URL else None
SessionLocal = sessionmaker(
    bind=engine,
    class_=Session,
    expire_on_commit=False,
)

Base = declarative_base()
