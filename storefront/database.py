from sqlmodel import SQLModel, create_engine, Session
from storefront.config import settings

connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,      # checks dead connections
    pool_recycle=1800,       # refresh every 30 min
    connect_args=connect_args,
)


def create_db_and_tables():
    from storefront import models  # noqa: F401  registers every table
    from storefront.services.order_number import ensure_order_sequence

    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        ensure_order_sequence(session)


def get_session():
    with Session(engine) as session:
        yield session
