from sqlmodel import SQLModel, create_engine, Session
from dabba.config import settings

engine = create_engine(
    settings.sqlalchemy_url,
    echo=False,
    pool_pre_ping=True,      # checks dead connections
    pool_recycle=1800        # refresh every 30 min
)


def create_db_and_tables():
    from dabba.models import user, cook, menu_item, order, order_item, cook_payment, order_event  # noqa: F401
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
