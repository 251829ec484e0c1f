from sqlmodel import SQLModel, create_engine, Session
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./app.db")

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    DATABASE_URL,
    echo=os.getenv("SQL_ECHO") == "1",
    connect_args=connect_args,
)


def init_db():
    # models must be imported so their tables are registered on the metadata
    import lms.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    return Session(engine, expire_on_commit=False)
