import os
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session

load_dotenv(override=True)

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql://localhost:5432/ambrodeo")

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    echo=False
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

SUPPORTED_DIALECTS = ("postgresql", "sqlite")


class DatabaseConfigError(RuntimeError):
    pass


def check_dialect(bind=None) -> str:
    """Fail fast when DATABASE_URL points at a backend without ON CONFLICT support."""
    dialect = (bind or engine).dialect.name
    if dialect not in SUPPORTED_DIALECTS:
        raise DatabaseConfigError(
            f"Unsupported database '{dialect}', expected one of: {', '.join(SUPPORTED_DIALECTS)}"
        )
    return dialect


def get_db():
    """
    FastAPI dependency to provide a DB session to routes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create all tables for the registered models."""
    import src.ambrodeo.models  # noqa: F401
    check_dialect(bind)
    Base.metadata.create_all(bind=bind or engine)


def insert_ignore(db: Session, model, values: dict, index_elements: list) -> bool:
    """
    Insert a row unless one with the same unique key already exists.

    Returns True only when this statement created the row. The outcome comes from
    the store itself (ON CONFLICT DO NOTHING), so two concurrent callers can never
    both observe an insert.
    """
    if check_dialect(db.get_bind()) == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        from sqlalchemy.dialects.sqlite import insert

    stmt = insert(model).values(**values).on_conflict_do_nothing(index_elements=index_elements)
    result = db.execute(stmt)
    return result.rowcount == 1
