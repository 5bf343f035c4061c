from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from app.utils.getenv import get_bool_env, get_required_env

DATABASE_URL = get_required_env("DATABASE_URL")

# Heroku/Render entregan postgres://, SQLAlchemy exige postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

engine_kwargs = {"echo": get_bool_env("DB_ECHO")}
if DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    # Una base en memoria solo existe mientras viva su conexión
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:") or ":memory:" in DATABASE_URL:
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(DATABASE_URL, **engine_kwargs)


if engine.dialect.name == "sqlite":

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        """SQLite no aplica ON DELETE CASCADE salvo que se active por conexión."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def utcnow() -> datetime:
    """Hora UTC sin zona horaria: todas las columnas de fecha guardan UTC naive."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def get_db():
    """Obtiene una sesión de la base de datos."""
    with Session(engine) as session:
        yield session


def create_db_and_tables():
    # Registrar todas las tablas en el metadata antes de crearlas
    from app.models import movement, product, profile, user  # noqa: F401

    SQLModel.metadata.create_all(engine)
