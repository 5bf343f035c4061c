import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field

from app.models.database import utcnow

DEFAULT_FULL_NAME = "Usuario"


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    # Comparte id con la identidad de autenticación (uno a uno)
    id: uuid.UUID = Field(foreign_key="users.id", primary_key=True, ondelete="CASCADE")
    full_name: str = Field(nullable=False)
    role: str = Field(default="user", nullable=False)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_column_kwargs={"onupdate": utcnow}
    )
