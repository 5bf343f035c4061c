import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field

from app.models.database import utcnow


class User(SQLModel, table=True):
    """Identidad de autenticación. Los datos visibles viven en `Profile`."""

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: str = Field(unique=True, nullable=False, index=True)
    passwd: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
