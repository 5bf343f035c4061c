import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint
from sqlmodel import SQLModel, Field

from app.models.database import utcnow

ENTRADA = "entrada"
SALIDA = "saida"
TIPOS_MOVIMIENTO = (ENTRADA, SALIDA)


class Movement(SQLModel, table=True):
    """Movimiento de stock. Inmutable: solo se inserta, y se borra en cascada con su producto."""

    __tablename__ = "stock_movements"
    __table_args__ = (
        CheckConstraint(
            "movement_type IN ('entrada', 'saida')", name="ck_movements_type"
        ),
        CheckConstraint("quantity > 0", name="ck_movements_quantity"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    product_id: uuid.UUID = Field(
        foreign_key="products.id", nullable=False, index=True, ondelete="CASCADE"
    )
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    movement_type: str = Field(nullable=False)
    quantity: int = Field(nullable=False)
    movement_date: datetime = Field(default_factory=utcnow, nullable=False)
    notes: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
