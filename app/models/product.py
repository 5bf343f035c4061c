import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint
from sqlmodel import SQLModel, Field

from app.models.database import utcnow

# Valores persistidos de la categoría ("outros" = otros)
CATEGORIAS = ("smartphone", "notebook", "smart_tv", "outros")


class Product(SQLModel, table=True):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint(
            "category IN ('smartphone', 'notebook', 'smart_tv', 'outros')",
            name="ck_products_category",
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(nullable=False, index=True)
    description: Optional[str] = Field(default=None)
    category: str = Field(nullable=False)

    # Atributos técnicos opcionales, texto libre
    voltage: Optional[str] = Field(default=None)
    resolution: Optional[str] = Field(default=None)
    dimensions: Optional[str] = Field(default=None)
    storage: Optional[str] = Field(default=None)
    connectivity: Optional[str] = Field(default=None)

    minimum_stock: int = Field(default=10, nullable=False)
    # Solo lo modifica el servicio de movimientos (app.services.stock_ledger).
    # Sin restricción de no negatividad: una salida mayor al stock lo deja negativo.
    current_stock: int = Field(default=0, nullable=False)
    unit_price: Optional[Decimal] = Field(
        default=None, max_digits=10, decimal_places=2
    )

    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_column_kwargs={"onupdate": utcnow}
    )
