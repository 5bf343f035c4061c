import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Categoria = Literal["smartphone", "notebook", "smart_tv", "outros"]


class ProductBase(BaseModel):
    """
    Esquema base para productos.
    - `category`: solo valores del catálogo fijo.
    - Los atributos técnicos son texto libre y opcionales.
    """

    name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: Categoria = Field(default="outros")
    voltage: Optional[str] = Field(None, max_length=50)
    resolution: Optional[str] = Field(None, max_length=50)
    dimensions: Optional[str] = Field(None, max_length=100)
    storage: Optional[str] = Field(None, max_length=50)
    connectivity: Optional[str] = Field(None, max_length=100)
    minimum_stock: int = Field(default=10, ge=0)
    unit_price: Optional[Decimal] = Field(
        None, ge=0, max_digits=10, decimal_places=2
    )

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class ProductCreate(ProductBase):
    """
    Esquema para la creación de un producto.
    - `current_stock` es el stock inicial: se registra como una entrada
      a nombre de quien crea el producto.
    """

    current_stock: int = Field(default=0, ge=0)


class ProductUpdate(BaseModel):
    """
    Esquema para la actualización de un producto.
    - `current_stock` no se incluye: solo cambia mediante movimientos.
    """

    name: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[Categoria] = None
    voltage: Optional[str] = Field(None, max_length=50)
    resolution: Optional[str] = Field(None, max_length=50)
    dimensions: Optional[str] = Field(None, max_length=100)
    storage: Optional[str] = Field(None, max_length=50)
    connectivity: Optional[str] = Field(None, max_length=100)
    minimum_stock: Optional[int] = Field(None, ge=0)
    unit_price: Optional[Decimal] = Field(
        None, ge=0, max_digits=10, decimal_places=2
    )

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class ProductResponse(ProductBase):
    """
    Esquema para respuestas de la API.
    - `stock_bajo` no se guarda: se recalcula en cada consulta.
    """

    id: uuid.UUID
    current_stock: int
    stock_bajo: bool = False
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LowStockAlert(BaseModel):
    product_id: uuid.UUID
    name: str
    current_stock: int
    minimum_stock: int
    mensaje: str


class PaginatedProductResponse(BaseModel):
    data: List[ProductResponse]
    total: int
    limit: int
    offset: int
    alertas: List[LowStockAlert] = []


class StockVerification(BaseModel):
    """Stock guardado frente al recalculado desde los movimientos."""

    product_id: uuid.UUID
    current_stock: int
    stock_calculado: int
    consistente: bool
