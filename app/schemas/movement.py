import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

TipoMovimiento = Literal["entrada", "saida"]


class MovementCreate(BaseModel):
    """Esquema para registrar un movimiento.
    - `user_id` es opcional: si se envía debe coincidir con el usuario autenticado."""

    product_id: uuid.UUID = Field(..., description="Producto afectado")
    movement_type: TipoMovimiento = Field(
        ..., description="Debe ser 'entrada' o 'saida'"
    )
    quantity: int = Field(..., gt=0, description="Cantidad (debe ser mayor a 0)")
    notes: Optional[str] = Field(None, max_length=500)
    user_id: Optional[uuid.UUID] = Field(
        None, description="Usuario que registra el movimiento"
    )


class MovementResponse(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    user_id: uuid.UUID
    user_name: str
    movement_type: TipoMovimiento
    quantity: int
    movement_date: datetime
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class PaginatedMovementsResponse(BaseModel):
    data: List[MovementResponse]
    total: int
    limit: int
    offset: int


class MovimientoResumen(BaseModel):
    tipo: str
    cantidad: int
