from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_productos: int
    productos_stock_bajo: int
    valor_total: Decimal
    alerta: Optional[str] = None
