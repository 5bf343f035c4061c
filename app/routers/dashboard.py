from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.models.database import get_db
from app.models.product import Product
from app.models.user import User
from app.routers.auth import get_current_user
from app.schemas.dashboard import DashboardStats
from app.services.inventory import calcular_estadisticas

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/estadisticas", response_model=DashboardStats)
def get_statistics(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Total de productos, productos con stock bajo y valor total del inventario.
    Se recalcula sobre el catálogo completo en cada consulta."""
    try:
        products = db.exec(select(Product)).all()
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    return calcular_estadisticas(products)
