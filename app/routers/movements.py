import logging
import uuid
from datetime import date, datetime, time
from typing import List, Optional

import anyio
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from app.dependencies import verificar_actor_movimiento
from app.models.database import get_db
from app.models.movement import TIPOS_MOVIMIENTO, Movement
from app.models.product import Product
from app.models.profile import DEFAULT_FULL_NAME, Profile
from app.models.user import User
from app.routers.auth import get_current_user
from app.routers.websocket import manager
from app.schemas.movement import (
    MovementCreate,
    MovementResponse,
    MovimientoResumen,
    PaginatedMovementsResponse,
    TipoMovimiento,
)
from app.schemas.product import LowStockAlert
from app.services.inventory import alertas_stock_bajo
from app.services.stock_ledger import (
    MovimientoError,
    ProductoNoEncontradoError,
    StockInsuficienteError,
    registrar_movimiento,
    verificar_stock_suficiente,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/movimientos", tags=["Movimientos"])


def _history_statement():
    """Movimientos con el nombre del producto y del responsable."""
    return (
        select(Movement, Product.name, Profile.full_name)
        .join(Product, Product.id == Movement.product_id)
        .join(Profile, Profile.id == Movement.user_id, isouter=True)
    )


def _movement_response(movement: Movement, product_name: str, user_name) -> MovementResponse:
    return MovementResponse(
        id=movement.id,
        product_id=movement.product_id,
        product_name=product_name,
        user_id=movement.user_id,
        user_name=user_name or DEFAULT_FULL_NAME,
        movement_type=movement.movement_type,
        quantity=movement.quantity,
        movement_date=movement.movement_date,
        notes=movement.notes,
    )


@router.get("/", response_model=PaginatedMovementsResponse)
def get_movements(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    limit: int = Query(20, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    product_id: Optional[uuid.UUID] = Query(None),
    movement_type: Optional[TipoMovimiento] = Query(None),
    fecha_desde: Optional[date] = Query(None),
    fecha_hasta: Optional[date] = Query(None),
):
    """Historial de movimientos, del más reciente al más antiguo.
    `fecha_hasta` incluye el día completo."""
    try:
        statement = _history_statement()

        if product_id:
            statement = statement.where(Movement.product_id == product_id)

        if movement_type:
            statement = statement.where(Movement.movement_type == movement_type)

        if fecha_desde:
            statement = statement.where(
                Movement.movement_date >= datetime.combine(fecha_desde, time.min)
            )

        if fecha_hasta:
            statement = statement.where(
                Movement.movement_date <= datetime.combine(fecha_hasta, time.max)
            )

        results = db.exec(
            statement.order_by(Movement.movement_date.desc()).limit(limit).offset(offset)
        ).all()

        total_records = (
            db.exec(select(func.count()).select_from(statement.subquery())).first() or 0
        )
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    return {
        "data": [
            _movement_response(movement, product_name, user_name)
            for movement, product_name, user_name in results
        ],
        "total": total_records,
        "limit": limit,
        "offset": offset,
    }


@router.get("/stock-bajo", response_model=List[LowStockAlert])
def get_low_stock_panel(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Panel de stock bajo de la vista de stock. Se recalcula en cada consulta."""
    try:
        products = db.exec(
            select(Product)
            .where(Product.current_stock <= Product.minimum_stock)
            .order_by(Product.name)
        ).all()
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )
    return alertas_stock_bajo(products)


@router.get("/resumen/tipo", response_model=List[MovimientoResumen])
def contar_movimientos_por_tipo(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        resultados = db.exec(
            select(Movement.movement_type, func.count()).group_by(
                Movement.movement_type
            )
        ).all()
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    conteo = {tipo: 0 for tipo in TIPOS_MOVIMIENTO}
    for tipo, cantidad in resultados:
        if tipo in conteo:
            conteo[tipo] = cantidad

    return [{"tipo": tipo, "cantidad": cantidad} for tipo, cantidad in conteo.items()]


@router.get("/{id}", response_model=MovementResponse)
def get_movement(
    id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        result = db.exec(_history_statement().where(Movement.id == id)).first()
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    if not result:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Movimiento no encontrado"
        )

    movement, product_name, user_name = result
    return _movement_response(movement, product_name, user_name)


@router.post("/", response_model=MovementResponse, status_code=status.HTTP_201_CREATED)
def create_movement(
    movement_data: MovementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Registra una entrada o salida de stock.

    - El autor siempre es el usuario autenticado.
    - Para salidas se comprueba el stock leído en esta petición. La comprobación
      es orientativa: no bloquea el producto frente a salidas concurrentes.
    - El movimiento y el ajuste de stock se guardan juntos o no se guardan.
    """
    actor = verificar_actor_movimiento(movement_data.user_id, current_user)

    try:
        product = db.get(Product, movement_data.product_id)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Producto no encontrado"
        )
    product_name = product.name

    try:
        verificar_stock_suficiente(
            product, movement_data.movement_type, movement_data.quantity
        )
        movement = registrar_movimiento(
            db,
            actor,
            product.id,
            movement_data.movement_type,
            movement_data.quantity,
            notes=movement_data.notes,
        )
    except StockInsuficienteError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ProductoNoEncontradoError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except MovimientoError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        profile = db.get(Profile, actor.id)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al obtener el perfil asociado al movimiento",
        )

    # Avisar a los clientes WebSocket conectados; un fallo aquí no anula el movimiento
    try:
        mensaje = (
            f"Nuevo movimiento registrado: {movement.movement_type} de "
            f"{movement.quantity} unidades de {product_name}"
        )
        anyio.from_thread.run(manager.broadcast, mensaje)
    except Exception as e:
        logger.warning("Error al emitir WebSocket: %s", e)

    return _movement_response(
        movement, product_name, profile.full_name if profile else None
    )
