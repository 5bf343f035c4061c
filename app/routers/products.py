import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, func, select

from app.models.database import get_db
from app.models.movement import ENTRADA, Movement
from app.models.product import Product
from app.models.user import User
from app.routers.auth import get_current_user
from app.schemas.product import (
    PaginatedProductResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    StockVerification,
)
from app.services.inventory import alertas_stock_bajo, es_stock_bajo
from app.services.stock_ledger import (
    MovimientoError,
    registrar_movimiento,
    verificar_stock,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/productos", tags=["Productos"])

# Campos obligatorios que un PUT no puede vaciar
REQUIRED_FIELDS = {"name", "category", "minimum_stock"}


def _product_response(product: Product) -> dict:
    return {**product.model_dump(), "stock_bajo": es_stock_bajo(product)}


def _get_product_or_404(db: Session, id: uuid.UUID) -> Product:
    try:
        product = db.get(Product, id)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Producto no encontrado"
        )
    return product


@router.get("/", response_model=PaginatedProductResponse)
def get_products(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    categoria: Optional[str] = Query(None),
):
    """Lista los productos ordenados por nombre.
    - `search` filtra por nombre o categoría (subcadena, sin distinguir mayúsculas).
    - `alertas` incluye TODOS los productos con stock bajo, no solo los de la página.
    """
    try:
        statement = select(Product)

        if search:
            search_like = f"%{search.lower()}%"
            statement = statement.where(
                func.lower(Product.name).like(search_like)
                | func.lower(Product.category).like(search_like)
            )

        if categoria:
            statement = statement.where(Product.category == categoria)

        products = db.exec(
            statement.order_by(Product.name).limit(limit).offset(offset)
        ).all()

        # Conteo total SIN paginar
        total_records = (
            db.exec(select(func.count()).select_from(statement.subquery())).first() or 0
        )

        low_stock = db.exec(
            select(Product)
            .where(Product.current_stock <= Product.minimum_stock)
            .order_by(Product.name)
        ).all()

    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    return {
        "data": [_product_response(product) for product in products],
        "total": total_records,
        "limit": limit,
        "offset": offset,
        "alertas": alertas_stock_bajo(low_stock),
    }


@router.get("/{id}", response_model=ProductResponse)
def get_product(
    id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _product_response(_get_product_or_404(db, id))


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Crea un producto.
    Si trae stock inicial, se registra como una entrada del usuario en la misma
    transacción, de modo que el stock siempre cuadra con los movimientos."""
    initial_stock = product_data.current_stock
    new_product = Product(**product_data.model_dump(exclude={"current_stock"}))

    try:
        db.add(new_product)
        if initial_stock > 0:
            db.flush()
            registrar_movimiento(
                db,
                current_user,
                new_product.id,
                ENTRADA,
                initial_stock,
                notes="Stock inicial",
            )
        else:
            db.commit()
    except MovimientoError as e:
        # registrar_movimiento ya hizo rollback: el producto tampoco se guarda
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Error de integridad en la base de datos. Verifica los datos enviados.",
        )
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al guardar el producto.",
        )

    db.refresh(new_product)
    logger.info("Producto %s creado por %s", new_product.id, current_user.id)
    return _product_response(new_product)


@router.put("/{id}", response_model=ProductResponse)
def update_product(
    id: uuid.UUID,
    product_update: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Actualiza los datos de un producto. El stock solo cambia con movimientos."""
    product = _get_product_or_404(db, id)

    # Aplicar solo los campos enviados
    for field, value in product_update.model_dump(exclude_unset=True).items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(product, field, value)

    try:
        db.add(product)
        db.commit()  # updated_at se refresca con onupdate
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Error de integridad en la base de datos. Verifica los datos enviados.",
        )
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al actualizar el producto.",
        )

    db.refresh(product)
    return _product_response(product)


@router.delete("/{id}", response_model=ProductResponse)
def delete_product(
    id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Elimina un producto junto con todos sus movimientos."""
    product = _get_product_or_404(db, id)
    deleted = _product_response(product)

    try:
        movements = db.exec(select(Movement).where(Movement.product_id == id)).all()
        for movement in movements:
            db.delete(movement)
        db.flush()  # los movimientos antes que el producto al que referencian
        db.delete(product)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al eliminar el producto",
        )

    logger.info(
        "Producto %s eliminado con %s movimientos por %s",
        id,
        len(movements),
        current_user.id,
    )
    return deleted


@router.get("/{id}/verificacion", response_model=StockVerification)
def verify_product_stock(
    id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Compara el stock guardado con la suma de entradas menos salidas."""
    product = _get_product_or_404(db, id)
    try:
        return verificar_stock(db, product)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )
