"""
Libro de movimientos de stock.

Registrar un movimiento y ajustar `Product.current_stock` es una única
transacción: o se guardan ambos o ninguno. El stock guardado debe coincidir
siempre con la suma de entradas menos la suma de salidas del producto.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from app.models.database import to_utc_naive, utcnow
from app.models.movement import ENTRADA, SALIDA, Movement
from app.models.product import Product
from app.models.user import User

logger = logging.getLogger(__name__)


class MovimientoError(Exception):
    """Error al registrar un movimiento. La transacción se ha deshecho."""


class ProductoNoEncontradoError(MovimientoError):
    pass


class StockInsuficienteError(MovimientoError):
    pass


def delta_de_movimiento(movement_type: str, quantity: int) -> int:
    """Variación que un movimiento aplica sobre el stock del producto."""
    if movement_type == ENTRADA:
        return quantity
    if movement_type == SALIDA:
        return -quantity
    # Inalcanzable con el CHECK de la tabla; no altera el stock
    return 0


def verificar_stock_suficiente(product: Product, movement_type: str, quantity: int):
    """
    Comprobación orientativa para salidas, sobre el stock leído por el llamador.

    No bloquea la fila: dos salidas concurrentes pueden pasarla con la misma
    lectura y dejar el stock en negativo.
    """
    if movement_type == SALIDA and quantity > product.current_stock:
        raise StockInsuficienteError("Stock insuficiente para esta salida")


def registrar_movimiento(
    db: Session,
    actor: User,
    product_id: uuid.UUID,
    movement_type: str,
    quantity: int,
    notes: Optional[str] = None,
    movement_date: Optional[datetime] = None,
) -> Movement:
    """
    Inserta el movimiento y ajusta el stock del producto en la misma transacción.

    El ajuste se hace con un UPDATE relativo (`current_stock = current_stock ± q`)
    para que la lectura-modificación-escritura la resuelva la base de datos.
    No valida que haya stock suficiente (ver `verificar_stock_suficiente`).

    Raises:
        MovimientoError: cantidad no positiva o fallo de la base de datos.
        ProductoNoEncontradoError: el producto no existe.
    """
    if quantity <= 0:
        raise MovimientoError("La cantidad debe ser mayor a 0")

    try:
        product = db.get(Product, product_id)
    except SQLAlchemyError as e:
        raise MovimientoError("Error de conexión con la base de datos") from e
    if not product:
        raise ProductoNoEncontradoError("Producto no encontrado")

    movement = Movement(
        product_id=product_id,
        user_id=actor.id,
        movement_type=movement_type,
        quantity=quantity,
        notes=notes or None,
        movement_date=to_utc_naive(movement_date) if movement_date else utcnow(),
    )

    try:
        db.add(movement)
        db.flush()

        result = db.exec(
            update(Product)
            .where(Product.id == product_id)
            .values(
                current_stock=Product.current_stock
                + delta_de_movimiento(movement_type, quantity),
                updated_at=utcnow(),
            )
        )
        if result.rowcount == 0:
            raise ProductoNoEncontradoError("Producto no encontrado")

        db.commit()
    except MovimientoError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Movimiento revertido para el producto %s: %s", product_id, e)
        msg_error = (str(e.orig) if hasattr(e, "orig") else str(e)).split("\n")[0]
        raise MovimientoError(f"Error al registrar el movimiento: {msg_error}") from e

    db.refresh(movement)
    logger.info(
        "Movimiento %s registrado: %s de %s unidades del producto %s por %s",
        movement.id,
        movement_type,
        quantity,
        product_id,
        actor.id,
    )
    return movement


def calcular_stock_libro(db: Session, product_id: uuid.UUID) -> int:
    """Recalcula el stock desde cero: suma de entradas menos suma de salidas."""
    totales = db.exec(
        select(Movement.movement_type, func.sum(Movement.quantity))
        .where(Movement.product_id == product_id)
        .group_by(Movement.movement_type)
    ).all()

    por_tipo = {tipo: total or 0 for tipo, total in totales}
    return por_tipo.get(ENTRADA, 0) - por_tipo.get(SALIDA, 0)


def verificar_stock(db: Session, product: Product) -> dict:
    """Compara el stock guardado con el recalculado desde los movimientos."""
    stock_calculado = calcular_stock_libro(db, product.id)
    return {
        "product_id": product.id,
        "current_stock": product.current_stock,
        "stock_calculado": stock_calculado,
        "consistente": product.current_stock == stock_calculado,
    }
