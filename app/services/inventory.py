import logging
from decimal import Decimal
from typing import Iterable, List

from app.models.product import Product

logger = logging.getLogger(__name__)

CENTAVOS = Decimal("0.01")


def es_stock_bajo(product: Product) -> bool:
    """Stock bajo si el actual es menor o IGUAL al mínimo."""
    return product.current_stock <= product.minimum_stock


def alertas_stock_bajo(products: Iterable[Product]) -> List[dict]:
    """Una alerta por cada producto con stock bajo. Se recalcula en cada consulta."""
    alertas = []
    for product in products:
        if not es_stock_bajo(product):
            continue
        mensaje = (
            f"Alerta: {product.name} tiene stock bajo "
            f"({product.current_stock} unidades)"
        )
        logger.warning(mensaje)
        alertas.append(
            {
                "product_id": product.id,
                "name": product.name,
                "current_stock": product.current_stock,
                "minimum_stock": product.minimum_stock,
                "mensaje": mensaje,
            }
        )
    return alertas


def valor_inventario(products: Iterable[Product]) -> Decimal:
    """Suma de stock x precio unitario. Sin precio cuenta como 0."""
    total = sum(
        (
            Decimal(p.current_stock) * Decimal(str(p.unit_price or 0))
            for p in products
        ),
        Decimal(0),
    )
    return total.quantize(CENTAVOS)


def calcular_estadisticas(products: Iterable[Product]) -> dict:
    """Estadísticas del dashboard sobre el catálogo completo."""
    products = list(products)
    stock_bajo = sum(1 for p in products if es_stock_bajo(p))

    return {
        "total_productos": len(products),
        "productos_stock_bajo": stock_bajo,
        "valor_total": valor_inventario(products),
        "alerta": (
            f"Atención: {stock_bajo} producto(s) con stock bajo"
            if stock_bajo
            else None
        ),
    }
