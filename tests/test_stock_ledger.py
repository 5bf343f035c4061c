import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, SQLModel, create_engine, select

from app.models.movement import ENTRADA, SALIDA, Movement
from app.models.product import Product
from app.models.user import User
from app.services import stock_ledger
from app.services.inventory import es_stock_bajo
from app.services.stock_ledger import (
    MovimientoError,
    ProductoNoEncontradoError,
    StockInsuficienteError,
    calcular_stock_libro,
    delta_de_movimiento,
    registrar_movimiento,
    verificar_stock,
    verificar_stock_suficiente,
)


def _movements(db_session, product_id):
    return db_session.exec(
        select(Movement).where(Movement.product_id == product_id)
    ).all()


def test_delta_de_movimiento():
    assert delta_de_movimiento(ENTRADA, 5) == 5
    assert delta_de_movimiento(SALIDA, 5) == -5
    assert delta_de_movimiento("ajuste", 5) == 0


def test_entrada_then_salida_scenario(db_session, actor, product):
    registrar_movimiento(db_session, actor, product.id, ENTRADA, 15)
    db_session.refresh(product)
    assert product.current_stock == 15
    assert not es_stock_bajo(product)

    registrar_movimiento(db_session, actor, product.id, SALIDA, 8)
    db_session.refresh(product)
    assert product.current_stock == 7
    assert es_stock_bajo(product)


def test_replay_matches_sum_of_movements(db_session, actor, product):
    secuencia = [
        (ENTRADA, 20),
        (SALIDA, 3),
        (ENTRADA, 7),
        (SALIDA, 12),
        (SALIDA, 1),
        (ENTRADA, 4),
    ]
    for movement_type, quantity in secuencia:
        registrar_movimiento(db_session, actor, product.id, movement_type, quantity)

    esperado = sum(q for t, q in secuencia if t == ENTRADA) - sum(
        q for t, q in secuencia if t == SALIDA
    )
    db_session.refresh(product)
    assert product.current_stock == esperado == 15
    assert calcular_stock_libro(db_session, product.id) == esperado
    assert verificar_stock(db_session, product)["consistente"] is True


def test_movement_is_persisted_with_actor_and_notes(db_session, actor, product):
    movement = registrar_movimiento(
        db_session, actor, product.id, ENTRADA, 3, notes="Compra proveedor"
    )

    assert movement.user_id == actor.id
    assert movement.notes == "Compra proveedor"
    assert movement.movement_date is not None
    assert [m.id for m in _movements(db_session, product.id)] == [movement.id]


def test_salida_beyond_stock_goes_negative(db_session, actor, product):
    registrar_movimiento(db_session, actor, product.id, SALIDA, 4)

    db_session.refresh(product)
    assert product.current_stock == -4


def test_updates_product_timestamp(db_session, actor, product):
    antes = product.updated_at
    registrar_movimiento(db_session, actor, product.id, ENTRADA, 1)

    db_session.refresh(product)
    assert product.updated_at > antes


@pytest.mark.parametrize("quantity", [0, -3])
def test_rejects_non_positive_quantity(db_session, actor, product, quantity):
    with pytest.raises(MovimientoError):
        registrar_movimiento(db_session, actor, product.id, ENTRADA, quantity)

    assert _movements(db_session, product.id) == []


def test_unknown_product(db_session, actor):
    with pytest.raises(ProductoNoEncontradoError):
        registrar_movimiento(db_session, actor, uuid.uuid4(), ENTRADA, 1)

    assert db_session.exec(select(Movement)).all() == []


def test_failed_stock_update_rolls_back_movement(
    db_session, actor, product, monkeypatch
):
    registrar_movimiento(db_session, actor, product.id, ENTRADA, 10)

    def falla(movement_type, quantity):
        raise OperationalError("UPDATE products", {}, Exception("disk I/O error"))

    monkeypatch.setattr(stock_ledger, "delta_de_movimiento", falla)

    with pytest.raises(MovimientoError):
        registrar_movimiento(db_session, actor, product.id, SALIDA, 4)

    db_session.expire_all()
    assert db_session.get(Product, product.id).current_stock == 10
    assert len(_movements(db_session, product.id)) == 1


def test_store_rejects_invalid_movement_rows(db_session, actor, product):
    db_session.add(
        Movement(
            product_id=product.id,
            user_id=actor.id,
            movement_type=ENTRADA,
            quantity=0,
        )
    )
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

    db_session.add(
        Movement(
            product_id=product.id,
            user_id=actor.id,
            movement_type="devolucion",
            quantity=1,
        )
    )
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_advisory_check(product):
    product.current_stock = 5

    verificar_stock_suficiente(product, SALIDA, 5)
    verificar_stock_suficiente(product, ENTRADA, 500)
    with pytest.raises(StockInsuficienteError):
        verificar_stock_suficiente(product, SALIDA, 6)


def test_concurrent_salidas_can_drive_stock_negative(tmp_path):
    """Dos salidas con la misma lectura pasan la comprobación orientativa."""
    engine = create_engine(f"sqlite:///{tmp_path / 'concurrencia.db'}")
    SQLModel.metadata.create_all(engine)

    with Session(engine) as setup:
        user = User(email="turno@example.com", passwd="x")
        product = Product(name="Smart TV 55", category="smart_tv")
        setup.add(user)
        setup.add(product)
        setup.commit()
        registrar_movimiento(setup, user, product.id, ENTRADA, 10)
        user_id, product_id = user.id, product.id

    with Session(engine) as sesion_a, Session(engine) as sesion_b:
        producto_a = sesion_a.get(Product, product_id)
        producto_b = sesion_b.get(Product, product_id)
        assert producto_a.current_stock == producto_b.current_stock == 10

        verificar_stock_suficiente(producto_a, SALIDA, 6)
        verificar_stock_suficiente(producto_b, SALIDA, 6)

        registrar_movimiento(sesion_a, sesion_a.get(User, user_id), product_id, SALIDA, 6)
        registrar_movimiento(sesion_b, sesion_b.get(User, user_id), product_id, SALIDA, 6)

    with Session(engine) as check:
        product = check.get(Product, product_id)
        assert product.current_stock == -2
        assert calcular_stock_libro(check, product_id) == -2

    engine.dispose()


def test_movement_dates_are_stored_as_naive_utc(db_session, actor, product):
    sao_paulo = timezone(timedelta(hours=-3))
    fecha = datetime(2024, 3, 10, 21, 30, tzinfo=sao_paulo)

    movement = registrar_movimiento(
        db_session, actor, product.id, ENTRADA, 2, movement_date=fecha
    )
    db_session.refresh(movement)

    assert movement.movement_date == datetime(2024, 3, 11, 0, 30)
    assert movement.created_at.tzinfo is None
    db_session.refresh(product)
    assert product.updated_at.tzinfo is None
