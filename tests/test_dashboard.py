from decimal import Decimal

import anyio

from app.routers.websocket import ConnectionManager


def test_statistics_recomputed_on_each_request(client, auth_headers, create_product):
    vacio = client.get("/dashboard/estadisticas", headers=auth_headers).json()
    assert vacio["total_productos"] == 0
    assert Decimal(vacio["valor_total"]) == Decimal("0")
    assert vacio["alerta"] is None

    galaxy = create_product(name="Galaxy S24", current_stock=15, unit_price="100.00")
    create_product(name="Cabo HDMI", category="outros", current_stock=3, unit_price=None)

    stats = client.get("/dashboard/estadisticas", headers=auth_headers).json()
    assert stats["total_productos"] == 2
    assert stats["productos_stock_bajo"] == 1
    assert Decimal(stats["valor_total"]) == Decimal("1500.00")
    assert stats["alerta"] == "Atención: 1 producto(s) con stock bajo"

    client.post(
        "/movimientos/",
        json={"product_id": galaxy["id"], "movement_type": "saida", "quantity": 8},
        headers=auth_headers,
    )
    stats = client.get("/dashboard/estadisticas", headers=auth_headers).json()
    assert stats["productos_stock_bajo"] == 2
    assert Decimal(stats["valor_total"]) == Decimal("700.00")


def test_health(client):
    assert client.get("/").json() == {"message": "API funcionando correctamente"}


class _FakeWebSocket:
    def __init__(self, falla=False):
        self.falla = falla
        self.mensajes = []

    async def accept(self):
        pass

    async def send_text(self, message):
        if self.falla:
            raise RuntimeError("conexión cerrada")
        self.mensajes.append(message)


def test_broadcast_drops_dead_connections():
    manager = ConnectionManager()
    viva, muerta = _FakeWebSocket(), _FakeWebSocket(falla=True)

    async def escenario():
        await manager.connect(viva)
        await manager.connect(muerta)
        await manager.broadcast("Nuevo movimiento registrado")

    anyio.run(escenario)

    assert viva.mensajes == ["Nuevo movimiento registrado"]
    assert manager.active_connections == [viva]
