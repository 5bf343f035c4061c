import logging
from typing import List

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()


class ConnectionManager:
    """Conexiones WebSocket activas que reciben los avisos de nuevos movimientos."""

    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        # Puede llegar dos veces: desde broadcast y desde el endpoint
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, message: str):
        """Envía el mensaje a todos los clientes; descarta los que ya no responden."""
        # Se itera sobre una copia porque se eliminan conexiones durante el envío
        for connection in list(self.active_connections):
            try:
                await connection.send_text(message)
            except Exception as e:
                logger.warning("Conexión WebSocket descartada: %s", e)
                # Un cliente caído no debe impedir el aviso al resto
                self.disconnect(connection)


manager = ConnectionManager()


@router.websocket("/ws/movimientos")
async def websocket_endpoint(websocket: WebSocket):
    # Registrar la conexión para recibir los avisos de movimientos
    await manager.connect(websocket)

    try:
        # Mantener viva la conexión; el cliente no necesita enviar nada
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)
