import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware  # CORS

from app.models.database import create_db_and_tables
from app.routers import auth, dashboard, movements, products, profiles
from app.routers.websocket import router as websocket_router
from app.utils.getenv import get_list_env
from app.utils.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


# Crear las tablas al iniciar la aplicación
@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("Base de datos lista")
    yield


app = FastAPI(title="Inventario de equipos electrónicos", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_list_env("CORS_ORIGINS", ["http://localhost:5173"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Incluir routers
app.include_router(auth.router)
app.include_router(profiles.router)
app.include_router(products.router)
app.include_router(movements.router)
app.include_router(dashboard.router)
# Websocket
app.include_router(websocket_router)


@app.get("/")
def read_root():
    return {"message": "API funcionando correctamente"}
