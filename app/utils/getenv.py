from dotenv import (
    load_dotenv,
)  # Para cargar variables de entorno desde un archivo .env.
import os  # Para acceder a variables de entorno.

load_dotenv()


def get_required_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise Exception(f"Env var {name} is required but not found.")
    return value


def get_bool_env(name: str, default: bool = False) -> bool:
    """Interpreta 1/true/yes/on (sin distinguir mayúsculas) como True."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def get_list_env(name: str, default: list[str]) -> list[str]:
    """Lista separada por comas, p. ej. CORS_ORIGINS=http://a,http://b"""
    value = os.getenv(name)
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]
