# Autenticación de la API: tokens JWT firmados y hash de contraseñas con bcrypt.
# https://fastapi.tiangolo.com/tutorial/security/oauth2-jwt/
from datetime import datetime, timedelta, timezone
import os

from fastapi import HTTPException, status
from passlib.context import CryptContext
import jwt

from app.utils.getenv import get_bool_env, get_required_env

# Clave secreta para firmar JWT
SECRET_KEY = get_required_env("SECRET_KEY")

ALGORITHM = "HS256"

ACCESS_TOKEN_DURATION = int(os.getenv("ACCESS_TOKEN_DURATION", 30))  # minutos
REFRESH_TOKEN_DURATION = int(os.getenv("REFRESH_TOKEN_DURATION", 7))  # días

# Cookie del refresh token. En desarrollo local sin HTTPS: COOKIE_SECURE=false
REFRESH_COOKIE_NAME = "refresh_token"
REFRESH_COOKIE_PATH = "/auth/refresh"
COOKIE_SECURE = get_bool_env("COOKIE_SECURE", True)

ACCESS = "access"
REFRESH = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Genera un hash seguro (bcrypt, con salt) para la contraseña."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_token(user_id, kind: str = ACCESS) -> str:
    """Crea un JWT para el usuario con su tipo (`access`/`refresh`) y expiración."""
    if kind == REFRESH:
        expires_delta = timedelta(days=REFRESH_TOKEN_DURATION)
    else:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_DURATION)

    to_encode = {
        "sub": str(user_id),
        "type": kind,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str, kind: str = ACCESS) -> dict:
    """Decodifica un JWT y comprueba su tipo. Lanza 401 si es inválido o expiró."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expirado"
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido"
        )

    if payload.get("type") != kind or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido"
        )
    return payload
