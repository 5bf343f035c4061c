"""
Autenticación de usuarios:
- Registro (/auth/registro) → crea la identidad y su perfil en una sola transacción.
- Inicio de sesión (/auth/login) → verifica credenciales y devuelve un token JWT.
- Sesión (/auth/sesion) → datos del usuario autenticado y su perfil.
- Refresco (/auth/refresh) y cierre de sesión (/auth/logout) con cookie HttpOnly.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.models.database import get_db
from app.models.profile import DEFAULT_FULL_NAME, Profile
from app.models.user import User
from app.schemas.user import SessionResponse, SignUpRequest, TokenResponse
from app.utils.authentication import (
    ACCESS,
    COOKIE_SECURE,
    REFRESH,
    REFRESH_COOKIE_NAME,
    REFRESH_COOKIE_PATH,
    REFRESH_TOKEN_DURATION,
    create_token,
    decode_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Autenticación"])

oauth2 = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _session_response(user: User, profile: Profile) -> SessionResponse:
    return SessionResponse(
        id=user.id,
        email=user.email,
        full_name=profile.full_name if profile else DEFAULT_FULL_NAME,
        role=profile.role if profile else "user",
    )


def _parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido"
        )


def _load_user(db: Session, user_id) -> User:
    try:
        return db.get(User, user_id)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )


### REGISTRO ###
@router.post(
    "/registro", response_model=SessionResponse, status_code=status.HTTP_201_CREATED
)
def register(user_data: SignUpRequest, db: Session = Depends(get_db)):
    """Registra un usuario y crea su perfil (rol `user`)."""
    # El correo se guarda en minúsculas para que el login no distinga mayúsculas
    email = user_data.email.lower()
    try:
        existing_user = db.exec(select(User).where(User.email == email)).first()
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    # Comprobar duplicado antes de calcular el hash
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Este correo ya está registrado",
        )

    # Usuario y perfil comparten id
    new_user = User(email=email, passwd=hash_password(user_data.password))
    profile = Profile(id=new_user.id, full_name=user_data.full_name)

    try:
        db.add(new_user)
        db.flush()  # el perfil referencia al usuario
        db.add(profile)
        db.commit()
    except IntegrityError:
        # Registro concurrente con el mismo correo
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Este correo ya está registrado",
        )
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor al registrar el usuario.",
        )

    db.refresh(new_user)
    db.refresh(profile)
    logger.info("Usuario registrado: %s", new_user.id)
    return _session_response(new_user, profile)


### LOGIN ###
@router.post("/login", response_model=TokenResponse)
def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """Autentica al usuario (username = correo) y genera un token JWT."""
    try:
        user = db.exec(
            select(User).where(User.email == form_data.username.lower())
        ).first()
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    # Mismo mensaje para correo inexistente y contraseña errónea
    if not user or not verify_password(form_data.password, user.passwd):
        logger.info("Inicio de sesión fallido para %s", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Correo o contraseña incorrectos",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Refresh token en cookie HttpOnly: el navegador solo la envía a /auth/refresh
    # SameSite=None exige Secure; en local (sin HTTPS) se usa Lax
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=create_token(user.id, REFRESH),
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="none" if COOKIE_SECURE else "lax",
        path=REFRESH_COOKIE_PATH,
        max_age=REFRESH_TOKEN_DURATION * 24 * 60 * 60,
    )

    # El access token viaja en el cuerpo; el cliente lo envía como Bearer
    return {"access_token": create_token(user.id, ACCESS), "token_type": "bearer"}


### USUARIO AUTENTICADO ###
def get_current_user(token: str = Depends(oauth2), db: Session = Depends(get_db)):
    """Resuelve el usuario del token JWT al inicio de cada operación protegida."""
    # Un refresh token no sirve como access token: decode_token comprueba el tipo
    payload = decode_token(token, ACCESS)

    user = _load_user(db, _parse_uuid(payload["sub"]))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario no encontrado o eliminado",
        )
    return user


@router.get("/sesion", response_model=SessionResponse)
def get_session(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Devuelve la sesión actual: identidad y perfil."""
    try:
        profile = db.get(Profile, user.id)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )
    return _session_response(user, profile)


### REFRESCAR TOKEN ###
@router.post("/refresh", response_model=TokenResponse)
def refresh_token(request: Request, db: Session = Depends(get_db)):
    """Genera un nuevo access token a partir del refresh token de la cookie."""
    # El refresh token solo viaja en la cookie, nunca en la cabecera
    token = request.cookies.get(REFRESH_COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token no encontrado en cookies",
        )

    # Validar firma, expiración y tipo "refresh"
    payload = decode_token(token, REFRESH)
    user = _load_user(db, _parse_uuid(payload["sub"]))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario no encontrado o eliminado",
        )

    return {"access_token": create_token(user.id, ACCESS), "token_type": "bearer"}


### LOGOUT ###
@router.post("/logout")
def logout(response: Response):
    """Elimina la cookie de refresh_token al cerrar sesión."""
    # Mismos path y atributos que al crear la cookie
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path=REFRESH_COOKIE_PATH,
        secure=COOKIE_SECURE,
        samesite="none" if COOKIE_SECURE else "lax",
    )
    return {"message": "Sesión cerrada correctamente"}
