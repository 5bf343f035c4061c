"""Comprobaciones de autorización delante de cada operación que escribe."""

import uuid
from typing import Optional

from fastapi import HTTPException, status

from app.models.user import User


def verificar_actor_movimiento(user_id: Optional[uuid.UUID], current_user: User) -> User:
    """El autor de un movimiento debe ser el usuario autenticado.
    Si no se indica autor, se usa el usuario autenticado."""
    if user_id is not None and user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No puedes registrar un movimiento para otro usuario.",
        )
    return current_user


def verificar_propietario_perfil(profile_id: uuid.UUID, current_user: User):
    """Un perfil solo lo actualiza su propio usuario."""
    if profile_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Solo puedes modificar tu propio perfil.",
        )
