import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from app.dependencies import verificar_propietario_perfil
from app.models.database import get_db
from app.models.profile import Profile
from app.models.user import User
from app.routers.auth import get_current_user
from app.schemas.profile import ProfileList, ProfileResponse, ProfileUpdate

router = APIRouter(prefix="/perfiles", tags=["Perfiles"])


@router.get("/", response_model=ProfileList)
def get_profiles(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    search: Optional[str] = Query(None),
):
    """Lista los perfiles (visibles para cualquier usuario autenticado)."""
    try:
        statement = select(Profile)
        if search:
            statement = statement.where(
                func.lower(Profile.full_name).like(f"%{search.lower()}%")
            )
        profiles = db.exec(statement.order_by(Profile.full_name)).all()
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    return {"data": profiles, "total": len(profiles)}


@router.get("/{id}", response_model=ProfileResponse)
def get_profile(
    id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        profile = db.get(Profile, id)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Perfil no encontrado"
        )
    return profile


@router.put("/{id}", response_model=ProfileResponse)
def update_profile(
    id: uuid.UUID,
    profile_update: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Actualiza el nombre del perfil. Solo lo puede hacer su propietario."""
    verificar_propietario_perfil(id, current_user)

    try:
        profile = db.get(Profile, id)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de conexión con la base de datos",
        )

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Perfil no encontrado"
        )

    profile.full_name = profile_update.full_name

    try:
        db.add(profile)
        db.commit()  # updated_at se refresca con onupdate
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al actualizar el perfil.",
        )
    db.refresh(profile)
    return profile
