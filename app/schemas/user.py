import uuid
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


class SignUpRequest(BaseModel):
    """
    Esquema de registro.
    - `EmailStr` valida el formato del correo.
    - `confirm_password` debe coincidir con `password`; si no, la petición
      se rechaza (422) antes de consultar la base de datos.
    """

    email: EmailStr = Field(..., max_length=100)
    password: str = Field(..., min_length=6, max_length=72)
    confirm_password: str = Field(..., max_length=72)
    full_name: str = Field(..., min_length=3, max_length=100)

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_full_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Las contraseñas no coinciden")
        return self


class SessionResponse(BaseModel):
    """Contexto de sesión: identidad autenticada y su perfil."""

    id: uuid.UUID
    email: str
    full_name: str
    role: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
