"""Registro, login (usuario y admin) y perfil."""
from __future__ import annotations

import logging
import os
from typing import Optional, Tuple

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import DuplicateKeyError

from evcharge.auth.security import hash_password, make_access_token, make_admin_token, verify_password
from evcharge.client.blob_storage import ImageFile
from evcharge.database.repositories import UserRepository
from evcharge.models.models import Address, User
from evcharge.services.errors import (
    InternalError,
    NotAuthenticated,
    NotFound,
    ServiceError,
    ValidationError,
    store_errors,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

_email_adapter = TypeAdapter(EmailStr)


def is_valid_email(email: str) -> bool:
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError:
        return False
    return True


def parse_address(raw: Optional[str]) -> Address:
    """`address` llega como JSON string desde formularios multipart."""
    if not raw:
        raise ValidationError("Falta la dirección")
    try:
        return Address.model_validate_json(raw)
    except PydanticValidationError:
        raise ValidationError("La dirección debe incluir 'line1' y 'line2'")


class AccountService:
    def __init__(self, users: UserRepository, blob_store=None):
        self.users = users
        self.blob_store = blob_store

    def register(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        if not name or not email or not password:
            raise ValidationError("Faltan datos")
        if not is_valid_email(email):
            raise ValidationError("Introduce un email válido")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres")

        with store_errors("register"):
            if self.users.find_by_email(email):
                raise ValidationError("El usuario ya existe")
            try:
                doc = self.users.create(name=name, email=email, password_hash=hash_password(password))
            except DuplicateKeyError:
                raise ValidationError("El usuario ya existe")

        user = User.model_validate(doc)
        logger.info(f"Usuario registrado: {user.email}")
        return user, make_access_token(user.id)

    def login(self, email: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        if not email or not password:
            raise ValidationError("Email y contraseña son obligatorios")
        with store_errors("login"):
            doc = self.users.find_by_email(email)
        if not doc:
            raise NotAuthenticated("El usuario no existe")
        if not verify_password(password, doc.get("password_hash", "")):
            logger.warning(f"Login fallido para {email}")
            raise NotAuthenticated("Credenciales inválidas")
        user = User.model_validate(doc)
        return user, make_access_token(user.id)

    def login_admin(self, email: Optional[str], password: Optional[str]) -> str:
        if not email or not password:
            raise ValidationError("Email y contraseña son obligatorios")
        admin_email = os.getenv("ADMIN_EMAIL")
        admin_password = os.getenv("ADMIN_PASSWORD")
        if not (admin_email and admin_password):
            logger.error("ADMIN_EMAIL/ADMIN_PASSWORD no configurados")
            raise NotAuthenticated("Credenciales de admin inválidas")
        if email != admin_email or password != admin_password:
            logger.warning(f"Login de admin fallido para {email}")
            raise NotAuthenticated("Credenciales de admin inválidas")
        return make_admin_token(email)

    def get_profile(self, caller_user_id: str) -> User:
        with store_errors("get_profile"):
            doc = self.users.find_by_id(caller_user_id, {"password_hash": 0})
        if not doc:
            raise NotFound("Usuario no encontrado")
        return User.model_validate(doc)

    def update_profile(
        self,
        caller_user_id: str,
        name: Optional[str],
        phone: Optional[str],
        gender: Optional[str],
        dob: Optional[str],
        address: Optional[str] = None,
        image: Optional[ImageFile] = None,
    ) -> User:
        if not name or not phone or not gender or not dob:
            raise ValidationError("Faltan datos")
        fields = {"name": name, "phone": phone, "gender": gender, "dob": dob}
        if address:
            fields["address"] = parse_address(address).model_dump()
        if image is not None and self.blob_store is None:
            raise InternalError("La subida de imágenes no está configurada")

        with store_errors("update_profile"):
            exists = self.users.find_by_id(caller_user_id, {"_id": 1})
        if not exists:
            raise NotFound("Usuario no encontrado")
        # la imagen sólo se sube cuando el usuario existe
        if image is not None:
            fields["image"] = self.blob_store.upload(image)
        try:
            with store_errors("update_profile"):
                doc = self.users.update_profile(caller_user_id, fields)
            if not doc:
                raise NotFound("Usuario no encontrado")
        except ServiceError:
            if "image" in fields:
                self.blob_store.discard(fields["image"])
            raise
        logger.info(f"Perfil actualizado: {caller_user_id}")
        return User.model_validate(doc)
