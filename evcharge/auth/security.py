import os
import time
from typing import Optional

import jwt
from dotenv import load_dotenv
from passlib.context import CryptContext

load_dotenv()

JWT_SECRET = os.getenv("JWT_SECRET", "change-me-please")
JWT_ALG = os.getenv("JWT_ALG", "HS256")

USER_ROLE = "user"
ADMIN_ROLE = "admin"

# Cada rol tiene su propia caducidad; la sesión de admin es más corta.
TOKEN_TTLS = {
    USER_ROLE: int(os.getenv("JWT_ACCESS_TTL", "604800")),  # 7d
    ADMIN_ROLE: int(os.getenv("JWT_ADMIN_TTL", "43200")),  # 12h
}

pctx = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pctx.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    try:
        return pctx.verify(password, hashed)
    except (ValueError, TypeError):
        return False


def issue_token(sub: str, role: str) -> str:
    now = int(time.time())
    payload = {"sub": sub, "role": role, "iat": now, "exp": now + TOKEN_TTLS[role]}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def make_access_token(user_id: str) -> str:
    return issue_token(user_id, USER_ROLE)


def make_admin_token(email: str) -> str:
    return issue_token(email, ADMIN_ROLE)


def _claims(token: str) -> Optional[dict]:
    try:
        data = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG], options={"require": ["exp", "sub"]})
    except jwt.PyJWTError:
        return None
    if data.get("role") not in TOKEN_TTLS:
        return None
    return data


def token_role(token: str) -> Optional[str]:
    """Rol de un token válido, o None si no se puede verificar."""
    data = _claims(token)
    return data["role"] if data else None


def verify_access_token(token: str, role: str) -> Optional[str]:
    """`sub` del token si es válido y fue emitido para `role`; None en otro caso."""
    data = _claims(token)
    if not data or data["role"] != role:
        return None
    return data["sub"]


def cookie_settings() -> dict:
    # Secure para https en prod. SameSite Lax para protección CSRF permitiendo navegación.
    secure = os.getenv("COOKIE_SECURE", "false").lower() == "true"
    return dict(
        httponly=True,
        secure=secure,
        samesite="lax",
        path="/",
    )
