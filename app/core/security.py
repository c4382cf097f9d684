from datetime import datetime, timedelta
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACTOR_KINDS = {"user", "worker"}


class TokenError(Exception):
    pass


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    if not isinstance(password, str):
        raise ValueError("Password must be a string")
    if len(password.encode("utf-8")) > 72:
        raise ValueError("Password longer than 72 bytes in UTF-8")
    return pwd_context.hash(password)


def create_access_token(
    actor_id: str,
    organization_id: str,
    role: str,
    kind: str = "user",
    email: str | None = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS))
    claims: dict[str, Any] = {
        "sub": actor_id,
        "organization_id": organization_id,
        "role": role,
        "kind": kind,
        "iat": now,
        "exp": expire,
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise TokenError(str(exc)) from exc
