from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from app.config import JWT_SECRET, JWT_ALG, TOKEN_EXPIRE_MIN
from app.errors import Forbidden, Unauthorized


@dataclass(frozen=True)
class Principal:
    id: str
    is_admin: bool = False
    name: str = ""


def require_authenticated(principal: Optional[Principal]) -> Principal:
    if principal is None:
        raise Unauthorized("Missing bearer token")
    return principal


def require_admin(principal: Optional[Principal]) -> Principal:
    principal = require_authenticated(principal)
    if not principal.is_admin:
        raise Forbidden("Admin access required")
    return principal


def create_access_token(principal: Principal, expires_minutes: int = TOKEN_EXPIRE_MIN) -> str:
    now = datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        "sub": principal.id,
        "is_admin": principal.is_admin,
        "name": principal.name,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALG)


def decode_access_token(token: str) -> Principal:
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except JWTError as e:
        raise Unauthorized(f"Invalid token: {e}") from e

    if not claims.get("sub"):
        raise Unauthorized("Invalid token: no subject")
    return Principal(
        id=str(claims["sub"]),
        is_admin=bool(claims.get("is_admin", False)),
        name=claims.get("name") or "",
    )


bearer_scheme = HTTPBearer(auto_error=False)


def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Principal]:
    # No header means anonymous; a bad header is always an error
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)
