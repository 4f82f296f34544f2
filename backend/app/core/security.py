from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from app.core.config import settings


# Tokens are issued by the external login service; this backend only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

ADMIN_ROLE = "admin"


def create_admin_token(subject: str, *, minutes: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    ttl = int(minutes if minutes is not None else settings.jwt_access_token_minutes)
    payload = {
        "sub": str(subject),
        "role": ADMIN_ROLE,
        "iss": str(getattr(settings, "jwt_issuer", "autoskola")),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def get_current_admin(request: Request, token: str = Depends(oauth2_scheme)) -> str:
    if not token:
        token = request.cookies.get("core_token")
    if not token:
        raise HTTPException(status_code=401, detail="not authenticated")

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=str(getattr(settings, "jwt_issuer", "autoskola")),
        )
    except JWTError as e:
        raise HTTPException(status_code=401, detail="invalid token") from e

    subject = str(payload.get("sub") or "").strip()
    if not subject:
        raise HTTPException(status_code=401, detail="invalid token")
    if payload.get("role") != ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="forbidden")

    try:
        request.state.user_id = subject
    except Exception:
        pass
    return subject
