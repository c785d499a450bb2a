# weddingsite/core/security.py
import secrets
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from fastapi.security.api_key import APIKeyHeader
from sqlalchemy.orm import Session

from weddingsite import config, rate_limit
from weddingsite.db import get_db
from weddingsite.errors import AuthenticationError, ForbiddenError, RateLimitError
from weddingsite.models import User
from weddingsite.services.user_service import verify_token

_bearer = HTTPBearer(auto_error=False)
_api_key_header = APIKeyHeader(name="x-admin-key", auto_error=False)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    db: Session = Depends(get_db),
) -> Optional[User]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return verify_token(db, credentials.credentials)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise AuthenticationError("You must be logged in")
    return user


def require_admin(
    user: Optional[User] = Depends(get_optional_user),
    api_key: Optional[str] = Depends(_api_key_header),
) -> Optional[User]:
    """Admin por JWT (is_admin) o, para scripts, por cabecera x-admin-key."""
    if api_key and config.ADMIN_API_KEY and secrets.compare_digest(api_key, config.ADMIN_API_KEY):
        return user
    if user is None:
        raise AuthenticationError("You must be logged in")
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user


def login_rate_limit(request: Request) -> None:
    max_req, window = rate_limit.get_limits_from_env(
        "LOGIN_RL", config.LOGIN_RL_DEFAULT_MAX, config.LOGIN_RL_DEFAULT_WINDOW
    )
    if not rate_limit.is_allowed(f"login:{client_ip(request)}", max_req, window):
        raise RateLimitError("Too many login attempts, please try again later.")
