"""Sign-in exchange and JWT issuance."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from threading import Lock
from typing import Any, Literal
from uuid import uuid4

import logging

from cryptography.hazmat.primitives import serialization
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

from awards.core.config import Settings, get_settings

RoleName = Literal["ADMIN", "VOTER"]

logger = logging.getLogger(__name__)

router = APIRouter()
security_scheme = HTTPBearer(auto_error=True)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    role: RoleName


class CallbackRequest(BaseModel):
    id_token: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenPayload(BaseModel):
    sub: str
    role: RoleName
    type: Literal["access", "refresh"]
    iat: datetime
    exp: datetime
    jti: str


class IdentityClaims(BaseModel):
    email: str
    name: str | None = None


@dataclass(frozen=True)
class AuthenticatedUser:
    email: str
    role: RoleName
    token_id: str


class RefreshTokenStore:
    """In-memory store tracking active and blacklisted refresh tokens."""

    def __init__(self) -> None:
        self._active: dict[str, str] = {}
        self._blacklist: set[str] = set()
        self._lock = Lock()

    def mark_active(self, subject: str, token_id: str) -> None:
        with self._lock:
            self._active[subject] = token_id

    def is_active(self, subject: str, token_id: str) -> bool:
        with self._lock:
            if token_id in self._blacklist:
                return False
            return self._active.get(subject) == token_id

    def blacklist(self, token_id: str) -> None:
        with self._lock:
            self._blacklist.add(token_id)

    def reset(self) -> None:
        with self._lock:
            self._active.clear()
            self._blacklist.clear()


refresh_token_store = RefreshTokenStore()


def is_blocked_email(email: str, blocked_domains: frozenset[str]) -> bool:
    """True when the email's domain, or any parent domain, is blocked."""

    domain = email.rsplit("@", 1)[-1].lower()
    parts = domain.split(".")
    return any(".".join(parts[index:]) in blocked_domains for index in range(len(parts)))


def resolve_role(email: str, settings: Settings) -> RoleName:
    return "ADMIN" if email.lower() in settings.admin_email_set else "VOTER"


@lru_cache(maxsize=4)
def _signing_keys(private_pem: str) -> tuple[Any, str]:
    private_key = serialization.load_pem_private_key(private_pem.encode("utf-8"), password=None)
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_key, public_pem.decode("utf-8")


def _load_keys(settings: Settings) -> tuple[Any, str]:
    try:
        return _signing_keys(settings.jwt_private_key)
    except ValueError as exc:  # pragma: no cover - configuration issue
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Invalid JWT signing key",
        ) from exc


def _create_token(
    *,
    subject: str,
    settings: Settings,
    expires_delta: timedelta,
    token_type: Literal["access", "refresh"],
    role: RoleName,
    signing_key: Any,
) -> tuple[str, str]:
    now = datetime.now(UTC)
    token_id = uuid4().hex
    payload = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "role": role,
        "type": token_type,
        "jti": token_id,
    }
    encoded = jwt.encode(payload, signing_key, algorithm=settings.jwt_algorithm)
    return encoded, token_id


def _issue_tokens(*, subject: str, settings: Settings, role: RoleName) -> tuple[TokenResponse, str]:
    signing_key, _ = _load_keys(settings)
    access_token, _ = _create_token(
        subject=subject,
        settings=settings,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        token_type="access",
        role=role,
        signing_key=signing_key,
    )
    refresh_token, refresh_id = _create_token(
        subject=subject,
        settings=settings,
        expires_delta=timedelta(days=settings.refresh_token_expire_days),
        token_type="refresh",
        role=role,
        signing_key=signing_key,
    )
    response = TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
        role=role,
    )
    return response, refresh_id


def _decode_token(*, token: str, settings: Settings) -> TokenPayload:
    _, verifying_key = _load_keys(settings)
    try:
        payload = jwt.decode(token, verifying_key, algorithms=[settings.jwt_algorithm])
        return TokenPayload(**payload)
    except (JWTError, ValidationError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc


def _verify_identity_token(*, token: str, settings: Settings) -> IdentityClaims:
    audience = settings.identity_provider_audience
    try:
        claims = jwt.decode(
            token,
            settings.identity_provider_secret,
            algorithms=[settings.identity_provider_algorithm],
            audience=audience,
            options={"verify_aud": audience is not None},
        )
        identity = IdentityClaims(**claims)
    except (JWTError, ValidationError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid identity token",
        ) from exc
    if "@" not in identity.email:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid email address",
        )
    return identity


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
) -> AuthenticatedUser:
    settings = get_settings()
    payload = _decode_token(token=credentials.credentials, settings=settings)
    if payload.type != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
    return AuthenticatedUser(email=payload.sub, role=payload.role, token_id=payload.jti)


def require_role(*roles: RoleName) -> Callable[..., AuthenticatedUser]:
    allowed_roles: set[str] = set(roles)

    def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return dependency


require_admin = require_role("ADMIN")
require_voter = require_role("VOTER", "ADMIN")


@router.post("/callback", response_model=TokenResponse, summary="Exchange an identity token for API tokens")
def sign_in_callback(request: CallbackRequest) -> TokenResponse:
    settings = get_settings()
    identity = _verify_identity_token(token=request.id_token, settings=settings)
    email = identity.email.strip().lower()
    if is_blocked_email(email, settings.blocked_domain_set):
        logger.warning("blocked sign-in attempt", extra={"email_domain": email.rsplit("@", 1)[-1]})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sign-in is not allowed for this email domain",
        )

    role = resolve_role(email, settings)
    response, refresh_id = _issue_tokens(subject=email, settings=settings, role=role)
    refresh_token_store.mark_active(email, refresh_id)
    return response


@router.post("/refresh", response_model=TokenResponse, summary="Rotate JWT refresh tokens")
def refresh_token(request: RefreshRequest) -> TokenResponse:
    settings = get_settings()
    payload = _decode_token(token=request.refresh_token, settings=settings)
    if payload.type != "refresh":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token type")
    if not refresh_token_store.is_active(payload.sub, payload.jti):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token revoked",
        )

    refresh_token_store.blacklist(payload.jti)
    # Admin rights follow the current allowlist, not the one at first sign-in.
    response, refresh_id = _issue_tokens(
        subject=payload.sub, settings=settings, role=resolve_role(payload.sub, settings)
    )
    refresh_token_store.mark_active(payload.sub, refresh_id)
    return response


@router.get("/me", summary="Describe the signed-in user")
def who_am_i(user: AuthenticatedUser = Depends(get_current_user)) -> dict[str, str]:
    return {"email": user.email, "role": user.role}


__all__ = [
    "AuthenticatedUser",
    "RoleName",
    "get_current_user",
    "is_blocked_email",
    "refresh_token_store",
    "require_admin",
    "require_role",
    "require_voter",
    "resolve_role",
    "router",
]
