"""Bearer Token Authorization

JWT bearer tokens (python-jose) carrying role claims. Routes declare the roles
they need as a dependency:

    @router.get("/query", dependencies=[Depends(require_roles(Roles.READER))])

Route dependencies are solved before parameters are bound, so a request that
fails authorization never reaches binding or validation.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from core.config import settings
from core.errors import (
    AppError,
    AppErrorException,
    AuthErrorMapper,
    Err,
    Ok,
    Result,
    insufficient_permissions,
    token_invalid,
    token_missing,
)
from core.logging import auth_logger, bind_context

log = auth_logger()

bearer_scheme = HTTPBearer(scheme_name="Bearer", bearerFormat="JWT", auto_error=False)
_mapper = AuthErrorMapper(origin="auth")


class Roles:
    READER = "reader"
    WRITER = "writer"


@dataclass(frozen=True, slots=True)
class Principal:
    subject: str
    roles: frozenset[str] = field(default_factory=frozenset)
    claims: dict[str, Any] = field(default_factory=dict, compare=False)

    def has_any_role(self, *roles: str) -> bool:
        return not roles or bool(self.roles.intersection(roles))


def _roles_from_claim(value: Any) -> frozenset[str]:
    if isinstance(value, str):
        return frozenset(value.split())
    if isinstance(value, (list, tuple, set)):
        return frozenset(str(role) for role in value)
    return frozenset()


def decode_token(token: str) -> Result[Principal, AppError]:
    """Verify signature, expiry and (when configured) audience of a token."""
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options={"verify_aud": settings.JWT_AUDIENCE is not None},
        )
    except JWTError as exc:
        return Err(_mapper.map_exception(exc))

    subject = claims.get("sub")
    if not subject:
        return token_invalid("missing subject", origin="auth")
    return Ok(Principal(
        subject=str(subject),
        roles=_roles_from_claim(claims.get(settings.JWT_ROLES_CLAIM)),
        claims=claims,
    ))


def create_access_token(
    subject: str,
    roles: list[str] | tuple[str, ...] = (),
    expires_in: timedelta = timedelta(minutes=30),
    **extra_claims: Any,
) -> str:
    """Sign a token for local tooling and tests."""
    claims = {
        "sub": subject,
        settings.JWT_ROLES_CLAIM: list(roles),
        "exp": datetime.now(timezone.utc) + expires_in,
        **extra_claims,
    }
    if settings.JWT_AUDIENCE and "aud" not in claims:
        claims["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    if credentials is None or not credentials.credentials:
        log.info("auth_missing_token")
        raise AppErrorException(token_missing(origin="auth").error)

    result = decode_token(credentials.credentials)
    if result.is_err():
        error = result.unwrap_err()
        log.info("auth_invalid_token", code=error.code.name)
        raise AppErrorException(error)

    principal = result.unwrap()
    bind_context(principal=principal.subject)
    return principal


class RoleRequirement:
    """Dependency that admits principals holding any of ``roles``."""

    def __init__(self, *roles: str):
        self.roles = tuple(roles)

    async def __call__(self, principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has_any_role(*self.roles):
            log.info(
                "auth_forbidden",
                principal=principal.subject,
                required=list(self.roles),
                granted=sorted(principal.roles),
            )
            raise AppErrorException(
                insufficient_permissions(list(self.roles), principal=principal.subject, origin="auth").error
            )
        return principal

    def __repr__(self) -> str:
        return f"RoleRequirement{self.roles!r}"


def require_roles(*roles: str) -> RoleRequirement:
    return RoleRequirement(*roles)
