"""Derives the caller's organization and acting identity from a bearer token.

Every service function takes the resulting ``TenantContext`` (or its
``organization_id``) as a mandatory argument; nothing downstream reads the
token again.
"""
import logging
from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from app.core.errors import Unauthenticated
from app.core.security import ACTOR_KINDS, TokenError, decode_access_token

logger = logging.getLogger("fieldservice.auth")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/login", auto_error=False)


@dataclass(frozen=True)
class TenantContext:
    organization_id: str
    actor_id: str
    actor_role: str
    actor_kind: str

    @property
    def is_worker(self) -> bool:
        return self.actor_kind == "worker"


def resolve_identity(token: str | None) -> TenantContext:
    if not token:
        raise Unauthenticated("Authorization header required")
    try:
        payload = decode_access_token(token)
    except TokenError:
        logger.info("rejected token: invalid or expired")
        raise Unauthenticated("Invalid or expired token")

    actor_id = payload.get("sub")
    organization_id = payload.get("organization_id")
    kind = payload.get("kind") or "user"
    if not actor_id or not organization_id or kind not in ACTOR_KINDS:
        raise Unauthenticated("Invalid or expired token")
    return TenantContext(
        organization_id=str(organization_id),
        actor_id=str(actor_id),
        actor_role=payload.get("role") or "",
        actor_kind=kind,
    )


def get_tenant_context(token: str | None = Depends(oauth2_scheme)) -> TenantContext:
    return resolve_identity(token)
