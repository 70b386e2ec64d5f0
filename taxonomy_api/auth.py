from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taxonomy_api.context import AppContext
from taxonomy_api.dependencies import get_context
from taxonomy_api.log import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True, slots=True)
class Admin:
    subject: str
    email: str | None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    context: AppContext = Depends(get_context),
) -> Admin:
    if credentials is None:
        raise _unauthorized("Not authenticated.")
    if context.verifier is None:
        raise _unauthorized("Authentication is not configured.")

    try:
        claims = await context.verifier.verify_access_token(credentials.credentials)
    except Exception as exc:
        raise _unauthorized(str(exc)) from exc

    subject = claims.get("sub")
    if not subject:
        raise _unauthorized("Token missing sub claim.")

    groups = claims.get("cognito:groups") or []
    if context.settings.admin_group not in groups:
        logger.warning("admin_access_denied", subject=subject)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to manage categories.",
        )
    return Admin(subject=subject, email=claims.get("email"))
