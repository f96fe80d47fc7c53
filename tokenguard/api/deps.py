"""API dependencies: token service injection and bearer authentication.

Protected endpoints accept ``Authorization: Bearer <JWT>`` only. A missing or
empty header is reported as ``missing_credential`` rather than being rejected
by FastAPI, so every failure carries one of the token error codes.
"""
from typing import Optional

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tokenguard.api.errors import TokenHTTPException
from tokenguard.middleware.monitoring import record_verify_failure
from tokenguard.tokens.errors import TokenError
from tokenguard.tokens.service import TokenService
from tokenguard.utils.logger import logger

_bearer_scheme = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    """Return the TokenService built at startup (overridable in tests)"""
    return request.app.state.token_service


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[str]:
    """Extract the raw token from ``Authorization: Bearer <token>``, if any"""
    if credentials is None:
        return None
    return credentials.credentials


def require_subject(
    token: Optional[str] = Depends(get_bearer_token),
    service: TokenService = Depends(get_token_service),
) -> str:
    """Require a valid, unexpired token and return its subject.

    Raises 401 with the failure code (``missing_credential``,
    ``malformed_credential`` or ``expired``).
    """
    try:
        return service.verify(token)
    except TokenError as exc:
        record_verify_failure(exc.code)
        logger.debug(f"Rejected token: {exc.message}", extra={"action": "verify_token", "error": exc.code})
        raise TokenHTTPException(status.HTTP_401_UNAUTHORIZED, exc) from exc
