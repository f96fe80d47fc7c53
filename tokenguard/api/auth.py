"""Login, refresh and token-gated endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from tokenguard.api.deps import get_bearer_token, get_token_service, require_subject
from tokenguard.api.errors import TokenHTTPException
from tokenguard.middleware.monitoring import record_refresh, record_token_issued
from tokenguard.middleware.rate_limit import rate_limit
from tokenguard.schemas.token import (
    Envelope,
    ErrorEnvelope,
    SecretEnvelope,
    SubjectContent,
    TokenContent,
    TokenEnvelope,
)
from tokenguard.tokens.errors import TokenError
from tokenguard.tokens.service import IssuedToken, TokenService

router = APIRouter(prefix="/api", tags=["authentication"])


def _token_envelope(issued: IssuedToken) -> TokenEnvelope:
    return TokenEnvelope(
        message="Token Received",
        content=TokenContent(
            token=issued.token,
            expires=issued.expires_in,
            refresh=issued.refresh_in,
        ),
    )


# ---------------------------------------------------------------------------
# GET /api/login
# ---------------------------------------------------------------------------

@router.get("/login", response_model=TokenEnvelope)
@rate_limit("login")
def login(
    request: Request,
    login: str = Query(..., min_length=1, max_length=255, description="Already-authenticated subject"),
    service: TokenService = Depends(get_token_service),
) -> TokenEnvelope:
    """Issue a token for ``login``.

    User and password checks are not performed here: the caller is trusted
    to have authenticated the subject already.
    """
    issued = service.issue(login)
    record_token_issued("login")
    return _token_envelope(issued)


# ---------------------------------------------------------------------------
# GET /api/refresh
# ---------------------------------------------------------------------------

@router.get(
    "/refresh",
    response_model=TokenEnvelope,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorEnvelope}},
)
@rate_limit("refresh")
def refresh(
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
    service: TokenService = Depends(get_token_service),
) -> TokenEnvelope:
    """Exchange an expired token (in the ``Authorization`` header) for a new one.

    Each token can be exchanged once, and only until its refresh window closes.
    """
    try:
        issued = service.refresh(token)
    except TokenError as exc:
        record_refresh(exc.code)
        raise TokenHTTPException(status.HTTP_400_BAD_REQUEST, exc) from exc

    record_refresh("ok")
    record_token_issued("refresh")
    return _token_envelope(issued)


# ---------------------------------------------------------------------------
# GET /api/secret
# ---------------------------------------------------------------------------

@router.get(
    "/secret",
    response_model=SecretEnvelope,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorEnvelope}},
)
def secret(subject: str = Depends(require_subject)) -> SecretEnvelope:
    """Request that requires a valid, unexpired token"""
    return SecretEnvelope(message="Secret Data Received", content=SubjectContent(login=subject))


# ---------------------------------------------------------------------------
# GET /api/public
# ---------------------------------------------------------------------------

@router.get("/public", response_model=Envelope)
def public() -> Envelope:
    """Request that does not require a token"""
    return Envelope(message="Public Data Received", content=None)
