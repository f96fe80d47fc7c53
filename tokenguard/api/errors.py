"""HTTP rendering of token failures"""
from typing import Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from tokenguard.tokens.errors import TokenError


class TokenHTTPException(HTTPException):
    """HTTPException that keeps the token failure's machine-readable code"""

    def __init__(self, status_code: int, error: TokenError) -> None:
        headers: Optional[Dict[str, str]] = None
        if status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        super().__init__(status_code=status_code, detail=error.message, headers=headers)
        self.code = error.code


async def token_http_exception_handler(request: Request, exc: TokenHTTPException) -> JSONResponse:
    """Render a token failure as ``{"message", "content": null, "error"}``"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail, "content": None, "error": exc.code},
        headers=exc.headers,
    )
