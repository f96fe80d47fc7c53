"""Assemble a TokenService from process settings"""
from datetime import timedelta
from typing import Optional

from tokenguard.config import Settings
from tokenguard.database import create_session_factory
from tokenguard.tokens.clock import Clock, SystemClock
from tokenguard.tokens.errors import SignerConfigurationError
from tokenguard.tokens.revocation import InMemoryRevocationStore, RevocationStore, SqlRevocationStore
from tokenguard.tokens.service import TokenService, TokenSettings
from tokenguard.tokens.signer import load_signer
from tokenguard.utils.logger import logger


def build_revocation_store(settings: Settings) -> RevocationStore:
    """Create the store selected by ``REVOCATION_BACKEND``"""
    if settings.REVOCATION_BACKEND == "database":
        logger.info("Using database revocation store")
        return SqlRevocationStore(create_session_factory(settings.DATABASE_URL))

    logger.warning(
        "Using in-memory revocation store; refresh single-use guarantees "
        "do not survive a restart"
    )
    return InMemoryRevocationStore()


def build_token_service(
    settings: Settings,
    clock: Optional[Clock] = None,
    store: Optional[RevocationStore] = None,
) -> TokenService:
    """Build the token core once at startup.

    Raises:
        SignerConfigurationError: signing key missing/unusable or durations invalid.
    """
    clock = clock or SystemClock()

    try:
        token_settings = TokenSettings(
            validity=timedelta(seconds=settings.JWT_TOKEN_EXPIRES),
            refresh_grace=timedelta(seconds=settings.JWT_TOKEN_REFRESH),
            sweep_interval=timedelta(seconds=settings.REVOCATION_SWEEP_INTERVAL),
        )
    except ValueError as exc:
        raise SignerConfigurationError(f"Invalid token durations: {exc}") from exc

    signer = load_signer(
        settings.JWT_ALGORITHM,
        settings.JWT_PRIVATE_KEY,
        clock,
        key_id=settings.JWT_KEY_ID,
    )

    return TokenService(
        signer=signer,
        store=store if store is not None else build_revocation_store(settings),
        clock=clock,
        settings=token_settings,
    )
