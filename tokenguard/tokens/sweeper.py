"""Background sweep of expired revocation records"""
import asyncio

from tokenguard.tokens.service import TokenService
from tokenguard.utils.logger import logger


async def revocation_sweep_loop(service: TokenService, interval_seconds: float) -> None:
    """Periodically drop consumed-token records whose refresh window has closed."""
    while True:
        try:
            await asyncio.sleep(interval_seconds)
            removed = await asyncio.to_thread(service.sweep)
            if removed > 0:
                logger.debug(f"Revocation sweep: removed {removed} records", extra={"action": "sweep"})
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning(f"Revocation sweep error: {e}", extra={"action": "sweep"})
