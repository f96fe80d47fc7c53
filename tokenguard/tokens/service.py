"""Credential lifecycle: issue, verify and single-use refresh.

State machine of one credential::

    issued --(now >= expires_at)--> expired --(now >= expires_at + grace)--> dead
       \\                               |
        \\------- refresh (once) -------+--> consumed (id recorded until expires_at + grace)

Verify accepts only ``issued``. Refresh accepts ``issued`` and ``expired``,
moves the credential to ``consumed`` and hands out a brand-new credential for
the same subject. The consume step is an atomic check-and-mark on the
:class:`~tokenguard.tokens.revocation.RevocationStore`, so of N concurrent
refreshes of one credential exactly one succeeds.
"""
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from tokenguard.tokens.clock import Clock
from tokenguard.tokens.errors import (
    AlreadyRefreshedError,
    MissingCredentialError,
    RefreshWindowExpiredError,
)
from tokenguard.tokens.revocation import RevocationStore
from tokenguard.tokens.signer import Credential, Signer
from tokenguard.utils.logger import logger


@dataclass(frozen=True)
class TokenSettings:
    """Durations the core runs with; built once at startup."""

    validity: timedelta
    refresh_grace: timedelta
    sweep_interval: timedelta = timedelta(seconds=60)

    def __post_init__(self) -> None:
        if self.validity <= timedelta(0):
            raise ValueError("validity must be positive")
        if self.refresh_grace < timedelta(0):
            raise ValueError("refresh_grace must not be negative")
        if self.sweep_interval <= timedelta(0):
            raise ValueError("sweep_interval must be positive")


@dataclass(frozen=True)
class IssuedToken:
    """Result of issue/refresh: the signed token plus the durations the client
    needs to schedule its own refresh."""

    token: str
    credential: Credential
    expires_in: int
    refresh_in: int


class TokenService:
    """Orchestrates Signer, RevocationStore and Clock.

    The service is the only writer of its RevocationStore.
    """

    def __init__(
        self,
        signer: Signer,
        store: RevocationStore,
        clock: Clock,
        settings: TokenSettings,
    ) -> None:
        self._signer = signer
        self._store = store
        self._clock = clock
        self._settings = settings
        self._last_sweep: Optional[datetime] = None
        self._sweep_lock = threading.Lock()

    @property
    def settings(self) -> TokenSettings:
        return self._settings

    @property
    def store(self) -> RevocationStore:
        return self._store

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, subject: str) -> IssuedToken:
        """Issue a credential for an already-authenticated subject."""
        if not subject:
            raise ValueError("subject must be a non-empty string")

        # exp is carried in whole seconds
        issued_at = self._clock.now().replace(microsecond=0)
        credential = Credential(
            subject=subject,
            id=str(uuid.uuid4()),
            issued_at=issued_at,
            expires_at=issued_at + self._settings.validity,
        )
        token = self._signer.sign(credential)

        logger.info(
            f"Issued token for {subject}",
            extra={"subject": subject, "jti": credential.id, "action": "issue_token"},
        )

        return IssuedToken(
            token=token,
            credential=credential,
            expires_in=int(self._settings.validity.total_seconds()),
            refresh_in=int(self._settings.refresh_grace.total_seconds()),
        )

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify(self, token: Optional[str]) -> str:
        """Strict authorization check: valid signature and ``now < expires_at``.

        Returns the subject.

        Raises:
            MissingCredentialError, MalformedCredentialError, CredentialExpiredError
        """
        if not token:
            raise MissingCredentialError()
        return self._signer.verify(token).subject

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self, token: Optional[str]) -> IssuedToken:
        """Exchange a (normally expired) credential for a new one, once.

        Raises:
            MissingCredentialError, MalformedCredentialError,
            AlreadyRefreshedError, RefreshWindowExpiredError
        """
        if not token:
            raise MissingCredentialError()

        credential = self._signer.verify(token, ignore_expiry=True)

        if self._store.is_consumed(credential.id):
            self._log_replay(credential)
            raise AlreadyRefreshedError()

        now = self._clock.now()
        eligible_until = credential.expires_at + self._settings.refresh_grace
        if now >= eligible_until:
            raise RefreshWindowExpiredError()

        # Lost race: another refresh consumed the id between the check and here
        if not self._store.mark_consumed(credential.id, eligible_until):
            self._log_replay(credential)
            raise AlreadyRefreshedError()

        logger.info(
            f"Refreshed token for {credential.subject}",
            extra={"subject": credential.subject, "jti": credential.id, "action": "refresh_token"},
        )

        self.maybe_sweep(now)
        return self.issue(credential.subject)

    # ------------------------------------------------------------------
    # Revocation housekeeping
    # ------------------------------------------------------------------

    def sweep(self, now: Optional[datetime] = None) -> int:
        """Drop revocation records that can no longer affect a refresh."""
        if now is None:
            now = self._clock.now()
        removed = self._store.sweep(now)
        with self._sweep_lock:
            self._last_sweep = now
        if removed:
            logger.debug(f"Swept {removed} consumed token records", extra={"action": "sweep"})
        return removed

    def maybe_sweep(self, now: datetime) -> int:
        """Sweep if the last sweep is older than the configured interval."""
        with self._sweep_lock:
            due = self._last_sweep is None or now - self._last_sweep >= self._settings.sweep_interval
        if not due:
            return 0
        return self.sweep(now)

    def _log_replay(self, credential: Credential) -> None:
        logger.warning(
            f"Rejected replayed refresh for {credential.subject}",
            extra={
                "subject": credential.subject,
                "jti": credential.id,
                "action": "refresh_token",
                "error": AlreadyRefreshedError.code,
            },
        )
