"""JWT signing and verification for short-lived bearer credentials.

Tokens are compact JWS strings produced by python-jose. The payload carries::

    sub  subject (the authenticated login)
    jti  credential id, used only for refresh bookkeeping
    iat  issued-at, whole seconds since the epoch
    exp  expiry, whole seconds since the epoch

python-jose's own ``exp`` check is switched off: expiry is always judged
against the injected :class:`~tokenguard.tokens.clock.Clock`, so simulated
time in tests and wall time in production follow the same path.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from jose.exceptions import JOSEError

from tokenguard.tokens.clock import Clock
from tokenguard.tokens.errors import (
    CredentialExpiredError,
    MalformedCredentialError,
    SignerConfigurationError,
)
from tokenguard.utils.logger import logger

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")
RSA_ALGORITHMS = ("RS256", "RS384", "RS512")
EC_ALGORITHMS = ("ES256", "ES384", "ES512")
SUPPORTED_ALGORITHMS = HMAC_ALGORITHMS + RSA_ALGORITHMS + EC_ALGORITHMS


@dataclass(frozen=True)
class Credential:
    """One issued token, as encoded in (or decoded from) its payload."""

    subject: str
    id: str
    expires_at: datetime
    issued_at: Optional[datetime] = None

    def to_claims(self) -> Dict[str, Any]:
        claims: Dict[str, Any] = {
            "sub": self.subject,
            "jti": self.id,
            "exp": int(self.expires_at.timestamp()),
        }
        if self.issued_at is not None:
            claims["iat"] = int(self.issued_at.timestamp())
        return claims


class Signer:
    """Creates and verifies signed credentials. Holds the key; never exposes it."""

    def __init__(
        self,
        algorithm: str,
        signing_key: Any,
        verifying_key: Any,
        clock: Clock,
        key_id: Optional[str] = None,
    ) -> None:
        self._algorithm = algorithm
        self._signing_key = signing_key
        self._verifying_key = verifying_key
        self._clock = clock
        self._key_id = key_id

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def sign(self, credential: Credential) -> str:
        headers = {"kid": self._key_id} if self._key_id else None
        return jwt.encode(
            credential.to_claims(),
            self._signing_key,
            algorithm=self._algorithm,
            headers=headers,
        )

    def verify(self, token: str, *, ignore_expiry: bool = False) -> Credential:
        """Check the signature and return the decoded credential.

        Raises:
            MalformedCredentialError: bad signature, bad encoding or bad claims.
            CredentialExpiredError: signature is fine but ``now >= exp`` and
                ``ignore_expiry`` is false.
        """
        try:
            payload = jwt.decode(
                token,
                self._verifying_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            logger.debug(f"JWT decode failed: {exc}")
            raise MalformedCredentialError(f"Invalid token: {exc}") from exc

        credential = _credential_from_claims(payload)

        if not ignore_expiry and self._clock.now() >= credential.expires_at:
            raise CredentialExpiredError()

        return credential


def _credential_from_claims(payload: Dict[str, Any]) -> Credential:
    subject = payload.get("sub")
    jti = payload.get("jti")
    exp = payload.get("exp")
    iat = payload.get("iat")

    if not isinstance(subject, str) or not subject:
        raise MalformedCredentialError("Token payload has no subject")
    if not isinstance(jti, str) or not jti:
        raise MalformedCredentialError("Token payload has no id")
    if not _is_timestamp(exp):
        raise MalformedCredentialError("Token payload has no valid expiry")
    if iat is not None and not _is_timestamp(iat):
        raise MalformedCredentialError("Token payload has an invalid issue time")

    try:
        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        issued_at = datetime.fromtimestamp(iat, tz=timezone.utc) if iat is not None else None
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedCredentialError("Token timestamps are out of range") from exc

    return Credential(subject=subject, id=jti, expires_at=expires_at, issued_at=issued_at)


def _is_timestamp(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Key loading
# ---------------------------------------------------------------------------

def load_signer(
    algorithm: str,
    private_key: Optional[str],
    clock: Clock,
    key_id: Optional[str] = None,
) -> Signer:
    """Build a :class:`Signer` from configuration.

    For ``HS*`` algorithms ``private_key`` is the shared secret; for ``RS*`` and
    ``ES*`` it is a PEM-encoded private key whose public half verifies tokens.

    Raises:
        SignerConfigurationError: key missing, algorithm unknown, PEM
            unparsable, or key unusable with the algorithm.
    """
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise SignerConfigurationError(
            f"Unsupported JWT_ALGORITHM {algorithm!r}; expected one of {', '.join(SUPPORTED_ALGORITHMS)}"
        )
    if not private_key:
        raise SignerConfigurationError("JWT_PRIVATE_KEY is not set; refusing to start without a signing key")

    if algorithm in HMAC_ALGORITHMS:
        signing_key: Any = private_key
        verifying_key: Any = private_key
    else:
        signing_key = _load_pem_private_key(private_key)
        verifying_key = signing_key.public_key()

    signer = Signer(algorithm, signing_key, verifying_key, clock, key_id=key_id)
    _probe(signer)

    logger.info(f"JWT signer ready (algorithm={algorithm})")
    return signer


def _load_pem_private_key(pem: str) -> Any:
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization

    try:
        return serialization.load_pem_private_key(pem.encode(), password=None, backend=default_backend())
    except (ValueError, TypeError) as exc:
        raise SignerConfigurationError(f"JWT_PRIVATE_KEY is not a usable PEM private key: {exc}") from exc


def _probe(signer: Signer) -> None:
    # A key that cannot sign must fail now, not on the first login
    probe = Credential(
        subject="probe",
        id="probe",
        expires_at=datetime.fromtimestamp(0, tz=timezone.utc),
    )
    try:
        signer.verify(signer.sign(probe), ignore_expiry=True)
    except (JOSEError, MalformedCredentialError, TypeError, ValueError) as exc:
        raise SignerConfigurationError(
            f"JWT_PRIVATE_KEY cannot be used with {signer.algorithm}: {exc}"
        ) from exc
