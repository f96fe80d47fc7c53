"""Token failure taxonomy.

Every per-request failure is one of the :class:`TokenError` subclasses below.
Each carries a stable machine-readable ``code`` plus a human-readable
message; the HTTP layer maps them to status codes and never converts one kind
into another.

:class:`SignerConfigurationError` is deliberately *not* a ``TokenError``: it is
raised once at startup when the signing key is unusable and is fatal.
"""


class TokenError(Exception):
    """Base class for expected, caller-recoverable token failures."""

    code = "token_error"
    default_message = "Token rejected"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class MissingCredentialError(TokenError):
    """No token was supplied."""

    code = "missing_credential"
    default_message = "Token not found"


class MalformedCredentialError(TokenError):
    """Signature invalid or payload unparsable."""

    code = "malformed_credential"
    default_message = "Invalid token"


class CredentialExpiredError(TokenError):
    """Signature valid but the credential is past its expiry."""

    code = "expired"
    default_message = "Token has expired"


class AlreadyRefreshedError(TokenError):
    """The credential has already been exchanged by a successful refresh."""

    code = "already_refreshed"
    default_message = "Token has already been refreshed"


class RefreshWindowExpiredError(TokenError):
    """The grace period after expiry has passed."""

    code = "refresh_window_expired"
    default_message = "The time to receive a new token has expired"


class SignerConfigurationError(RuntimeError):
    """Signing key or algorithm is missing or unusable (fatal, startup only)."""
