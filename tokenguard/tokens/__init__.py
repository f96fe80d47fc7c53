"""Credential lifecycle core: signer, revocation store, clock and service"""
from tokenguard.tokens.clock import Clock, ManualClock, SystemClock
from tokenguard.tokens.errors import (
    AlreadyRefreshedError,
    CredentialExpiredError,
    MalformedCredentialError,
    MissingCredentialError,
    RefreshWindowExpiredError,
    SignerConfigurationError,
    TokenError,
)
from tokenguard.tokens.revocation import InMemoryRevocationStore, RevocationStore, SqlRevocationStore
from tokenguard.tokens.service import IssuedToken, TokenService, TokenSettings
from tokenguard.tokens.signer import Credential, Signer, load_signer

__all__ = [
    "AlreadyRefreshedError",
    "Clock",
    "Credential",
    "CredentialExpiredError",
    "InMemoryRevocationStore",
    "IssuedToken",
    "MalformedCredentialError",
    "ManualClock",
    "MissingCredentialError",
    "RefreshWindowExpiredError",
    "RevocationStore",
    "Signer",
    "SignerConfigurationError",
    "SqlRevocationStore",
    "SystemClock",
    "TokenError",
    "TokenService",
    "TokenSettings",
    "load_signer",
]
