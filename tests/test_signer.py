"""Tests for JWT signing, verification and key loading"""
import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jose import jwt

from tokenguard.tokens import (
    Credential,
    CredentialExpiredError,
    MalformedCredentialError,
    ManualClock,
    SignerConfigurationError,
    load_signer,
)


def _credential(clock: ManualClock, seconds: int = 5) -> Credential:
    now = clock.now()
    return Credential(
        subject="alice",
        id="3f0c1b7e-0000-4000-8000-000000000001",
        issued_at=now,
        expires_at=now + timedelta(seconds=seconds),
    )


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _unb64(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _pem(private_key) -> str:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def test_sign_and_verify(signer, clock):
    """Test a signed credential decodes back to the same fields"""
    credential = _credential(clock)
    token = signer.sign(credential)

    decoded = signer.verify(token)
    assert decoded == credential


def test_payload_claims(signer, clock):
    """Test the payload carries sub, jti, iat and exp in whole seconds"""
    credential = _credential(clock)
    claims = jwt.get_unverified_claims(signer.sign(credential))

    assert claims["sub"] == "alice"
    assert claims["jti"] == credential.id
    assert claims["exp"] == int(credential.expires_at.timestamp())
    assert claims["iat"] == int(credential.issued_at.timestamp())


def test_verify_uses_injected_clock(signer, clock):
    """Test expiry follows the clock, not wall time"""
    token = signer.sign(_credential(clock))

    clock.advance(4)
    assert signer.verify(token).subject == "alice"

    clock.advance(1)
    with pytest.raises(CredentialExpiredError):
        signer.verify(token)


def test_verify_ignore_expiry(signer, clock):
    """Test an expired token still decodes when expiry is ignored"""
    token = signer.sign(_credential(clock))
    clock.advance(3600)

    assert signer.verify(token, ignore_expiry=True).subject == "alice"


def test_any_payload_byte_change_is_rejected(signer, clock):
    """Test altering any character of the payload segment invalidates the token"""
    token = signer.sign(_credential(clock))
    header, payload, signature = token.split(".")

    for i, char in enumerate(payload):
        replacement = "A" if char != "A" else "B"
        tampered = ".".join([header, payload[:i] + replacement + payload[i + 1:], signature])
        with pytest.raises(MalformedCredentialError):
            signer.verify(tampered, ignore_expiry=True)


@pytest.mark.parametrize("claim,value", [("sub", "mallory"), ("jti", "other-id"), ("exp", 4102444800)])
def test_rewritten_claims_are_rejected(signer, clock, claim, value):
    """Test re-encoding a modified payload under the old signature fails"""
    token = signer.sign(_credential(clock))
    header, payload, signature = token.split(".")

    claims = json.loads(_unb64(payload))
    claims[claim] = value
    forged = ".".join([header, _b64(json.dumps(claims).encode()), signature])

    with pytest.raises(MalformedCredentialError):
        signer.verify(forged, ignore_expiry=True)


def test_wrong_secret_is_rejected(signer, clock):
    """Test a token signed with another key is malformed"""
    other = load_signer("HS256", "some-other-secret", clock)
    token = other.sign(_credential(clock))

    with pytest.raises(MalformedCredentialError):
        signer.verify(token)


@pytest.mark.parametrize("garbage", ["not-a-token", "a.b.c", "eyJhbGciOiJIUzI1NiJ9..", "..."])
def test_garbage_is_rejected(signer, garbage):
    """Test unparsable tokens are malformed"""
    with pytest.raises(MalformedCredentialError):
        signer.verify(garbage)


@pytest.mark.parametrize("missing", ["sub", "jti", "exp"])
def test_missing_claims_are_rejected(signer, clock, signing_secret, missing):
    """Test a correctly signed payload without a required claim is malformed"""
    claims = {"sub": "alice", "jti": "abc", "exp": int(clock.now().timestamp()) + 60}
    del claims[missing]
    token = jwt.encode(claims, signing_secret, algorithm="HS256")

    with pytest.raises(MalformedCredentialError):
        signer.verify(token)


def test_non_integer_expiry_is_rejected(signer, signing_secret):
    """Test a string exp claim is malformed"""
    token = jwt.encode({"sub": "alice", "jti": "abc", "exp": "soon"}, signing_secret, algorithm="HS256")

    with pytest.raises(MalformedCredentialError):
        signer.verify(token, ignore_expiry=True)


def test_unsigned_token_is_rejected(signer, clock):
    """Test an alg=none token is not accepted"""
    claims = {"sub": "alice", "jti": "abc", "exp": int(clock.now().timestamp()) + 60}
    header = _b64(json.dumps({"alg": "none", "typ": "JWT"}).encode())
    token = f"{header}.{_b64(json.dumps(claims).encode())}."

    with pytest.raises(MalformedCredentialError):
        signer.verify(token)


# ---------------------------------------------------------------------------
# Key loading
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("key", [None, ""])
def test_missing_key_is_fatal(clock, key):
    """Test a missing signing key is a configuration error"""
    with pytest.raises(SignerConfigurationError):
        load_signer("HS256", key, clock)


def test_unknown_algorithm_is_fatal(clock, signing_secret):
    """Test an unsupported algorithm is a configuration error"""
    with pytest.raises(SignerConfigurationError):
        load_signer("none", signing_secret, clock)


def test_bad_pem_is_fatal(clock):
    """Test an asymmetric algorithm with a non-PEM key is a configuration error"""
    with pytest.raises(SignerConfigurationError):
        load_signer("RS256", "definitely-not-a-pem", clock)


def test_rs256_signer(clock):
    """Test RS256 signing with a PEM key and kid header"""
    pem = _pem(rsa.generate_private_key(public_exponent=65537, key_size=2048))
    signer = load_signer("RS256", pem, clock, key_id="key-2024")

    token = signer.sign(_credential(clock))

    assert jwt.get_unverified_header(token)["kid"] == "key-2024"
    assert jwt.get_unverified_header(token)["alg"] == "RS256"
    assert signer.verify(token).subject == "alice"


def test_es256_signer(clock):
    """Test ES256 signing with an EC PEM key"""
    pem = _pem(ec.generate_private_key(ec.SECP256R1()))
    signer = load_signer("ES256", pem, clock)

    assert signer.verify(signer.sign(_credential(clock))).subject == "alice"


def test_rs256_rejects_hs256_token(signer, clock):
    """Test a token signed with a different algorithm is malformed"""
    pem = _pem(rsa.generate_private_key(public_exponent=65537, key_size=2048))
    rs_signer = load_signer("RS256", pem, clock)

    with pytest.raises(MalformedCredentialError):
        rs_signer.verify(signer.sign(_credential(clock)))


def test_expiry_boundary_is_exclusive(signing_secret):
    """Test a token is expired at exactly its exp second"""
    clock = ManualClock(datetime(2030, 6, 1, 12, 0, 0, tzinfo=timezone.utc))
    signer = load_signer("HS256", signing_secret, clock)
    token = signer.sign(_credential(clock, seconds=30))

    clock.advance(timedelta(seconds=29, microseconds=999999))
    assert signer.verify(token).subject == "alice"

    clock.advance(timedelta(microseconds=1))
    with pytest.raises(CredentialExpiredError):
        signer.verify(token)
