"""
VAPID (RFC 8292) application server identification for Web Push.

This module signs short-lived ES256 JWTs that tell a push service which
application server is sending, and formats them into the `Authorization`
header value `vapid t=<token>, k=<public key>`.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
from urllib.parse import urlparse

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)
from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.serialization import load_pem_private_key

from .keys import (
    b64url_decode,
    b64url_encode,
    private_key_from_bytes,
    public_key_to_bytes,
)
from .types import (
    VAPID_DEFAULT_VALIDITY,
    VAPID_MAX_VALIDITY,
    ConfigurationError,
    ExpirationTooFarError,
    InvalidInputError,
    InvalidTokenError,
    SigningError,
)


JWT_HEADER = {"typ": "JWT", "alg": "ES256"}
ES256_SIGNATURE_SIZE = 64
ES256_COMPONENT_SIZE = 32
_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class VapidClaims:
    """JWT claims identifying the application server to a push service."""
    aud: str  # push service origin
    sub: str  # mailto: or https: contact
    exp: int  # Unix timestamp, at most 24h after issuance

    def to_dict(self) -> dict:
        return {"aud": self.aud, "exp": self.exp, "sub": self.sub}


def audience_for(endpoint: str) -> str:
    """
    Return the origin of a push endpoint, used as the token audience.

    The origin is scheme, lowercased host and any non-default port. Userinfo
    is never part of it.

    Raises:
        InvalidInputError: If the endpoint is not an absolute http(s) URL
    """
    parsed = urlparse(endpoint)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InvalidInputError(f"Invalid push endpoint: {endpoint!r}")
    try:
        port = parsed.port
    except ValueError as e:
        raise InvalidInputError(f"Invalid push endpoint: {endpoint!r}") from e

    host = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS[parsed.scheme]:
        host = f"{host}:{port}"
    return f"{parsed.scheme}://{host}"


def _check_subject(subject: str) -> None:
    if not subject.startswith(("mailto:", "https:")):
        raise InvalidInputError(
            f"VAPID subject must be a mailto: or https: URI, got {subject!r}"
        )


def _check_signing_key(private_key: ec.EllipticCurvePrivateKey) -> None:
    if not isinstance(private_key, ec.EllipticCurvePrivateKey) or not isinstance(
        private_key.curve, ec.SECP256R1
    ):
        raise InvalidInputError("VAPID key must be a P-256 private key")


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def check_expiration(expiration: datetime, now: datetime) -> None:
    """
    Check that a token expiration lies in (now, now + 24h].

    Raises:
        ConfigurationError: If the expiration is not in the future
        ExpirationTooFarError: If the expiration is more than 24 hours away
    """
    remaining = _as_utc(expiration) - _as_utc(now)
    if remaining <= timedelta(0):
        raise ConfigurationError("VAPID expiration must be in the future")
    if remaining > VAPID_MAX_VALIDITY:
        raise ExpirationTooFarError(
            f"VAPID expiration is {remaining} away (maximum {VAPID_MAX_VALIDITY})"
        )


def _encode_segment(value: dict) -> str:
    return b64url_encode(json.dumps(value, separators=(",", ":")).encode("utf-8"))


def create_vapid_token(private_key: ec.EllipticCurvePrivateKey, claims: VapidClaims) -> str:
    """
    Sign VAPID claims as a compact ES256 JWT.

    Args:
        private_key: The application server's P-256 signing key
        claims: Claims to sign

    Returns:
        The compact token `header.payload.signature`

    Raises:
        InvalidInputError: If the key is not a P-256 private key
        SigningError: If signing fails
    """
    _check_signing_key(private_key)

    signing_input = f"{_encode_segment(JWT_HEADER)}.{_encode_segment(claims.to_dict())}"

    try:
        der_signature = private_key.sign(signing_input.encode("ascii"), ec.ECDSA(SHA256()))
    except Exception as e:
        raise SigningError(f"VAPID signing failed: {e}") from e

    # JWS uses raw r || s, not DER
    r, s = decode_dss_signature(der_signature)
    signature = r.to_bytes(ES256_COMPONENT_SIZE, "big") + s.to_bytes(ES256_COMPONENT_SIZE, "big")

    return f"{signing_input}.{b64url_encode(signature)}"


def verify_vapid_token(token: str, public_key: ec.EllipticCurvePublicKey) -> dict:
    """
    Verify an ES256 VAPID token and return its claims.

    Expiry is not checked; callers compare `exp` against their own clock.

    Raises:
        InvalidTokenError: If the token is malformed or the signature is invalid
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise InvalidTokenError("Token must have three segments")

    try:
        header = json.loads(b64url_decode(parts[0]))
        claims = json.loads(b64url_decode(parts[1]))
        signature = b64url_decode(parts[2])
    except (InvalidInputError, ValueError) as e:
        raise InvalidTokenError(f"Malformed token: {e}") from e

    if not isinstance(header, dict) or header.get("alg") != "ES256":
        raise InvalidTokenError(f"Unsupported token header: {header!r}")

    if len(signature) != ES256_SIGNATURE_SIZE:
        raise InvalidTokenError(
            f"Signature must be {ES256_SIGNATURE_SIZE} bytes, got {len(signature)}"
        )

    r = int.from_bytes(signature[:ES256_COMPONENT_SIZE], "big")
    s = int.from_bytes(signature[ES256_COMPONENT_SIZE:], "big")
    signing_input = f"{parts[0]}.{parts[1]}".encode("ascii")

    try:
        public_key.verify(encode_dss_signature(r, s), signing_input, ec.ECDSA(SHA256()))
    except InvalidSignature as e:
        raise InvalidTokenError("Token signature does not verify") from e

    return claims


def vapid_authorization_header(token: str, public_key: ec.EllipticCurvePublicKey) -> str:
    """Format the `Authorization` header value for a signed token."""
    return f"vapid t={token}, k={b64url_encode(public_key_to_bytes(public_key))}"


def generate_vapid_key() -> ec.EllipticCurvePrivateKey:
    """Generate a new P-256 VAPID signing key."""
    return ec.generate_private_key(ec.SECP256R1())


def vapid_key_from_bytes(data: bytes) -> ec.EllipticCurvePrivateKey:
    """Load a VAPID signing key from its 32-byte raw scalar."""
    return private_key_from_bytes(data)


def vapid_key_from_pem(pem: Union[str, bytes]) -> ec.EllipticCurvePrivateKey:
    """
    Load a VAPID signing key from an unencrypted PEM (PKCS#8 or SEC1).

    Raises:
        InvalidInputError: If the PEM is invalid or not a P-256 key
    """
    if isinstance(pem, str):
        pem = pem.encode("ascii")

    try:
        private_key = load_pem_private_key(pem, password=None)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"Invalid VAPID key: {e}") from e

    _check_signing_key(private_key)
    return private_key


def application_server_key(private_key: ec.EllipticCurvePrivateKey) -> str:
    """Return the base64url public key browsers pass as `applicationServerKey`."""
    return b64url_encode(public_key_to_bytes(private_key.public_key()))


@dataclass(frozen=True)
class VapidIdentity:
    """A signing key plus contact subject for VAPID authorization."""

    private_key: ec.EllipticCurvePrivateKey
    """P-256 signing key."""

    subject: str
    """Contact URI (mailto: or https:)."""

    valid_duration: timedelta = VAPID_DEFAULT_VALIDITY
    """Lifetime of each token, at most 24 hours."""

    def __post_init__(self) -> None:
        _check_signing_key(self.private_key)
        _check_subject(self.subject)
        if self.valid_duration <= timedelta(0):
            raise ConfigurationError("VAPID validity must be positive")
        if self.valid_duration > VAPID_MAX_VALIDITY:
            raise ExpirationTooFarError(
                f"VAPID validity {self.valid_duration} exceeds {VAPID_MAX_VALIDITY}"
            )

    def claims_for(
        self,
        endpoint: str,
        now: Optional[datetime] = None,
        expiration: Optional[datetime] = None,
    ) -> VapidClaims:
        """Build claims for a push endpoint, expiring after `valid_duration` by default."""
        now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
        if expiration is None:
            expiration = now + self.valid_duration
        check_expiration(expiration, now)

        return VapidClaims(
            aud=audience_for(endpoint),
            sub=self.subject,
            exp=int(_as_utc(expiration).timestamp()),
        )

    def authorization_header(
        self,
        endpoint: str,
        now: Optional[datetime] = None,
        expiration: Optional[datetime] = None,
    ) -> str:
        """Sign a fresh token for the endpoint and format the header value."""
        claims = self.claims_for(endpoint, now=now, expiration=expiration)
        token = create_vapid_token(self.private_key, claims)
        return vapid_authorization_header(token, self.private_key.public_key())
