"""P-256 key handling and ECDH key agreement for Web Push."""

import base64
import binascii
from typing import Tuple

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .types import (
    PUBLIC_KEY_SIZE,
    PRIVATE_KEY_SIZE,
    InvalidInputError,
    InvalidPublicKeyError,
)


CURVE = ec.SECP256R1()


def generate_ephemeral_keypair() -> Tuple[ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey]:
    """
    Generate a random P-256 key pair for encrypting a single message.

    Returns:
        Tuple of (private_key, public_key)
    """
    private_key = ec.generate_private_key(CURVE)
    public_key = private_key.public_key()
    return private_key, public_key


def p256_ecdh(private_key: ec.EllipticCurvePrivateKey, public_key: ec.EllipticCurvePublicKey) -> bytes:
    """
    Perform P-256 ECDH key agreement.

    Args:
        private_key: Our private key (ephemeral when sending, static when receiving)
        public_key: Their public key

    Returns:
        32-byte shared secret (X coordinate of the shared point)

    Raises:
        InvalidPublicKeyError: If the keys are not on the same curve
    """
    try:
        return private_key.exchange(ec.ECDH(), public_key)
    except (ValueError, InvalidKey) as e:
        raise InvalidPublicKeyError(f"Key agreement failed: {e}") from e


def public_key_to_bytes(public_key: ec.EllipticCurvePublicKey) -> bytes:
    """Convert a P-256 public key to its 65-byte uncompressed point."""
    return public_key.public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)


def public_key_from_bytes(data: bytes) -> ec.EllipticCurvePublicKey:
    """
    Create a P-256 public key from an uncompressed point.

    Raises:
        InvalidPublicKeyError: If the data is not a valid uncompressed point
    """
    if len(data) != PUBLIC_KEY_SIZE:
        raise InvalidPublicKeyError(
            f"Public key must be {PUBLIC_KEY_SIZE} bytes, got {len(data)}"
        )
    if data[0] != 0x04:
        raise InvalidPublicKeyError("Public key must be an uncompressed point")

    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(CURVE, bytes(data))
    except ValueError as e:
        raise InvalidPublicKeyError(f"Invalid public key: {e}") from e


def private_key_to_bytes(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    """Convert a P-256 private key to its 32-byte raw scalar."""
    return private_key.private_numbers().private_value.to_bytes(PRIVATE_KEY_SIZE, "big")


def private_key_from_bytes(data: bytes) -> ec.EllipticCurvePrivateKey:
    """
    Create a P-256 private key from a 32-byte raw scalar.

    Raises:
        InvalidInputError: If the scalar has the wrong length or is out of range
    """
    if len(data) != PRIVATE_KEY_SIZE:
        raise InvalidInputError(
            f"Private key must be {PRIVATE_KEY_SIZE} bytes, got {len(data)}"
        )

    try:
        return ec.derive_private_key(int.from_bytes(data, "big"), CURVE)
    except ValueError as e:
        raise InvalidInputError(f"Invalid private key: {e}") from e


def b64url_encode(data: bytes) -> str:
    """URL-safe base64 encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    """
    Decode URL-safe base64, with or without padding.

    Standard base64 characters are accepted as well, since some browsers
    and libraries hand out subscription keys in that alphabet.

    Raises:
        InvalidInputError: If the text is not valid base64
    """
    text = text.strip().replace("+", "-").replace("/", "_").rstrip("=")
    padding = 4 - len(text) % 4
    if padding != 4:
        text += "=" * padding

    try:
        return base64.urlsafe_b64decode(text.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as e:
        raise InvalidInputError(f"Invalid base64url data: {e}") from e
