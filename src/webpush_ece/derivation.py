"""Key derivation for Web Push message encryption (RFC 8291).

Two chained HKDF-SHA256 stages:
    - IKM: auth secret + ECDH shared secret + both public keys (per subscription)
    - CEK and nonce: IKM + per-message salt
"""

from typing import Tuple

from cryptography.hazmat.primitives import hmac
from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.kdf.hkdf import HKDFExpand

from .types import (
    AUTH_SECRET_SIZE,
    SALT_SIZE,
    PUBLIC_KEY_SIZE,
    IKM_SIZE,
    CEK_SIZE,
    NONCE_SIZE,
    WEBPUSH_INFO,
    CEK_INFO,
    NONCE_INFO,
    InvalidInputError,
)


def _hkdf_extract(salt: bytes, ikm: bytes) -> bytes:
    """HKDF-Extract: HMAC-SHA256 keyed with the salt over the input keying material."""
    h = hmac.HMAC(salt, SHA256())
    h.update(ikm)
    return h.finalize()


def _hkdf_expand(prk: bytes, info: bytes, length: int) -> bytes:
    return HKDFExpand(algorithm=SHA256(), length=length, info=info).derive(prk)


def _check_length(name: str, value: bytes, size: int) -> None:
    if len(value) != size:
        raise InvalidInputError(f"{name} must be {size} bytes, got {len(value)}")


def compute_ikm(
    auth_secret: bytes,
    shared_secret: bytes,
    receiver_public_key: bytes,
    sender_public_key: bytes,
) -> bytes:
    """
    Derive the input keying material from the ECDH secret and the auth secret.

    Args:
        auth_secret: The subscription's 16-byte auth secret
        shared_secret: Raw P-256 ECDH output
        receiver_public_key: User agent public key (65-byte uncompressed point)
        sender_public_key: Application server public key (65-byte uncompressed point)

    Returns:
        32-byte IKM

    Raises:
        InvalidInputError: If any input has the wrong length
    """
    _check_length("Auth secret", auth_secret, AUTH_SECRET_SIZE)
    _check_length("Receiver public key", receiver_public_key, PUBLIC_KEY_SIZE)
    _check_length("Sender public key", sender_public_key, PUBLIC_KEY_SIZE)

    prk = _hkdf_extract(auth_secret, shared_secret)
    info = WEBPUSH_INFO + receiver_public_key + sender_public_key
    return _hkdf_expand(prk, info, IKM_SIZE)


def derive_cek_and_nonce(ikm: bytes, salt: bytes) -> Tuple[bytes, bytes]:
    """
    Derive the content-encryption key and nonce for one record.

    Args:
        ikm: 32-byte input keying material from compute_ikm
        salt: The message's 16-byte salt

    Returns:
        Tuple of (16-byte CEK, 12-byte nonce)

    Raises:
        InvalidInputError: If the salt has the wrong length
    """
    _check_length("Salt", salt, SALT_SIZE)

    prk = _hkdf_extract(salt, ikm)
    cek = _hkdf_expand(prk, CEK_INFO, CEK_SIZE)
    nonce = _hkdf_expand(prk, NONCE_INFO, NONCE_SIZE)
    return cek, nonce
