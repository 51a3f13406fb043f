"""Encryption and decryption of Web Push payloads."""

import logging
import os

from cryptography.hazmat.primitives.asymmetric.ec import (
    EllipticCurvePrivateKey,
    EllipticCurvePublicKey,
)

from .types import (
    AUTH_SECRET_SIZE,
    SALT_SIZE,
    DEFAULT_RECORD_SIZE,
    InvalidInputError,
    AuthenticationFailedError,
)
from .keys import (
    generate_ephemeral_keypair,
    p256_ecdh,
    public_key_to_bytes,
    public_key_from_bytes,
)
from .derivation import compute_ikm, derive_cek_and_nonce
from .record import decode_header, decrypt_record, encode_record

logger = logging.getLogger(__name__)


def encrypt_predictably(
    salt: bytes,
    plaintext: bytes,
    as_private_key: EllipticCurvePrivateKey,
    ua_public_key: EllipticCurvePublicKey,
    auth_secret: bytes,
    record_size: int = DEFAULT_RECORD_SIZE,
    padding: int = 0,
) -> bytes:
    """
    Encrypt a payload with caller-supplied salt and sender key.

    The output is fully determined by the inputs. Never call this twice with
    the same salt and sender key outside of tests.

    Args:
        salt: 16-byte salt
        plaintext: Payload to encrypt
        as_private_key: Application server (sender) private key
        ua_public_key: User agent (receiver) public key
        auth_secret: 16-byte subscription auth secret
        record_size: Record size to advertise and enforce
        padding: Zero bytes to append after the delimiter

    Returns:
        The encrypted aes128gcm record
    """
    if len(salt) != SALT_SIZE:
        raise InvalidInputError(f"Salt must be {SALT_SIZE} bytes, got {len(salt)}")
    if len(auth_secret) != AUTH_SECRET_SIZE:
        raise InvalidInputError(
            f"Auth secret must be {AUTH_SECRET_SIZE} bytes, got {len(auth_secret)}"
        )

    as_public_bytes = public_key_to_bytes(as_private_key.public_key())
    ua_public_bytes = public_key_to_bytes(ua_public_key)

    shared_secret = p256_ecdh(as_private_key, ua_public_key)
    ikm = compute_ikm(auth_secret, shared_secret, ua_public_bytes, as_public_bytes)
    cek, nonce = derive_cek_and_nonce(ikm, salt)

    return encode_record(
        plaintext,
        cek,
        nonce,
        salt,
        as_public_bytes,
        record_size=record_size,
        padding=padding,
    )


def encrypt(
    plaintext: bytes,
    ua_public_key: EllipticCurvePublicKey,
    auth_secret: bytes,
    record_size: int = DEFAULT_RECORD_SIZE,
    padding: int = 0,
) -> bytes:
    """
    Encrypt a payload with a fresh salt and ephemeral sender key.

    Args:
        plaintext: Payload to encrypt
        ua_public_key: User agent (receiver) public key
        auth_secret: 16-byte subscription auth secret
        record_size: Record size to advertise and enforce
        padding: Zero bytes to append after the delimiter

    Returns:
        The encrypted aes128gcm record
    """
    salt = os.urandom(SALT_SIZE)
    ephemeral_private, _ = generate_ephemeral_keypair()
    return encrypt_predictably(
        salt,
        plaintext,
        ephemeral_private,
        ua_public_key,
        auth_secret,
        record_size=record_size,
        padding=padding,
    )


def decrypt(
    data: bytes,
    ua_private_key: EllipticCurvePrivateKey,
    auth_secret: bytes,
) -> bytes:
    """
    Decrypt an aes128gcm record as the user agent.

    The header is validated before any key agreement or AEAD work.

    Args:
        data: Encrypted record (header || ciphertext || tag)
        ua_private_key: User agent static private key
        auth_secret: 16-byte subscription auth secret

    Returns:
        The plaintext

    Raises:
        MalformedRecordError: If the header is invalid
        InvalidPublicKeyError: If the key id is not a valid P-256 point
        AuthenticationFailedError: If the tag does not verify
        MalformedPaddingError: If the padding is invalid
    """
    if len(auth_secret) != AUTH_SECRET_SIZE:
        raise InvalidInputError(
            f"Auth secret must be {AUTH_SECRET_SIZE} bytes, got {len(auth_secret)}"
        )

    header, ciphertext = decode_header(data)
    as_public_key = public_key_from_bytes(header.key_id)
    ua_public_bytes = public_key_to_bytes(ua_private_key.public_key())

    shared_secret = p256_ecdh(ua_private_key, as_public_key)
    ikm = compute_ikm(auth_secret, shared_secret, ua_public_bytes, header.key_id)
    cek, nonce = derive_cek_and_nonce(ikm, header.salt)

    try:
        plaintext = decrypt_record(ciphertext, cek, nonce)
    except AuthenticationFailedError:
        logger.warning("Rejected push record: authentication failed")
        raise

    logger.debug("Decrypted aes128gcm record: %d plaintext bytes", len(plaintext))
    return plaintext
