"""Single-record aes128gcm framing (RFC 8188) for Web Push."""

import logging
from dataclasses import dataclass
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .types import (
    SALT_SIZE,
    PUBLIC_KEY_SIZE,
    CEK_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    FIXED_HEADER_SIZE,
    HEADER_SIZE,
    LAST_RECORD_DELIMITER,
    MIN_RECORD_SIZE,
    MAX_RECORD_SIZE,
    DEFAULT_RECORD_SIZE,
    InvalidInputError,
    InvalidRecordSizeError,
    PayloadTooLargeError,
    AuthenticationFailedError,
    MalformedPaddingError,
    MalformedRecordError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordHeader:
    """aes128gcm content-coding header."""
    salt: bytes  # 16 bytes
    record_size: int  # uint32, bounds ciphertext + tag
    key_id: bytes  # 65 bytes, sender public key


def check_record_size(record_size: int) -> None:
    """
    Validate a configured record size.

    Raises:
        InvalidRecordSizeError: If the size cannot hold a delimiter and a tag,
            or does not fit the 32-bit header field
    """
    if isinstance(record_size, bool) or not isinstance(record_size, int):
        raise InvalidRecordSizeError(f"Record size must be an integer, got {record_size!r}")
    if record_size < MIN_RECORD_SIZE:
        raise InvalidRecordSizeError(
            f"Record size too small: {record_size} (minimum {MIN_RECORD_SIZE})"
        )
    if record_size > MAX_RECORD_SIZE:
        raise InvalidRecordSizeError(
            f"Record size too large: {record_size} (maximum {MAX_RECORD_SIZE})"
        )


def max_plaintext_size(record_size: int, padding: int = 0) -> int:
    """Largest plaintext that fits a single record of the given size."""
    check_record_size(record_size)
    return record_size - TAG_SIZE - 1 - padding


def encode_header(salt: bytes, record_size: int, key_id: bytes) -> bytes:
    """
    Encode the record header.

    Format (86 bytes with a P-256 key id):
        [0-15]   salt (16 bytes)
        [16-19]  rs (uint32, big-endian)
        [20]     idlen (65)
        [21-85]  keyid (sender public key, 65 bytes)

    Args:
        salt: 16-byte salt
        record_size: Record size to advertise
        key_id: Sender public key

    Returns:
        Encoded header bytes
    """
    if len(salt) != SALT_SIZE:
        raise InvalidInputError(f"Salt must be {SALT_SIZE} bytes, got {len(salt)}")
    if len(key_id) != PUBLIC_KEY_SIZE:
        raise InvalidInputError(
            f"Key id must be {PUBLIC_KEY_SIZE} bytes, got {len(key_id)}"
        )
    check_record_size(record_size)

    return (
        salt
        + record_size.to_bytes(4, byteorder="big")
        + bytes([len(key_id)])
        + key_id
    )


def decode_header(data: bytes) -> Tuple[RecordHeader, bytes]:
    """
    Split an encrypted record into its header and ciphertext.

    Only structure is checked here; no key material is involved.

    Args:
        data: Encrypted record bytes

    Returns:
        Tuple of (RecordHeader, ciphertext including tag)

    Raises:
        MalformedRecordError: If the header or the record length is invalid
    """
    if len(data) < FIXED_HEADER_SIZE:
        raise MalformedRecordError(
            f"Data too short: {len(data)} bytes (minimum {FIXED_HEADER_SIZE})"
        )

    salt = bytes(data[0:SALT_SIZE])
    record_size = int.from_bytes(data[SALT_SIZE : SALT_SIZE + 4], byteorder="big")
    key_id_length = data[FIXED_HEADER_SIZE - 1]

    if key_id_length != PUBLIC_KEY_SIZE:
        raise MalformedRecordError(
            f"Unexpected key id length: {key_id_length} (expected {PUBLIC_KEY_SIZE})"
        )

    if len(data) < HEADER_SIZE:
        raise MalformedRecordError(
            f"Data too short for key id: {len(data)} bytes (minimum {HEADER_SIZE})"
        )

    if record_size < MIN_RECORD_SIZE:
        raise MalformedRecordError(f"Invalid record size: {record_size}")

    key_id = bytes(data[FIXED_HEADER_SIZE:HEADER_SIZE])
    ciphertext = bytes(data[HEADER_SIZE:])

    if len(ciphertext) < TAG_SIZE + 1:
        raise MalformedRecordError(
            f"Ciphertext too short: {len(ciphertext)} bytes (minimum {TAG_SIZE + 1})"
        )

    if len(ciphertext) > record_size:
        raise MalformedRecordError(
            f"Ciphertext of {len(ciphertext)} bytes exceeds record size {record_size}; "
            "multi-record content is not supported"
        )

    return RecordHeader(salt=salt, record_size=record_size, key_id=key_id), ciphertext


def pad_plaintext(plaintext: bytes, padding: int = 0) -> bytes:
    """Append the last-record delimiter followed by `padding` zero bytes."""
    if padding < 0:
        raise InvalidInputError(f"Padding must not be negative, got {padding}")
    return plaintext + bytes([LAST_RECORD_DELIMITER]) + bytes(padding)


def unpad_plaintext(padded: bytes) -> bytes:
    """
    Strip trailing zero padding and the last-record delimiter.

    Raises:
        MalformedPaddingError: If the last non-zero byte is not 0x02
    """
    stripped = padded.rstrip(b"\x00")
    if not stripped:
        raise MalformedPaddingError("Record contains only padding")
    if stripped[-1] != LAST_RECORD_DELIMITER:
        raise MalformedPaddingError(
            f"Unexpected padding delimiter: 0x{stripped[-1]:02x}"
        )
    return stripped[:-1]


def encode_record(
    plaintext: bytes,
    cek: bytes,
    nonce: bytes,
    salt: bytes,
    sender_public_key: bytes,
    record_size: int = DEFAULT_RECORD_SIZE,
    padding: int = 0,
) -> bytes:
    """
    Encrypt plaintext into a single aes128gcm record.

    Args:
        plaintext: Message payload
        cek: 16-byte content-encryption key
        nonce: 12-byte nonce
        salt: 16-byte salt used to derive cek and nonce
        sender_public_key: Sender public key (65 bytes), written as the key id
        record_size: Record size to advertise and enforce
        padding: Number of zero bytes to append after the delimiter

    Returns:
        header || ciphertext || tag

    Raises:
        InvalidRecordSizeError: If record_size is out of range
        PayloadTooLargeError: If the padded plaintext and tag exceed record_size
    """
    check_record_size(record_size)
    if len(cek) != CEK_SIZE:
        raise InvalidInputError(f"CEK must be {CEK_SIZE} bytes, got {len(cek)}")
    if len(nonce) != NONCE_SIZE:
        raise InvalidInputError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    if padding < 0:
        raise InvalidInputError(f"Padding must not be negative, got {padding}")

    limit = record_size - TAG_SIZE - 1 - padding
    if len(plaintext) > limit:
        raise PayloadTooLargeError(len(plaintext), max(limit, 0))

    header = encode_header(salt, record_size, sender_public_key)
    ciphertext = AESGCM(cek).encrypt(nonce, pad_plaintext(plaintext, padding), None)

    logger.debug(
        "Encoded aes128gcm record: %d plaintext bytes, %d padding, rs=%d",
        len(plaintext),
        padding,
        record_size,
    )
    return header + ciphertext


def decrypt_record(ciphertext: bytes, cek: bytes, nonce: bytes) -> bytes:
    """
    Decrypt a single record body and remove its padding.

    Args:
        ciphertext: Ciphertext including the 16-byte tag
        cek: 16-byte content-encryption key
        nonce: 12-byte nonce

    Returns:
        The plaintext

    Raises:
        AuthenticationFailedError: If the tag does not verify
        MalformedPaddingError: If the padding is invalid
    """
    try:
        padded = AESGCM(cek).decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise AuthenticationFailedError("Record authentication failed") from e

    return unpad_plaintext(padded)
