"""
webpush-ece - Web Push message encryption

Python implementation of RFC 8291 payload encryption (P-256 ECDH + HKDF +
single-record aes128gcm) with RFC 8292 VAPID authorization.
"""

from .keys import (
    generate_ephemeral_keypair,
    p256_ecdh,
    public_key_to_bytes,
    public_key_from_bytes,
    private_key_to_bytes,
    private_key_from_bytes,
    b64url_encode,
    b64url_decode,
)
from .derivation import compute_ikm, derive_cek_and_nonce
from .record import (
    RecordHeader,
    encode_header,
    decode_header,
    encode_record,
    decrypt_record,
    max_plaintext_size,
)
from .crypto import encrypt, encrypt_predictably, decrypt
from .vapid import (
    VapidClaims,
    VapidIdentity,
    audience_for,
    create_vapid_token,
    verify_vapid_token,
    vapid_authorization_header,
    generate_vapid_key,
    vapid_key_from_bytes,
    vapid_key_from_pem,
    application_server_key,
)
from .subscription import PushSubscription
from .models import Urgency, PushMessage
from .builder import WebPushBuilder
from .types import (
    AUTH_SECRET_SIZE,
    SALT_SIZE,
    PUBLIC_KEY_SIZE,
    TAG_SIZE,
    HEADER_SIZE,
    DEFAULT_RECORD_SIZE,
    DEFAULT_TTL,
    WebPushError,
    InvalidInputError,
    InvalidSubscriptionError,
    CryptoError,
    InvalidPublicKeyError,
    AuthenticationFailedError,
    MalformedPaddingError,
    MalformedRecordError,
    InvalidTokenError,
    PayloadTooLargeError,
    ConfigurationError,
    InvalidRecordSizeError,
    ExpirationTooFarError,
    SigningError,
)

__version__ = "0.1.0"

__all__ = [
    # Keys
    "generate_ephemeral_keypair",
    "p256_ecdh",
    "public_key_to_bytes",
    "public_key_from_bytes",
    "private_key_to_bytes",
    "private_key_from_bytes",
    "b64url_encode",
    "b64url_decode",
    # Derivation
    "compute_ikm",
    "derive_cek_and_nonce",
    # Record
    "RecordHeader",
    "encode_header",
    "decode_header",
    "encode_record",
    "decrypt_record",
    "max_plaintext_size",
    # Crypto
    "encrypt",
    "encrypt_predictably",
    "decrypt",
    # VAPID
    "VapidClaims",
    "VapidIdentity",
    "audience_for",
    "create_vapid_token",
    "verify_vapid_token",
    "vapid_authorization_header",
    "generate_vapid_key",
    "vapid_key_from_bytes",
    "vapid_key_from_pem",
    "application_server_key",
    # Subscription
    "PushSubscription",
    # Models
    "Urgency",
    "PushMessage",
    # Builder
    "WebPushBuilder",
    # Constants
    "AUTH_SECRET_SIZE",
    "SALT_SIZE",
    "PUBLIC_KEY_SIZE",
    "TAG_SIZE",
    "HEADER_SIZE",
    "DEFAULT_RECORD_SIZE",
    "DEFAULT_TTL",
    # Errors
    "WebPushError",
    "InvalidInputError",
    "InvalidSubscriptionError",
    "CryptoError",
    "InvalidPublicKeyError",
    "AuthenticationFailedError",
    "MalformedPaddingError",
    "MalformedRecordError",
    "InvalidTokenError",
    "PayloadTooLargeError",
    "ConfigurationError",
    "InvalidRecordSizeError",
    "ExpirationTooFarError",
    "SigningError",
]
