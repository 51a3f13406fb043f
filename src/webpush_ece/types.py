"""Constants and exception types for Web Push message encryption."""

from datetime import timedelta


# Key and secret sizes
AUTH_SECRET_SIZE = 16
SALT_SIZE = 16
PUBLIC_KEY_SIZE = 65  # uncompressed P-256 point: 0x04 || X || Y
PRIVATE_KEY_SIZE = 32
SHARED_SECRET_SIZE = 32
IKM_SIZE = 32
CEK_SIZE = 16
NONCE_SIZE = 12
TAG_SIZE = 16

# aes128gcm record layout
RECORD_SIZE_FIELD_SIZE = 4
KEY_ID_LENGTH_FIELD_SIZE = 1
FIXED_HEADER_SIZE = SALT_SIZE + RECORD_SIZE_FIELD_SIZE + KEY_ID_LENGTH_FIELD_SIZE  # 21
HEADER_SIZE = FIXED_HEADER_SIZE + PUBLIC_KEY_SIZE  # 86
LAST_RECORD_DELIMITER = 0x02
MIN_RECORD_SIZE = TAG_SIZE + 2
MAX_RECORD_SIZE = 2**32 - 1
DEFAULT_RECORD_SIZE = 4096

# HKDF info strings
WEBPUSH_INFO = b"WebPush: info\x00"
CEK_INFO = b"Content-Encoding: aes128gcm\x00"
NONCE_INFO = b"Content-Encoding: nonce\x00"

# HTTP header values
CONTENT_ENCODING = "aes128gcm"
CONTENT_TYPE = "application/octet-stream"
DEFAULT_TTL = 28 * 24 * 60 * 60
MAX_TOPIC_LENGTH = 32

# VAPID
VAPID_DEFAULT_VALIDITY = timedelta(hours=12)
VAPID_MAX_VALIDITY = timedelta(hours=24)


# Exception types
class WebPushError(Exception):
    """Base exception for Web Push errors."""
    pass


class InvalidInputError(WebPushError):
    """Malformed input such as a wrong-length secret or a bad endpoint URL."""
    pass


class InvalidSubscriptionError(InvalidInputError):
    """Malformed push subscription descriptor."""
    pass


class CryptoError(WebPushError):
    """Cryptographic operation failed."""
    pass


class InvalidPublicKeyError(CryptoError):
    """Public key is not a valid uncompressed P-256 point."""
    pass


class AuthenticationFailedError(CryptoError):
    """AEAD tag did not verify."""
    pass


class MalformedPaddingError(CryptoError):
    """Decrypted record does not end with a valid padding delimiter."""
    pass


class MalformedRecordError(CryptoError):
    """Encrypted record header or length is structurally invalid."""
    pass


class InvalidTokenError(CryptoError):
    """VAPID token is malformed or its signature does not verify."""
    pass


class PayloadTooLargeError(WebPushError):
    """Plaintext does not fit in a single record."""

    def __init__(self, size: int, max_size: int) -> None:
        self.size = size
        self.max_size = max_size
        super().__init__(f"Plaintext too large: {size} bytes (max {max_size})")


class ConfigurationError(WebPushError):
    """Invalid configuration value."""
    pass


class InvalidRecordSizeError(ConfigurationError):
    """Record size is outside the supported range."""
    pass


class ExpirationTooFarError(ConfigurationError):
    """VAPID expiration is more than 24 hours after issuance."""
    pass


class SigningError(WebPushError):
    """Token signing failed."""
    pass
