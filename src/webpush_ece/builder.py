"""
Web Push message builder.

The WebPushBuilder holds everything needed to encrypt messages for one
subscription and turns plaintext into a PushMessage ready to POST.

Example usage:
    ```python
    builder = WebPushBuilder.from_json(subscription_json).with_vapid(
        vapid_key, "mailto:ops@example.com"
    )
    message = builder.build(b'{"title": "Hello"}')
    requests.post(message.endpoint, data=message.body, headers=message.headers)
    ```
"""

import logging
import os
import re
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional, Union

from cryptography.hazmat.primitives.asymmetric import ec

from .crypto import encrypt_predictably
from .keys import generate_ephemeral_keypair
from .models import PushMessage, Urgency
from .record import check_record_size
from .subscription import PushSubscription
from .types import (
    AUTH_SECRET_SIZE,
    SALT_SIZE,
    TAG_SIZE,
    CONTENT_ENCODING,
    CONTENT_TYPE,
    DEFAULT_RECORD_SIZE,
    DEFAULT_TTL,
    MAX_TOPIC_LENGTH,
    VAPID_DEFAULT_VALIDITY,
    ConfigurationError,
    InvalidInputError,
    InvalidPublicKeyError,
)
from .vapid import VapidIdentity, audience_for

logger = logging.getLogger(__name__)

_TOPIC_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True)
class WebPushBuilder:
    """Immutable encryption configuration for one push subscription."""

    endpoint: str
    """Push service URL for the subscription."""

    ua_public: ec.EllipticCurvePublicKey
    """User agent P-256 public key (p256dh)."""

    auth: bytes
    """16-byte subscription auth secret."""

    vapid: Optional[VapidIdentity] = None
    """Signing identity; adds an Authorization header when set."""

    ttl: Optional[int] = None
    """Seconds the push service should keep the message (default DEFAULT_TTL)."""

    urgency: Optional[Urgency] = None
    """Urgency header value."""

    topic: Optional[str] = None
    """Topic header value; replaces pending messages with the same topic."""

    record_size: int = DEFAULT_RECORD_SIZE
    """aes128gcm record size, bounding the plaintext size."""

    padding: int = 0
    """Zero bytes appended after the delimiter to hide the plaintext length."""

    def __post_init__(self) -> None:
        audience_for(self.endpoint)

        if not isinstance(self.ua_public, ec.EllipticCurvePublicKey) or not isinstance(
            self.ua_public.curve, ec.SECP256R1
        ):
            raise InvalidPublicKeyError("User agent key must be a P-256 public key")

        if not isinstance(self.auth, bytes):
            raise InvalidInputError(f"Auth secret must be bytes, got {type(self.auth).__name__}")
        if len(self.auth) != AUTH_SECRET_SIZE:
            raise InvalidInputError(
                f"Auth secret must be {AUTH_SECRET_SIZE} bytes, got {len(self.auth)}"
            )

        if self.ttl is not None and (
            isinstance(self.ttl, bool) or not isinstance(self.ttl, int) or self.ttl < 0
        ):
            raise ConfigurationError(f"TTL must be a non-negative integer, got {self.ttl!r}")

        if isinstance(self.urgency, str):
            try:
                object.__setattr__(self, "urgency", Urgency(self.urgency))
            except ValueError as e:
                raise ConfigurationError(f"Invalid urgency: {self.urgency!r}") from e
        elif self.urgency is not None and not isinstance(self.urgency, Urgency):
            raise ConfigurationError(f"Invalid urgency: {self.urgency!r}")

        if self.topic is not None and (
            not isinstance(self.topic, str)
            or len(self.topic) > MAX_TOPIC_LENGTH
            or not _TOPIC_PATTERN.match(self.topic)
        ):
            raise ConfigurationError(
                f"Topic must be 1-{MAX_TOPIC_LENGTH} base64url characters, got {self.topic!r}"
            )

        check_record_size(self.record_size)

        if isinstance(self.padding, bool) or not isinstance(self.padding, int):
            raise ConfigurationError(f"Padding must be an integer, got {self.padding!r}")
        if self.padding < 0 or self.padding + 1 + TAG_SIZE > self.record_size:
            raise ConfigurationError(
                f"Padding of {self.padding} bytes does not fit record size {self.record_size}"
            )

    @classmethod
    def from_subscription(cls, subscription: PushSubscription) -> "WebPushBuilder":
        """Creates a builder from a parsed subscription."""
        return cls(
            endpoint=subscription.endpoint,
            ua_public=subscription.public_key(),
            auth=subscription.auth,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "WebPushBuilder":
        """Creates a builder from a JSON-shaped subscription mapping."""
        return cls.from_subscription(PushSubscription.from_dict(data))

    @classmethod
    def from_json(cls, text: str) -> "WebPushBuilder":
        """Creates a builder from subscription JSON."""
        return cls.from_subscription(PushSubscription.from_json(text))

    def with_vapid(
        self,
        private_key: ec.EllipticCurvePrivateKey,
        subject: str,
        valid_duration: timedelta = VAPID_DEFAULT_VALIDITY,
    ) -> "WebPushBuilder":
        """Returns a copy that signs each message with the given VAPID identity."""
        identity = VapidIdentity(
            private_key=private_key,
            subject=subject,
            valid_duration=valid_duration,
        )
        return replace(self, vapid=identity)

    def with_ttl(self, ttl: int) -> "WebPushBuilder":
        return replace(self, ttl=ttl)

    def with_urgency(self, urgency: Union[Urgency, str]) -> "WebPushBuilder":
        return replace(self, urgency=urgency)

    def with_topic(self, topic: str) -> "WebPushBuilder":
        return replace(self, topic=topic)

    def with_record_size(self, record_size: int) -> "WebPushBuilder":
        return replace(self, record_size=record_size)

    def with_padding(self, padding: int) -> "WebPushBuilder":
        return replace(self, padding=padding)

    def build_headers(self, now: Optional[datetime] = None) -> dict:
        """Returns the HTTP headers for a message, signing a VAPID token if configured."""
        headers = {
            "Content-Encoding": CONTENT_ENCODING,
            "Content-Type": CONTENT_TYPE,
            "TTL": str(self.ttl if self.ttl is not None else DEFAULT_TTL),
        }
        if self.urgency is not None:
            headers["Urgency"] = self.urgency.value
        if self.topic is not None:
            headers["Topic"] = self.topic
        if self.vapid is not None:
            headers["Authorization"] = self.vapid.authorization_header(self.endpoint, now=now)
        return headers

    def build(
        self,
        plaintext: Union[bytes, str],
        *,
        salt: Optional[bytes] = None,
        ephemeral_key: Optional[ec.EllipticCurvePrivateKey] = None,
        now: Optional[datetime] = None,
    ) -> PushMessage:
        """
        Encrypt a payload into a push message.

        A fresh salt and ephemeral key are drawn for every call unless given
        explicitly. Supplying them is meant for reproducible tests only.

        Args:
            plaintext: Payload bytes (str is encoded as UTF-8)
            salt: Optional 16-byte salt
            ephemeral_key: Optional sender P-256 private key
            now: Optional issuance time for the VAPID token

        Returns:
            PushMessage with the encrypted body and headers

        Raises:
            PayloadTooLargeError: If the payload does not fit the record size
            ExpirationTooFarError: If the VAPID token would outlive 24 hours
            SigningError: If VAPID signing fails
        """
        if isinstance(plaintext, str):
            plaintext = plaintext.encode("utf-8")
        if salt is None:
            salt = os.urandom(SALT_SIZE)
        if ephemeral_key is None:
            ephemeral_key, _ = generate_ephemeral_keypair()

        body = encrypt_predictably(
            salt,
            plaintext,
            ephemeral_key,
            self.ua_public,
            self.auth,
            record_size=self.record_size,
            padding=self.padding,
        )
        headers = self.build_headers(now=now)

        logger.debug(
            "Built push message for %s: %d body bytes, vapid=%s",
            audience_for(self.endpoint),
            len(body),
            self.vapid is not None,
        )
        return PushMessage(endpoint=self.endpoint, body=body, headers=headers)
