"""Push subscription descriptor handling.

A subscription is what the browser's `PushManager.subscribe()` hands to the
application server:

    {
        "endpoint": "https://push.example.net/...",
        "expirationTime": null,
        "keys": {"auth": "<base64url 16 bytes>", "p256dh": "<base64url 65 bytes>"}
    }
"""

import json
import math
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePublicKey

from .keys import b64url_decode, b64url_encode, public_key_from_bytes
from .types import (
    AUTH_SECRET_SIZE,
    PUBLIC_KEY_SIZE,
    InvalidInputError,
    InvalidPublicKeyError,
    InvalidSubscriptionError,
)
from .vapid import audience_for


@dataclass(frozen=True)
class PushSubscription:
    """A browser push subscription."""
    endpoint: str
    p256dh: bytes  # 65-byte uncompressed P-256 point
    auth: bytes  # 16-byte auth secret
    expiration_time: Optional[int] = None  # milliseconds since epoch

    def __post_init__(self) -> None:
        try:
            audience_for(self.endpoint)
        except InvalidInputError as e:
            raise InvalidSubscriptionError(str(e)) from e

        if len(self.auth) != AUTH_SECRET_SIZE:
            raise InvalidSubscriptionError(
                f"keys.auth must be {AUTH_SECRET_SIZE} bytes, got {len(self.auth)}"
            )
        if len(self.p256dh) != PUBLIC_KEY_SIZE:
            raise InvalidSubscriptionError(
                f"keys.p256dh must be {PUBLIC_KEY_SIZE} bytes, got {len(self.p256dh)}"
            )

        try:
            public_key_from_bytes(self.p256dh)
        except InvalidPublicKeyError as e:
            raise InvalidSubscriptionError(f"keys.p256dh: {e}") from e

    def public_key(self) -> EllipticCurvePublicKey:
        """Returns the user agent public key."""
        return public_key_from_bytes(self.p256dh)

    @classmethod
    def from_dict(cls, data: dict) -> "PushSubscription":
        """
        Parse a subscription from its JSON-shaped mapping.

        Raises:
            InvalidSubscriptionError: If fields are missing, mistyped, or the wrong length
        """
        if not isinstance(data, dict):
            raise InvalidSubscriptionError("Subscription must be a JSON object")

        endpoint = data.get("endpoint")
        if not isinstance(endpoint, str):
            raise InvalidSubscriptionError("Missing endpoint")

        keys = data.get("keys")
        if not isinstance(keys, dict):
            raise InvalidSubscriptionError("Missing keys")

        auth = keys.get("auth")
        p256dh = keys.get("p256dh")
        if not isinstance(auth, str):
            raise InvalidSubscriptionError("Missing keys.auth")
        if not isinstance(p256dh, str):
            raise InvalidSubscriptionError("Missing keys.p256dh")

        expiration_time = data.get("expirationTime")
        if expiration_time is not None:
            if isinstance(expiration_time, bool) or not isinstance(expiration_time, (int, float)):
                raise InvalidSubscriptionError("expirationTime must be null or a number")
            if isinstance(expiration_time, float) and not math.isfinite(expiration_time):
                raise InvalidSubscriptionError("expirationTime must be a finite number")
            expiration_time = int(expiration_time)

        try:
            auth_bytes = b64url_decode(auth)
            p256dh_bytes = b64url_decode(p256dh)
        except InvalidInputError as e:
            raise InvalidSubscriptionError(str(e)) from e

        return cls(
            endpoint=endpoint,
            p256dh=p256dh_bytes,
            auth=auth_bytes,
            expiration_time=expiration_time,
        )

    @classmethod
    def from_json(cls, text: str) -> "PushSubscription":
        """Parse a subscription from a JSON string."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidSubscriptionError(f"Invalid subscription JSON: {e}") from e
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "expirationTime": self.expiration_time,
            "keys": {
                "auth": b64url_encode(self.auth),
                "p256dh": b64url_encode(self.p256dh),
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
