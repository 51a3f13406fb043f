"""Models for outgoing Web Push messages."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Urgency(Enum):
    """Message urgency (RFC 8030 section 5.3)."""
    VERY_LOW = "very-low"
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


@dataclass(frozen=True)
class PushMessage:
    """An encrypted push message ready to POST to the push service."""
    endpoint: str
    body: bytes
    headers: dict = field(default_factory=dict)
    method: str = "POST"

    def into_body(self) -> bytes:
        """Returns the encrypted record."""
        return self.body

    def header(self, name: str) -> Optional[str]:
        """Looks up a header value case-insensitively."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None
