"""Per-request session derived from a verified token payload."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Session:
    """The authenticated caller for one request.

    ``expires_at`` is the application-level expiry (milliseconds since the
    epoch) carried in the payload's ``expiresAt`` claim. It is checked on
    its own, separately from whatever the token signature enforces.
    """

    user_id: str
    issued_at: int | None
    expires_at: int | None
    claims: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Session":
        expires_at = claims.get("expiresAt")
        issued_at = claims.get("iat")
        user_id = claims.get("id")
        return cls(
            user_id="" if user_id is None else str(user_id),
            issued_at=int(issued_at) if isinstance(issued_at, (int, float)) else None,
            expires_at=int(expires_at) if isinstance(expires_at, (int, float)) else None,
            claims=dict(claims),
        )

    def is_expired(self, now_ms: int) -> bool:
        """True if the session has no expiry or it lies before *now_ms*."""
        return self.expires_at is None or self.expires_at < now_ms
