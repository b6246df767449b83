"""JWT signing and verification backed by PyJWT.

The codec only answers "is this token ours and intact". The
application-level ``expiresAt`` check belongs to the Authenticator.
"""

import time
from collections.abc import Mapping
from typing import Any

import jwt

from perch.errors import ConfigurationError, TokenError


class TokenCodec:
    """Sign and verify session tokens with a symmetric key.

    Usage::

        codec = TokenCodec(config.secret_key)
        token = codec.issue("1234", expires_in=604800)
        claims = codec.verify(token)
    """

    __slots__ = ("_algorithm", "_secret")

    def __init__(self, secret: str, *, algorithm: str = "HS256") -> None:
        if not secret:
            msg = "TokenCodec requires a non-empty signing key (ENCRYPTION_KEY)."
            raise ConfigurationError(msg)
        self._secret = secret
        self._algorithm = algorithm

    def sign(self, payload: Mapping[str, Any]) -> str:
        return jwt.encode(dict(payload), self._secret, algorithm=self._algorithm)

    def issue(self, user_id: str, *, expires_in: float, now: float | None = None, **extra: Any) -> str:
        """Sign a session token for *user_id*.

        ``expiresAt`` is written in milliseconds, ``iat`` in seconds.
        """
        issued = time.time() if now is None else now
        payload = {
            **extra,
            "id": str(user_id),
            "iat": int(issued),
            "expiresAt": int((issued + expires_in) * 1000),
        }
        return self.sign(payload)

    def verify(self, token: str | None) -> dict[str, Any]:
        """Verify *token* and return its payload.

        Raises:
            TokenError: ``token_missing`` for an absent token,
                ``token_malformed`` when it cannot be decoded,
                ``token_invalid`` for a bad signature or rejected claim.
        """
        if not token:
            raise TokenError("token_missing", "No Authorization was found in request.cookies")
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.InvalidSignatureError:
            raise TokenError(
                "token_invalid", "Authorization token is invalid: The token signature is invalid."
            ) from None
        except jwt.DecodeError:
            raise TokenError("token_malformed", "Authorization token is malformed.") from None
        except jwt.InvalidTokenError as exc:
            raise TokenError("token_invalid", f"Authorization token is invalid: {exc}") from None
