"""
Infrastructure adapter: python-jose HS256 JWT → ISessionTokenService.

The dashboard has a single user; the token only proves that the cookie was
issued by this server within the session lifetime.
"""

import time
from typing import Callable

from jose import JWTError, jwt

from btc_tracker.domain.ports.session_token_port import ISessionTokenService


class JoseSessionTokenService(ISessionTokenService):
    ALGORITHM = "HS256"

    def __init__(
        self,
        secret: str,
        max_age_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self._max_age_seconds = max_age_seconds
        self._clock = clock

    def issue(self, username: str) -> str:
        issued_at = int(self._clock())
        claims = {
            "sub": username,
            "iat": issued_at,
            "exp": issued_at + self._max_age_seconds,
        }
        return jwt.encode(claims, self._secret, algorithm=self.ALGORITHM)

    def validate(self, token: str) -> dict:
        """Decode and verify a session token.

        Raises:
            ValueError: on a bad signature, malformed token, expiry, or missing subject.
        """
        if not token:
            raise ValueError("Missing session token")
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise ValueError(f"Session validation failed: {exc}") from exc

        if not claims.get("sub"):
            raise ValueError("Session token has no subject")
        expires_at = claims.get("exp")
        if not isinstance(expires_at, (int, float)) or self._clock() > expires_at:
            raise ValueError("Session expired")
        return claims
