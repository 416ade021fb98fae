"""
Use-case: single-user login that issues a session token.
Depends only on the ISessionTokenService port; no infrastructure imports.
"""

import hmac

from btc_tracker.domain.ports.session_token_port import ISessionTokenService


class AuthenticateUserUseCase:
    def __init__(
        self, username: str, password: str, tokens: ISessionTokenService
    ) -> None:
        self._username = username
        self._password = password
        self._tokens = tokens

    def execute(self, username: str, password: str) -> str:
        """Check the credentials and return a fresh session token.

        Raises:
            ValueError: if the username or password does not match.
        """
        username = (username or "").strip()
        user_ok = hmac.compare_digest(username.encode(), self._username.encode())
        password_ok = hmac.compare_digest((password or "").encode(), self._password.encode())
        if not (user_ok and password_ok):
            raise ValueError("Invalid username or password")
        return self._tokens.issue(username)
