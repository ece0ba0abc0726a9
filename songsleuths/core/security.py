from __future__ import annotations

from functools import lru_cache
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from songsleuths.core.config import get_settings
from songsleuths.core.errors import AuthError


class Authenticator:
    """Turns a bearer credential into a stable player id."""

    def verify(self, credential: str) -> str:
        raise NotImplementedError


class SignedTokenAuthenticator(Authenticator):
    """Bearer tokens signed with the application secret.

    Any external identity provider can replace this by implementing ``verify``.
    """

    def __init__(self, secret_key: Optional[str] = None, max_age: Optional[int] = None) -> None:
        settings = get_settings()
        self.s = URLSafeTimedSerializer(secret_key or settings.SECRET_KEY, salt="songsleuths-token")
        self.max_age = max_age if max_age is not None else settings.TOKEN_MAX_AGE

    def issue(self, player_id: str) -> str:
        return self.s.dumps({"player_id": player_id})

    def verify(self, credential: str) -> str:
        if not credential:
            raise AuthError("no bearer token")
        try:
            data = self.s.loads(credential, max_age=self.max_age)
        except SignatureExpired:
            raise AuthError("token expired")
        except BadSignature:
            raise AuthError("invalid token")
        player_id = data.get("player_id") if isinstance(data, dict) else None
        if not player_id:
            raise AuthError("invalid token")
        return str(player_id)


def parse_bearer(header: Optional[str]) -> str:
    if not header:
        raise AuthError("no authorization header")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("no bearer token")
    return token.strip()


@lru_cache
def get_authenticator() -> Authenticator:
    return SignedTokenAuthenticator()
