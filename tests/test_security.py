import pytest
from itsdangerous import URLSafeTimedSerializer

from songsleuths.core.errors import AuthError
from songsleuths.core.security import SignedTokenAuthenticator, parse_bearer


def test_issued_token_verifies(authenticator):
    token = authenticator.issue("player-1")
    assert authenticator.verify(token) == "player-1"


def test_token_from_another_secret_is_rejected(authenticator):
    other = SignedTokenAuthenticator(secret_key="different", max_age=3600)
    with pytest.raises(AuthError):
        authenticator.verify(other.issue("player-1"))


def test_expired_token_is_rejected():
    auth = SignedTokenAuthenticator(secret_key="s", max_age=-1)
    with pytest.raises(AuthError) as exc:
        auth.verify(auth.issue("p"))
    assert "expired" in exc.value.message


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_tokens_are_rejected(authenticator, token):
    with pytest.raises(AuthError):
        authenticator.verify(token)


def test_token_without_player_is_rejected():
    raw = URLSafeTimedSerializer("s", salt="songsleuths-token").dumps({"someone": "else"})
    with pytest.raises(AuthError):
        SignedTokenAuthenticator(secret_key="s", max_age=60).verify(raw)


def test_parse_bearer():
    assert parse_bearer("Bearer abc") == "abc"
    assert parse_bearer("bearer  abc ") == "abc"
    for header in (None, "", "Basic abc", "Bearer", "Bearer   "):
        with pytest.raises(AuthError):
            parse_bearer(header)
