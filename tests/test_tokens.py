import pytest
from itsdangerous import URLSafeTimedSerializer

from melos.auth.tokens import TOKEN_SALT, TokenService
from melos.utils.exceptions import InvalidToken, Unauthorized


@pytest.fixture
def tokens(clock):
    return TokenService("signing-key", ttl_seconds=3600, clock=clock)


def test_issued_token_verifies(tokens):
    token = tokens.issue("user-1")
    assert tokens.verify(token) == "user-1"


def test_token_valid_until_expiry_then_rejected(tokens, clock):
    token = tokens.issue("user-1")

    clock.advance(3599)
    assert tokens.verify(token) == "user-1"

    clock.advance(2)
    with pytest.raises(InvalidToken):
        tokens.verify(token)


@pytest.mark.parametrize("elapsed", [3599.999, 3600, 3600.5, 3601])
def test_token_expires_exactly_at_ttl(tokens, clock, elapsed):
    token = tokens.issue("user-1")
    clock.advance(elapsed)
    if elapsed < 3600:
        assert tokens.verify(token) == "user-1"
    else:
        with pytest.raises(InvalidToken):
            tokens.verify(token)


def test_expiry_uses_fractional_issue_time(clock):
    clock.advance(0.5)
    tokens = TokenService("signing-key", ttl_seconds=10, clock=clock)
    token = tokens.issue("user-1")

    clock.advance(9.75)
    assert tokens.verify(token) == "user-1"
    clock.advance(0.25)
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_token_from_another_key_is_rejected(tokens, clock):
    other = TokenService("another-key", clock=clock)
    with pytest.raises(InvalidToken):
        tokens.verify(other.issue("user-1"))


@pytest.mark.parametrize("bad", ["", "garbage", "a.b.c"])
def test_malformed_tokens_are_rejected(tokens, bad):
    with pytest.raises(InvalidToken):
        tokens.verify(bad)


def test_tampered_token_is_rejected(tokens):
    token = tokens.issue("user-1")
    tampered = ("A" if token[0] != "A" else "B") + token[1:]
    with pytest.raises(InvalidToken):
        tokens.verify(tampered)


def test_invalid_token_is_unauthorized(tokens):
    with pytest.raises(Unauthorized) as exc:
        tokens.verify("garbage")
    assert exc.value.status_code == 401


def test_secret_key_required():
    with pytest.raises(ValueError):
        TokenService("")


def test_signed_token_without_expiry_is_rejected(tokens):
    unbounded = URLSafeTimedSerializer("signing-key", salt=TOKEN_SALT).dumps({"sub": "user-1"})
    with pytest.raises(InvalidToken):
        tokens.verify(unbounded)
