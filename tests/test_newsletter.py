import pytest

from scorecard.newsletter import SignupError, parse_signup


@pytest.mark.unit
def test_parse_signup_normalizes():
    assert parse_signup({"email": "  Me@Example.COM ", "source": "banner"}) == ("me@example.com", "banner")
    assert parse_signup({"email": "a@b.co", "source": "sidebar"}) == ("a@b.co", "popup")
    assert parse_signup({"email": "a@b.co"}) == ("a@b.co", "popup")


@pytest.mark.unit
@pytest.mark.parametrize("body", [
    None,
    {},
    {"email": ""},
    {"email": 42},
    {"email": "no-at-sign.com"},
    {"email": "a@b"},
    {"email": "a b@c.com"},
    {"email": "a@" + "b" * 250 + ".com"},
])
def test_parse_signup_rejects(body):
    with pytest.raises(SignupError, match="Valid email required"):
        parse_signup(body)
