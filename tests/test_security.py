from fittrack.security import TokenService, generate_otp, hash_password, verify_password


def test_token_round_trip():
    tokens = TokenService("secret")
    claims = tokens.validate(tokens.issue("abc123", "admin"))
    assert claims["sub"] == "abc123"
    assert claims["role"] == "admin"


def test_token_rejects_tampering_and_expiry():
    tokens = TokenService("secret")
    token = tokens.issue("abc123")
    assert TokenService("other").validate(token) is None
    assert tokens.validate(token + "x") is None
    assert tokens.validate("garbage") is None
    assert TokenService("secret", ttl_days=-1).validate(TokenService("secret", ttl_days=-1).issue("abc123")) is None


def test_passwords_and_otp():
    hashed = hash_password("password123")
    assert hashed != "password123"
    assert verify_password("password123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("password123", "")
    otp = generate_otp()
    assert len(otp) == 6 and otp.isdigit()
