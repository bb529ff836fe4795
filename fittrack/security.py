"""
Password hashing, one-time codes and bearer tokens.

Tokens are `<payload>.<signature>`: a base64url JSON payload
({"sub", "role", "exp"}) and its HMAC-SHA256 under the configured secret.
"""

import base64
import hashlib
import hmac
import json
import secrets
import time
from typing import Any, Dict, Optional

import bcrypt


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def generate_otp(digits: int = 6) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(digits))


def _b64(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).decode().rstrip("=")


def _ub64(s: str) -> bytes:
    pad = "=" * ((4 - (len(s) % 4)) % 4)
    return base64.urlsafe_b64decode((s + pad).encode())


class TokenService:
    def __init__(self, secret: str, ttl_days: int = 30) -> None:
        self._secret = secret.encode("utf-8")
        self.ttl_s = ttl_days * 86400

    def _sign(self, payload: str) -> str:
        return _b64(hmac.new(self._secret, payload.encode(), hashlib.sha256).digest())

    def issue(self, user_id: str, role: str = "user") -> str:
        payload = {"sub": str(user_id), "role": role, "exp": int(time.time()) + self.ttl_s}
        p = _b64(json.dumps(payload, separators=(",", ":")).encode())
        return f"{p}.{self._sign(p)}"

    def validate(self, token: str) -> Optional[Dict[str, Any]]:
        """Payload of a well-formed, correctly signed, unexpired token, else None."""
        try:
            p, sig = token.split(".")
            if not hmac.compare_digest(self._sign(p), sig):
                return None
            payload = json.loads(_ub64(p).decode())
            if int(payload["exp"]) < time.time():
                return None
        except (ValueError, TypeError, KeyError):
            return None
        return payload
