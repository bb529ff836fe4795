"""
FastAPI dependencies: settings, database, collaborators and the caller's identity.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

from fastapi import Depends, Header
from pymongo.database import Database

from .config import Settings
from .db import COLLECTIONS, get_database, to_object_id
from .mail import LogMailer
from .responses import ApiError
from .security import TokenService
from .storage import LocalStorage


@dataclass
class Caller:
    user_id: Any
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    return Settings()


def get_db(settings: Settings = Depends(get_settings)) -> Database:
    return get_database(settings.mongo_uri, settings.mongo_db, settings.mongo_timeout_ms)


def get_tokens(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings.token_secret, settings.token_ttl_days)


def get_storage(settings: Settings = Depends(get_settings)) -> LocalStorage:
    return LocalStorage(settings.upload_dir, settings.public_base_url)


def get_mailer() -> LogMailer:
    return LogMailer()


def current_user(
    authorization: Optional[str] = Header(default=None),
    db: Database = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
) -> Caller:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise ApiError(401, "Missing or malformed authorization header")
    claims = tokens.validate(token.strip())
    if claims is None:
        raise ApiError(401, "Invalid or expired token")

    user_id = to_object_id(claims.get("sub"))
    user = db[COLLECTIONS["USERS"]].find_one({"_id": user_id}, {"is_verified": 1, "role": 1}) if user_id else None
    if user is None:
        raise ApiError(401, "User not found")
    if not user.get("is_verified"):
        raise ApiError(403, "Account is not verified")
    return Caller(user_id=user["_id"], role=user.get("role", "user"))


def admin_user(caller: Caller = Depends(current_user)) -> Caller:
    if not caller.is_admin:
        raise ApiError(403, "Admin access required")
    return caller
