"""
Accounts: sign-up with e-mail OTP verification, login, and the profile.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from .db import COLLECTIONS, stamp, utcnow
from .mail import LogMailer
from .models import LoginRequest, ProfileUpdate, SignupRequest, VerifyOtpRequest, changes
from .responses import Result, fail, ok
from .security import TokenService, generate_otp, hash_password, verify_password

logger = logging.getLogger(__name__)

PRIVATE_FIELDS = ("password", "otp", "otp_expires")
HIDDEN = {field: 0 for field in PRIVATE_FIELDS}


def public_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {k: v for k, v in user.items() if k not in PRIVATE_FIELDS}


class Accounts:
    def __init__(self, db: Database, tokens: TokenService, mailer: LogMailer, otp_ttl_minutes: int = 10) -> None:
        self.users = db[COLLECTIONS["USERS"]]
        self.tokens = tokens
        self.mailer = mailer
        self.otp_ttl = timedelta(minutes=otp_ttl_minutes)

    def signup(self, body: SignupRequest) -> Result:
        existing = self.users.find_one({"email": body.email})
        if existing is not None and existing.get("is_verified"):
            return fail(409, "Email already registered")

        otp = generate_otp()
        fields = {
            "name": body.name,
            "password": hash_password(body.password),
            "otp": otp,
            "otp_expires": utcnow() + self.otp_ttl,
        }
        if existing is not None:
            res = self.users.update_one(
                {"_id": existing["_id"], "is_verified": {"$ne": True}},
                {"$set": {**fields, "updated_at": utcnow()}},
            )
            if res.matched_count == 0:
                return fail(409, "Email already registered")
            status = 200
        else:
            user = stamp({"email": body.email, "is_verified": False, "role": "user", **fields})
            try:
                self.users.insert_one(user)
            except DuplicateKeyError:
                # a concurrent sign-up for the same address got there first
                return fail(409, "Email already registered")
            status = 201
        self.mailer.send_otp(body.email, otp)
        logger.info("Signup for %s, OTP sent", body.email)
        return ok("OTP sent to your email", status=status, email=body.email)

    def verify_otp(self, body: VerifyOtpRequest) -> Result:
        user = self.users.find_one({"email": body.email})
        if user is None:
            return fail(404, "User not found")
        if user.get("is_verified"):
            return fail(400, "Account already verified")
        if not user.get("otp") or user["otp"] != body.otp.strip():
            return fail(400, "Invalid OTP")
        if user.get("otp_expires") is None or user["otp_expires"] < utcnow():
            return fail(410, "OTP expired")

        user = self.users.find_one_and_update(
            {"_id": user["_id"]},
            {"$set": {"is_verified": True, "updated_at": utcnow()}, "$unset": {"otp": "", "otp_expires": ""}},
            return_document=ReturnDocument.AFTER,
        )
        return ok("Account verified successfully", token=self.tokens.issue(user["_id"], user.get("role", "user")),
                  user=public_user(user))

    def resend_otp(self, email: str) -> Result:
        user = self.users.find_one({"email": email})
        if user is None:
            return fail(404, "User not found")
        if user.get("is_verified"):
            return fail(400, "Account already verified")
        otp = generate_otp()
        self.users.update_one(
            {"_id": user["_id"]},
            {"$set": {"otp": otp, "otp_expires": utcnow() + self.otp_ttl, "updated_at": utcnow()}},
        )
        self.mailer.send_otp(email, otp)
        return ok("OTP sent to your email", email=email)

    def login(self, body: LoginRequest, admin: bool = False) -> Result:
        user = self.users.find_one({"email": body.email})
        if user is None or not verify_password(body.password, user.get("password", "")):
            return fail(401, "Invalid email or password")
        if not user.get("is_verified"):
            return fail(403, "Account is not verified")
        if admin and user.get("role") != "admin":
            return fail(403, "Not authorized as admin")
        token = self.tokens.issue(user["_id"], user.get("role", "user"))
        return ok("Logged in successfully", token=token, user=public_user(user))


def get_user(db: Database, user_id: Any) -> Result:
    user = db[COLLECTIONS["USERS"]].find_one({"_id": user_id}, HIDDEN)
    if user is None:
        return fail(404, "User not found")
    return ok("User data fetched successfully", user=user)


def update_profile(db: Database, user_id: Any, body: ProfileUpdate) -> Result:
    fields = changes(body)
    if not fields:
        return fail(400, "Nothing to update")
    user = db[COLLECTIONS["USERS"]].find_one_and_update(
        {"_id": user_id},
        {"$set": {**fields, "updated_at": utcnow()}},
        projection=HIDDEN,
        return_document=ReturnDocument.AFTER,
    )
    if user is None:
        return fail(404, "User not found")
    return ok("Profile updated successfully", user=user)


def set_profile_pic(db: Database, user_id: Any, url: str) -> Result:
    user = db[COLLECTIONS["USERS"]].find_one_and_update(
        {"_id": user_id},
        {"$set": {"profile_pic": url, "updated_at": utcnow()}},
        projection=HIDDEN,
        return_document=ReturnDocument.AFTER,
    )
    if user is None:
        return fail(404, "User not found")
    return ok("Profile picture updated successfully", user=user)
