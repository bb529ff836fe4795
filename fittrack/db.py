"""
MongoDB access for the FitTrack API.

Holds the collection names, the process-wide client and small helpers for
ObjectId handling and JSON-safe document output.
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from bson.objectid import ObjectId
from fastapi.encoders import jsonable_encoder
from pymongo import MongoClient
from pymongo.database import Database


COLLECTIONS = {
    "EXERCISES": "exercises",
    "CATEGORIES": "categories",
    "DAYS": "days",
    "WEEKS": "weeks",
    "PLANS": "plans",
    "USER_PLANS": "user_plans",
    "USERS": "users",
    "TODOS": "todos",
    "LIFE_GOALS": "life_goals",
    "GALLERIES": "galleries",
    "FITNESS_PROFILES": "fitness_profiles",
    "TASKS": "tasks",
    "CHALLENGES": "challenges",
}


@lru_cache(maxsize=None)
def get_client(uri: str, timeout_ms: int) -> MongoClient:
    """Return one pooled client per (uri, timeout) for the whole process."""
    return MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)


@lru_cache(maxsize=None)
def get_database(uri: str, name: str, timeout_ms: int) -> Database:
    database = get_client(uri, timeout_ms)[name]
    ensure_indexes(database)
    return database


def ensure_indexes(db: Database) -> None:
    """Unique keys the services rely on. Safe to call repeatedly."""
    db[COLLECTIONS["USERS"]].create_index("email", unique=True)
    db[COLLECTIONS["FITNESS_PROFILES"]].create_index("user", unique=True)


def utcnow() -> datetime:
    # BSON datetimes come back naive, so everything stored is naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def stamp(doc: Dict[str, Any]) -> Dict[str, Any]:
    now = utcnow()
    doc.setdefault("created_at", now)
    doc["updated_at"] = now
    return doc


def to_json(value: Any) -> Any:
    return jsonable_encoder(value, custom_encoder={ObjectId: str})
