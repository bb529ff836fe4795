"""
Galleries and the per-user fitness profile (bookmarks, measurements,
before/after transformation pictures).
"""

from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.database import Database

from . import catalog
from .db import COLLECTIONS, stamp, to_object_id, utcnow
from .models import GalleryIn
from .responses import Result, fail, ok
from .storage import LocalStorage, Upload, store_all

RESERVED_PROFILE_FIELDS = {"_id", "user", "bookmarks", "transformations", "created_at", "updated_at"}


# --- galleries ---

def create_gallery(db: Database, user_id: Any, body: GalleryIn) -> Result:
    gallery = stamp({"user": user_id, **body.model_dump(exclude_none=True), "images": []})
    gallery["_id"] = db[COLLECTIONS["GALLERIES"]].insert_one(gallery).inserted_id
    return ok("Gallery created successfully", status=201, gallery=gallery)


def get_galleries(db: Database, user_id: Any, gallery_id: Optional[str] = None) -> Result:
    query: Dict[str, Any] = {"user": user_id}
    if gallery_id:
        oid = to_object_id(gallery_id)
        if oid is None:
            return fail(404, "Gallery not found")
        query["_id"] = oid
    galleries = list(db[COLLECTIONS["GALLERIES"]].find(query))
    if gallery_id and not galleries:
        return fail(404, "Gallery not found")
    return ok("Galleries fetched successfully", galleries=galleries)


def delete_gallery(db: Database, user_id: Any, gallery_id: str) -> Result:
    oid = to_object_id(gallery_id)
    if oid is None or db[COLLECTIONS["GALLERIES"]].delete_one({"_id": oid, "user": user_id}).deleted_count == 0:
        return fail(404, "Gallery not found")
    return ok("Gallery deleted successfully")


def add_images(db: Database, storage: LocalStorage, user_id: Any, gallery_id: str, uploads: List[Upload]) -> Result:
    if not uploads:
        return fail(400, "No images provided")
    oid = to_object_id(gallery_id)
    collection = db[COLLECTIONS["GALLERIES"]]
    if oid is None or collection.find_one({"_id": oid, "user": user_id}, {"_id": 1}) is None:
        return fail(404, "Gallery not found")

    urls = store_all(storage, f"gallery/{user_id}", uploads)
    gallery = collection.find_one_and_update(
        {"_id": oid, "user": user_id},
        {"$push": {"images": {"$each": urls}}, "$set": {"updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if gallery is None:
        return fail(404, "Gallery not found")
    return ok("Image uploaded successfully", gallery=gallery)


def remove_images(db: Database, user_id: Any, gallery_id: str, images: List[str]) -> Result:
    oid = to_object_id(gallery_id)
    gallery = None
    if oid is not None:
        gallery = db[COLLECTIONS["GALLERIES"]].find_one_and_update(
            {"_id": oid, "user": user_id},
            {"$pull": {"images": {"$in": images}}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
    if gallery is None:
        return fail(404, "Gallery not found")
    return ok("Image(s) deleted successfully", gallery=gallery)


# --- fitness profile ---

def _profile_upsert(db: Database, user_id: Any, update: Dict[str, Any]) -> Dict[str, Any]:
    update.setdefault("$set", {})["updated_at"] = utcnow()
    update["$setOnInsert"] = {"created_at": utcnow()}
    return db[COLLECTIONS["FITNESS_PROFILES"]].find_one_and_update(
        {"user": user_id},
        update,
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )


def _bookmarked_days(db: Database, profile: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not profile:
        return []
    ids = profile.get("bookmarks", [])
    days = {d["_id"]: d for d in db[COLLECTIONS["DAYS"]].find({"_id": {"$in": ids}})}
    return [days[i] for i in ids if i in days]


def add_bookmark(db: Database, user_id: Any, day_id: str) -> Result:
    day = catalog.get_document(db, "DAYS", day_id)
    if day is None:
        return fail(404, "Day not found")
    profile = _profile_upsert(db, user_id, {"$addToSet": {"bookmarks": day["_id"]}})
    return ok("Bookmark added successfully", bookmarks=_bookmarked_days(db, profile))


def get_bookmarks(db: Database, user_id: Any) -> Result:
    profile = db[COLLECTIONS["FITNESS_PROFILES"]].find_one({"user": user_id})
    if profile is None:
        return ok("No bookmarks found", bookmarks=[])
    return ok("Bookmarks fetched successfully", bookmarks=_bookmarked_days(db, profile))


def remove_bookmark(db: Database, user_id: Any, day_id: str) -> Result:
    oid = to_object_id(day_id)
    profile = None
    if oid is not None:
        profile = db[COLLECTIONS["FITNESS_PROFILES"]].find_one_and_update(
            {"user": user_id, "bookmarks": oid},
            {"$pull": {"bookmarks": oid}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
    if profile is None:
        return fail(404, "Bookmark not found")
    return ok("Bookmark removed successfully", bookmarks=_bookmarked_days(db, profile))


def update_measurements(db: Database, user_id: Any, body: Dict[str, Any]) -> Result:
    """Each key keeps a history list, newest value first."""
    if not body:
        return fail(400, "No measurements provided")
    invalid = sorted(k for k in body if not k or k.startswith("$") or "." in k or k in RESERVED_PROFILE_FIELDS)
    if invalid:
        return fail(400, "Invalid measurement name", fields=invalid)
    push = {key: {"$each": [value], "$position": 0} for key, value in body.items()}
    profile = _profile_upsert(db, user_id, {"$push": push})
    return ok("Measurements updated successfully", fitness_profile=profile)


def get_fitness_profile(db: Database, user_id: Any) -> Result:
    profile = db[COLLECTIONS["FITNESS_PROFILES"]].find_one({"user": user_id})
    return ok("Fitness profile fetched successfully", fitness_profile=profile)


def set_transformation(db: Database, storage: LocalStorage, user_id: Any,
                       before: Upload, after: Upload, before_date: Optional[str]) -> Result:
    before_url, after_url = store_all(storage, f"transform/{user_id}", [before, after])
    transformations = {"before": before_url, "after": after_url, "before_date": before_date}
    profile = _profile_upsert(db, user_id, {"$set": {"transformations": transformations}})
    return ok("Transformation added successfully", fitness_profile=profile)
