"""
Workout catalog: plans, weeks, days, categories and exercises.

Each level lives in its own collection and refers to the level below by an
ordered list of ObjectIds. Reads can populate those references recursively
down to the exercises.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.database import Database

from .db import COLLECTIONS, to_object_id, utcnow
from .responses import Result, fail, ok

logger = logging.getLogger(__name__)


# level -> (reference field, child level)
CHILDREN = {
    "PLANS": ("weeks", "WEEKS"),
    "WEEKS": ("days", "DAYS"),
    "DAYS": ("categories", "CATEGORIES"),
    "CATEGORIES": ("exercises", "EXERCISES"),
}
# child level -> (parent level, reference field)
PARENTS = {child: (parent, field) for parent, (field, child) in CHILDREN.items()}

LABELS = {
    "PLANS": "Plan",
    "WEEKS": "Week",
    "DAYS": "Day",
    "CATEGORIES": "Category",
    "EXERCISES": "Exercise",
}

FLAGS = ("trending", "featured")
FLAG_ATTEMPTS = 3


def result_key(level: str) -> str:
    return LABELS[level].lower()


def populate(db: Database, docs: List[Dict[str, Any]], level: str) -> List[Dict[str, Any]]:
    """Replace child id lists with the child documents, recursively, in place.

    One query per level. References to documents that no longer exist are
    dropped, order is preserved.
    """
    if not docs or level not in CHILDREN:
        return docs
    field, child_level = CHILDREN[level]
    ids = [oid for doc in docs for oid in doc.get(field, [])]
    children = {c["_id"]: c for c in db[COLLECTIONS[child_level]].find({"_id": {"$in": ids}})}
    populate(db, list(children.values()), child_level)
    for doc in docs:
        doc[field] = [children[oid] for oid in doc.get(field, []) if oid in children]
    return docs


def get_document(db: Database, level: str, doc_id: Any, populated: bool = False) -> Optional[Dict[str, Any]]:
    oid = to_object_id(doc_id)
    if oid is None:
        return None
    doc = db[COLLECTIONS[level]].find_one({"_id": oid})
    if doc is not None and populated:
        populate(db, [doc], level)
    return doc


def get_plan(db: Database, plan_id: Any, populated: bool = False) -> Optional[Dict[str, Any]]:
    return get_document(db, "PLANS", plan_id, populated)


def fuzzy_pattern(term: str, anchored: bool = False) -> str:
    """Case handling is left to the caller; whitespace between characters is free.

    "legday" -> l\\s*e\\s*g\\s*d\\s*a\\s*y, which matches "Leg Day" and "leg  day".
    """
    chars = [re.escape(c) for c in term if not c.isspace()]
    pattern = r"\s*".join(chars)
    if anchored:
        pattern = rf"^\s*{pattern}\s*$"
    return pattern


def plan_filters(search: Optional[str] = None, location: Optional[str] = None,
                 training_type: Optional[str] = None, level: Optional[str] = None) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if search and search.strip():
        query["plan_name"] = {"$regex": fuzzy_pattern(search), "$options": "i"}
    for field, value in (("location", location), ("training_type", training_type), ("level", level)):
        if value and value.strip():
            query[field] = {"$regex": fuzzy_pattern(value, anchored=True), "$options": "i"}
    return query


def fetch_plans(db: Database, plan_id: Optional[str] = None, populated: bool = False, **filters: Optional[str]) -> Result:
    if plan_id:
        plan = get_plan(db, plan_id, populated)
        if plan is None:
            return fail(404, "Plan not found")
        return ok("Plan fetched successfully", plan=plan)

    plans = list(db[COLLECTIONS["PLANS"]].find(plan_filters(**filters)).sort("created_at", -1))
    if populated:
        populate(db, plans, "PLANS")
    return ok("Plans fetched successfully", plans=plans)


def plan_overview(db: Database) -> Result:
    cards = []
    for plan in db[COLLECTIONS["PLANS"]].find({}).sort("created_at", -1):
        cards.append({
            "_id": plan["_id"],
            "plan_name": plan.get("plan_name"),
            "banner_image": plan.get("banner_image"),
            "level": plan.get("level"),
            "location": plan.get("location"),
            "training_type": plan.get("training_type"),
            "trending": plan.get("trending", False),
            "featured": plan.get("featured", False),
            "week_count": len(plan.get("weeks", [])),
        })
    return ok("Plan overview fetched successfully", plans=cards)


def fetch_level(db: Database, level: str, doc_id: str, populated: bool = False) -> Result:
    doc = get_document(db, level, doc_id, populated)
    if doc is None:
        return fail(404, f"{LABELS[level]} not found")
    return ok(f"{LABELS[level]} fetched successfully", **{result_key(level): doc})


def update_level(db: Database, level: str, doc_id: str, fields: Dict[str, Any]) -> Result:
    if not fields:
        return fail(400, "Nothing to update")
    oid = to_object_id(doc_id)
    if oid is None:
        return fail(404, f"{LABELS[level]} not found")
    doc = db[COLLECTIONS[level]].find_one_and_update(
        {"_id": oid},
        {"$set": {**fields, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        return fail(404, f"{LABELS[level]} not found")
    return ok(f"{LABELS[level]} updated successfully", **{result_key(level): doc})


def delete_level(db: Database, level: str, doc_id: str) -> Result:
    """Delete one document. Children are kept; plans in particular do not cascade."""
    oid = to_object_id(doc_id)
    if oid is None:
        return fail(404, f"{LABELS[level]} not found")
    doc = db[COLLECTIONS[level]].find_one_and_delete({"_id": oid})
    if doc is None:
        return fail(404, f"{LABELS[level]} not found")
    if level in PARENTS:
        parent, field = PARENTS[level]
        db[COLLECTIONS[parent]].update_many({field: oid}, {"$pull": {field: oid}})
    logger.info("Deleted %s %s", LABELS[level].lower(), oid)
    return ok(f"{LABELS[level]} deleted successfully")


def day_exercises(db: Database, day_id: str) -> Result:
    day = get_document(db, "DAYS", day_id, populated=True)
    if day is None:
        return fail(404, "Day not found")
    exercises = [exercise for category in day["categories"] for exercise in category["exercises"]]
    return ok("Exercises fetched successfully", day_id=day["_id"], exercises=exercises)


def toggle_flag(db: Database, plan_id: str, flag: str) -> Result:
    if flag not in FLAGS:
        raise ValueError(f"unknown plan flag: {flag}")
    collection = db[COLLECTIONS["PLANS"]]
    for attempt in range(1, FLAG_ATTEMPTS + 1):
        plan = get_plan(db, plan_id)
        if plan is None:
            return fail(404, "Plan not found")
        # the write only lands if the flag still holds the value that was read
        current = plan.get(flag) is True
        guard = {flag: True} if current else {flag: {"$ne": True}}
        updated = collection.find_one_and_update(
            {"_id": plan["_id"], **guard},
            {"$set": {flag: not current, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is not None:
            action = "removed from" if current else "added to"
            return ok(f"Plan {action} {flag} plans", plan=updated)
        logger.warning("Plan %s %s flag changed concurrently (attempt %d)", plan["_id"], flag, attempt)

    return fail(409, "Plan was updated concurrently, please retry")


def flagged_plans(db: Database, flag: str) -> Result:
    if flag not in FLAGS:
        raise ValueError(f"unknown plan flag: {flag}")
    plans = list(db[COLLECTIONS["PLANS"]].find({flag: True}))
    populate(db, plans, "PLANS")
    return ok(f"{flag.capitalize()} plans fetched successfully", plans=plans)
