"""
Per-user plan progress.

Selecting a plan snapshots its exercises, in week/day/category order, into a
flat UserPlan list. Completion changes rewrite that list and its counters
under an optimistic lock on the document's `version` field, so two concurrent
updates of one UserPlan never lose each other's change.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

from pymongo.database import Database

from . import catalog
from .db import COLLECTIONS, stamp, to_object_id, utcnow
from .responses import Result, fail, ok

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


def iter_plan_exercises(plan: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """Exercises of a populated plan in traversal order."""
    for week in plan.get("weeks", []):
        for day in week.get("days", []):
            for category in day.get("categories", []):
                for exercise in category.get("exercises", []):
                    yield exercise


def count_plan_exercises(plan: Dict[str, Any]) -> int:
    return sum(
        len(category.get("exercises", []))
        for week in plan.get("weeks", [])
        for day in week.get("days", [])
        for category in day.get("categories", [])
    )


def completion_stats(entries: List[Dict[str, Any]], total: int) -> Dict[str, Any]:
    completed = sum(1 for e in entries if e.get("completed") is True)
    percentage = (completed / total) * 100 if total else 0.0
    return {"completed_exercises": completed, "completion_percentage": percentage}


def select_plan(db: Database, plan_id: str, user_id: Any) -> Result:
    plan = catalog.get_plan(db, plan_id, populated=True)
    if plan is None:
        return fail(400, "Plan not found")

    entries = [
        {"exercise": exercise["_id"], "completed": False, "completion_date": None}
        for exercise in iter_plan_exercises(plan)
    ]
    user_plan = stamp({
        "user": user_id,
        "plan": plan["_id"],
        "exercises": entries,
        "total_exercises": count_plan_exercises(plan),
        "completed_exercises": 0,
        "completion_percentage": 0.0,
        "version": 0,
    })
    user_plan["_id"] = db[COLLECTIONS["USER_PLANS"]].insert_one(user_plan).inserted_id
    logger.info("User %s selected plan %s (%d exercises)", user_id, plan["_id"], user_plan["total_exercises"])
    return ok("Workout plan selected successfully", status=201, user_plan=user_plan)


def update_completion(db: Database, exercise_id: str, user_id: Any,
                      completed: Optional[bool] = None, set_data: Any = None,
                      plan_id: Optional[str] = None) -> Result:
    """Set (or, with completed=None, flip) one exercise's completion flag.

    The first matching entry of the caller's first matching UserPlan is
    changed. `set_data` is stored on the entry as given.
    """
    exercise_oid = to_object_id(exercise_id)
    if exercise_oid is None:
        return fail(404, "Exercise not found in any selected plan")
    query: Dict[str, Any] = {"user": user_id, "exercises.exercise": exercise_oid}
    if plan_id:
        plan_oid = to_object_id(plan_id)
        if plan_oid is None:
            return fail(404, "Exercise not found in any selected plan")
        query["plan"] = plan_oid

    collection = db[COLLECTIONS["USER_PLANS"]]
    for attempt in range(1, MAX_ATTEMPTS + 1):
        user_plan = collection.find_one(query)
        if user_plan is None:
            return fail(404, "Exercise not found in any selected plan")

        entries = user_plan["exercises"]
        entry = next(e for e in entries if e["exercise"] == exercise_oid)
        entry["completed"] = (not entry.get("completed", False)) if completed is None else completed
        entry["completion_date"] = utcnow() if entry["completed"] else None
        if set_data is not None:
            entry["set_data"] = set_data

        stats = completion_stats(entries, user_plan["total_exercises"])
        version = user_plan.get("version", 0)
        changes = {"exercises": entries, "updated_at": utcnow(), **stats}
        res = collection.update_one(
            {"_id": user_plan["_id"], "version": version},
            {"$set": changes, "$inc": {"version": 1}},
        )
        if res.matched_count == 1:
            user_plan.update(changes, version=version + 1)
            return ok("Exercise status updated successfully", user_plan=user_plan)
        logger.warning("UserPlan %s changed concurrently (attempt %d)", user_plan["_id"], attempt)

    return fail(409, "Progress was updated concurrently, please retry")


def get_progress(db: Database, user_id: Any, plan_id: Optional[str] = None) -> Result:
    query: Dict[str, Any] = {"user": user_id}
    if plan_id:
        plan_oid = to_object_id(plan_id)
        if plan_oid is None:
            return ok("Workout progress retrieved successfully", plans=[])
        query["plan"] = plan_oid

    user_plans = list(db[COLLECTIONS["USER_PLANS"]].find(query))
    plan_ids = list({up["plan"] for up in user_plans})
    plans = list(db[COLLECTIONS["PLANS"]].find({"_id": {"$in": plan_ids}}))
    catalog.populate(db, plans, "PLANS")
    by_id = {p["_id"]: p for p in plans}
    for up in user_plans:
        up["plan"] = by_id.get(up["plan"], up["plan"])
    return ok("Workout progress retrieved successfully", plans=user_plans)
