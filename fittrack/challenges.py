"""
Challenges and their tasks.

A task keeps a daily streak in `progress`, one `{date, status}` entry per day
string. A challenge owns tasks by reference; at most one challenge per user is
active, and deleting a challenge deletes its tasks.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database

from .dates import as_naive_utc, end_date, today_string
from .db import COLLECTIONS, stamp, to_object_id, utcnow
from .models import ChallengeIn, ChallengeUpdate, TaskIn, TaskUpdate, changes
from .responses import Result, fail, ok

logger = logging.getLogger(__name__)


TOGGLE_ATTEMPTS = 3


def toggle_steps(day: str) -> List[Tuple[Dict[str, Any], Dict[str, Any]]]:
    """Conditional writes that toggle `day`; a task state matches at most one of them.

    A done entry is switched off, a pending entry is switched on, and a day
    with no entry gets one appended as done.
    """
    return [
        ({"progress": {"$elemMatch": {"date": day, "status": True}}}, {"$set": {"progress.$.status": False}}),
        ({"progress": {"$elemMatch": {"date": day, "status": {"$ne": True}}}}, {"$set": {"progress.$.status": True}}),
        ({"progress.date": {"$ne": day}}, {"$push": {"progress": {"date": day, "status": True}}}),
    ]


# --- tasks ---

def create_task(db: Database, user_id: Any, body: TaskIn) -> Result:
    task = stamp({"user": user_id, **body.model_dump(), "progress": []})
    task["_id"] = db[COLLECTIONS["TASKS"]].insert_one(task).inserted_id
    return ok("Task created successfully", status=201, task=task)


def get_tasks(db: Database, user_id: Any, task_id: Optional[str] = None) -> Result:
    query: Dict[str, Any] = {"user": user_id}
    if task_id:
        oid = to_object_id(task_id)
        if oid is None:
            return fail(404, "Task not found")
        query["_id"] = oid
    tasks = list(db[COLLECTIONS["TASKS"]].find(query))
    if task_id and not tasks:
        return fail(404, "Task not found")
    return ok("Task fetched successfully", tasks=tasks)


def update_task(db: Database, user_id: Any, task_id: str, body: TaskUpdate) -> Result:
    fields = changes(body)
    if not fields:
        return fail(400, "Nothing to update")
    oid = to_object_id(task_id)
    task = None
    if oid is not None:
        task = db[COLLECTIONS["TASKS"]].find_one_and_update(
            {"_id": oid, "user": user_id},
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
    if task is None:
        return fail(404, "Task not found")
    return ok("Task updated successfully", task=task)


def update_task_progress(db: Database, user_id: Any, task_id: str, today: Optional[date] = None) -> Result:
    oid = to_object_id(task_id)
    if oid is None:
        return fail(404, "Task not found")
    owned = {"_id": oid, "user": user_id}
    day = today_string(today)
    collection = db[COLLECTIONS["TASKS"]]
    for attempt in range(1, TOGGLE_ATTEMPTS + 1):
        for query, update in toggle_steps(day):
            update.setdefault("$set", {})["updated_at"] = utcnow()
            task = collection.find_one_and_update({**owned, **query}, update, return_document=ReturnDocument.AFTER)
            if task is not None:
                return ok("Progress updated successfully", task=task)
        if collection.find_one(owned, {"_id": 1}) is None:
            return fail(404, "Task not found")
        logger.warning("Task %s progress changed concurrently (attempt %d)", oid, attempt)

    return fail(409, "Progress was updated concurrently, please retry")


def delete_task(db: Database, user_id: Any, task_id: str) -> Result:
    oid = to_object_id(task_id)
    if oid is None or db[COLLECTIONS["TASKS"]].delete_one({"_id": oid, "user": user_id}).deleted_count == 0:
        return fail(404, "Task not found")
    db[COLLECTIONS["CHALLENGES"]].update_many({"user": user_id, "tasks": oid}, {"$pull": {"tasks": oid}})
    return ok("Task deleted successfully")


# --- challenges ---

def _owned_task_ids(db: Database, user_id: Any, task_ids: List[str]) -> Optional[list]:
    ids = [to_object_id(t) for t in task_ids]
    if any(i is None for i in ids):
        return None
    found = {t["_id"] for t in db[COLLECTIONS["TASKS"]].find({"_id": {"$in": ids}, "user": user_id}, {"_id": 1})}
    if len(found) != len(set(ids)):
        return None
    return ids


def _with_tasks(db: Database, challenges: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    ids = [t for c in challenges for t in c.get("tasks", [])]
    tasks = {t["_id"]: t for t in db[COLLECTIONS["TASKS"]].find({"_id": {"$in": ids}})}
    for c in challenges:
        c["tasks"] = [tasks[t] for t in c.get("tasks", []) if t in tasks]
    return challenges


def _naive_snapshots(before_and_after: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not before_and_after:
        return before_and_after
    for shot in before_and_after.values():
        if shot and shot.get("date"):
            shot["date"] = as_naive_utc(shot["date"])
    return before_and_after


def create_challenge(db: Database, user_id: Any, body: ChallengeIn) -> Result:
    task_ids = _owned_task_ids(db, user_id, body.tasks)
    if task_ids is None:
        return fail(400, "One or more tasks do not exist")

    start = as_naive_utc(body.start_date) if body.start_date else utcnow()
    challenge = stamp({
        "user": user_id,
        "title": body.title,
        "duration": body.duration,
        "tasks": task_ids,
        "start_date": start,
        "end_date": end_date(start, body.duration),
        "active": False,
        "completed": False,
    })
    if body.before_and_after is not None:
        challenge["before_and_after"] = _naive_snapshots(body.before_and_after.model_dump(exclude_none=True))
    challenge["_id"] = db[COLLECTIONS["CHALLENGES"]].insert_one(challenge).inserted_id
    return ok("Challenge created successfully", status=201, challenge=_with_tasks(db, [challenge])[0])


def read_challenges(db: Database, user_id: Any, challenge_id: Optional[str] = None) -> Result:
    query: Dict[str, Any] = {"user": user_id}
    if challenge_id:
        oid = to_object_id(challenge_id)
        if oid is None:
            return fail(404, "Challenge not found")
        query["_id"] = oid
    challenges = list(db[COLLECTIONS["CHALLENGES"]].find(query))
    if challenge_id and not challenges:
        return fail(404, "Challenge not found")
    return ok("Challenges retrieved successfully", challenges=_with_tasks(db, challenges))


def update_challenge(db: Database, user_id: Any, challenge_id: str, body: ChallengeUpdate) -> Result:
    fields = changes(body)
    if not fields:
        return fail(400, "Nothing to update")
    oid = to_object_id(challenge_id)
    collection = db[COLLECTIONS["CHALLENGES"]]
    current = collection.find_one({"_id": oid, "user": user_id}) if oid is not None else None
    if current is None:
        return fail(404, "Challenge not found")

    if "tasks" in fields:
        fields["tasks"] = _owned_task_ids(db, user_id, fields["tasks"])
        if fields["tasks"] is None:
            return fail(400, "One or more tasks do not exist")
    if "start_date" in fields:
        fields["start_date"] = as_naive_utc(fields["start_date"])
    if "before_and_after" in fields:
        fields["before_and_after"] = _naive_snapshots(fields["before_and_after"])
    start = fields.get("start_date", current["start_date"])
    fields["end_date"] = end_date(start, fields.get("duration", current["duration"]))

    challenge = collection.find_one_and_update(
        {"_id": oid},
        {"$set": {**fields, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return ok("Challenge updated successfully", challenge=_with_tasks(db, [challenge])[0])


def activate_challenge(db: Database, user_id: Any, challenge_id: str) -> Result:
    oid = to_object_id(challenge_id)
    collection = db[COLLECTIONS["CHALLENGES"]]
    challenge = collection.find_one({"_id": oid, "user": user_id}) if oid is not None else None
    if challenge is None:
        return fail(404, "Challenge not found")

    now = utcnow()
    deactivated = collection.update_many(
        {"user": user_id, "active": True, "_id": {"$ne": oid}},
        {"$set": {"active": False, "updated_at": now}},
    )
    challenge = collection.find_one_and_update(
        {"_id": oid},
        {"$set": {
            "active": True,
            "start_date": now,
            "end_date": end_date(now, challenge["duration"]),
            "updated_at": now,
        }},
        return_document=ReturnDocument.AFTER,
    )
    logger.info("Activated challenge %s for user %s (%d deactivated)", oid, user_id, deactivated.modified_count)
    return ok("Challenge activated successfully", challenge=_with_tasks(db, [challenge])[0])


def delete_challenge(db: Database, user_id: Any, challenge_id: str) -> Result:
    oid = to_object_id(challenge_id)
    collection = db[COLLECTIONS["CHALLENGES"]]
    challenge = collection.find_one({"_id": oid, "user": user_id}) if oid is not None else None
    if challenge is None:
        return fail(404, "Challenge not found")

    removed = db[COLLECTIONS["TASKS"]].delete_many({"_id": {"$in": challenge.get("tasks", [])}})
    collection.delete_one({"_id": oid})
    logger.info("Deleted challenge %s and %d tasks", oid, removed.deleted_count)
    return ok("Challenge deleted successfully")
