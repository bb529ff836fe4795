from typing import Any, Dict, Optional

from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.database import Database

from .dates import as_naive_utc
from .db import COLLECTIONS, stamp, to_object_id, utcnow
from .models import changes
from .responses import Result, fail, ok


class PersonalItems:
    """Per-user CRUD over one collection (todos, life goals)."""

    def __init__(self, db: Database, collection: str, label: str, key: str, plural: str) -> None:
        self.collection = db[COLLECTIONS[collection]]
        self.label = label
        self.key = key
        self.plural = plural

    def create(self, user_id: Any, body: BaseModel) -> Result:
        doc = stamp({"user": user_id, **self._clean(body.model_dump())})
        doc["_id"] = self.collection.insert_one(doc).inserted_id
        return ok(f"{self.label} created successfully", status=201, **{self.key: doc})

    def fetch(self, user_id: Any, item_id: Optional[str] = None) -> Result:
        query: Dict[str, Any] = {"user": user_id}
        if item_id:
            oid = to_object_id(item_id)
            if oid is None:
                return fail(404, f"{self.label} not found")
            query["_id"] = oid
        items = list(self.collection.find(query).sort("created_at", 1))
        if item_id and not items:
            return fail(404, f"{self.label} not found")
        return ok(f"{self.label} fetched successfully", **{self.plural: items})

    def update(self, user_id: Any, item_id: str, body: BaseModel) -> Result:
        fields = self._clean(changes(body))
        if not fields:
            return fail(400, "Nothing to update")
        oid = to_object_id(item_id)
        doc = None
        if oid is not None:
            doc = self.collection.find_one_and_update(
                {"_id": oid, "user": user_id},
                {"$set": {**fields, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            return fail(404, f"{self.label} not found")
        return ok(f"{self.label} updated successfully", **{self.key: doc})

    def delete(self, user_id: Any, item_id: str) -> Result:
        oid = to_object_id(item_id)
        if oid is None or self.collection.delete_one({"_id": oid, "user": user_id}).deleted_count == 0:
            return fail(404, f"{self.label} not found")
        return ok(f"{self.label} deleted successfully")

    @staticmethod
    def _clean(fields: Dict[str, Any]) -> Dict[str, Any]:
        if fields.get("deadline") is not None:
            fields["deadline"] = as_naive_utc(fields["deadline"])
        return fields


def todos(db: Database) -> PersonalItems:
    return PersonalItems(db, "TODOS", "Todo", "todo", "todos")


def life_goals(db: Database) -> PersonalItems:
    return PersonalItems(db, "LIFE_GOALS", "Goal", "goal", "goals")
