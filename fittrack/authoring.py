"""
Plan authoring: turns a nested plan payload into linked catalog documents.

Ids are assigned up front, then each level is written as one batch, leaves
first (exercises, categories, days, weeks, plan). A level is only written once
the level below it is in the store. If any write fails, everything written by
the call is deleted again before the error propagates.
"""

import logging
from typing import Any, Dict, List, Tuple

from bson.objectid import ObjectId
from pymongo.database import Database
from pymongo.errors import PyMongoError

from . import catalog
from .db import COLLECTIONS, stamp, to_object_id, utcnow
from .models import CategoryIn, DayIn, ExerciseIn, PlanCreate, WeekIn
from .responses import Result, fail, ok

logger = logging.getLogger(__name__)

WRITE_ORDER = ("EXERCISES", "CATEGORIES", "DAYS", "WEEKS", "PLANS")


def expand_weeks(weeks: List[WeekIn]) -> List[Tuple[int, List[DayIn]]]:
    """`week: [1, 2, 3]` stands for three weeks with the same days."""
    expanded = []
    for entry in weeks:
        numbers = entry.week if isinstance(entry.week, list) else [entry.week]
        for number in numbers:
            expanded.append((number, entry.days))
    return expanded


class PlanAuthor:
    def __init__(self, db: Database) -> None:
        self.db = db

    def create_plan(self, payload: PlanCreate) -> Result:
        batches = self._new_batches()
        week_ids = self._weeks(batches, payload.weeks)
        fields = payload.model_dump(exclude={"weeks"}, exclude_none=True)
        plan_id = self._add(batches, "PLANS", {**fields, "weeks": week_ids})

        self._write(batches)
        logger.info(
            "Authored plan %s (%r): %d weeks, %d days, %d categories, %d exercises",
            plan_id, payload.plan_name, len(batches["WEEKS"]), len(batches["DAYS"]),
            len(batches["CATEGORIES"]), len(batches["EXERCISES"]),
        )
        plan = catalog.get_plan(self.db, plan_id, populated=True)
        return ok("Plan created successfully", status=201, plan=plan)

    def add_weeks(self, plan_id: str, week: WeekIn) -> Result:
        batches = self._new_batches()
        return self._attach("PLANS", plan_id, batches, self._weeks(batches, [week]))

    def add_day(self, week_id: str, day: DayIn) -> Result:
        batches = self._new_batches()
        return self._attach("WEEKS", week_id, batches, [self._day(batches, day)])

    def add_category(self, day_id: str, category: CategoryIn) -> Result:
        batches = self._new_batches()
        return self._attach("DAYS", day_id, batches, [self._category(batches, category)])

    def add_exercise(self, category_id: str, exercise: ExerciseIn) -> Result:
        batches = self._new_batches()
        return self._attach("CATEGORIES", category_id, batches, [self._exercise(batches, exercise)])

    # --- internals ---
    @staticmethod
    def _new_batches() -> Dict[str, List[Dict[str, Any]]]:
        return {level: [] for level in WRITE_ORDER}

    @staticmethod
    def _add(batches: Dict[str, List[Dict[str, Any]]], level: str, doc: Dict[str, Any]) -> ObjectId:
        doc["_id"] = ObjectId()
        batches[level].append(stamp(doc))
        return doc["_id"]

    def _weeks(self, batches, weeks: List[WeekIn]) -> List[ObjectId]:
        # every expanded week gets its own copy of the day subtree
        week_ids = []
        for number, days in expand_weeks(weeks):
            day_ids = [self._day(batches, day) for day in days]
            week_ids.append(self._add(batches, "WEEKS", {"week": number, "days": day_ids}))
        return week_ids

    def _day(self, batches, day: DayIn) -> ObjectId:
        category_ids = [self._category(batches, c) for c in day.categories]
        fields = day.model_dump(exclude={"categories"}, exclude_none=True)
        return self._add(batches, "DAYS", {**fields, "categories": category_ids})

    def _category(self, batches, category: CategoryIn) -> ObjectId:
        exercise_ids = [self._exercise(batches, e) for e in category.exercises]
        fields = category.model_dump(exclude={"exercises"}, exclude_none=True)
        return self._add(batches, "CATEGORIES", {**fields, "exercises": exercise_ids})

    def _exercise(self, batches, exercise: ExerciseIn) -> ObjectId:
        return self._add(batches, "EXERCISES", exercise.model_dump(exclude_none=True))

    def _write(self, batches) -> None:
        written = []
        try:
            for level in WRITE_ORDER:
                if not batches[level]:
                    continue
                written.append(level)
                self.db[COLLECTIONS[level]].insert_many(batches[level])
        except PyMongoError:
            logger.exception("Catalog write failed, removing %s", ", ".join(written))
            self._discard(batches, written)
            raise

    def _discard(self, batches, levels: List[str]) -> None:
        for level in levels:
            ids = [doc["_id"] for doc in batches[level]]
            try:
                self.db[COLLECTIONS[level]].delete_many({"_id": {"$in": ids}})
            except PyMongoError:
                logger.exception("Could not remove %d %s documents", len(ids), level.lower())

    def _attach(self, parent_level: str, parent_id: str, batches, child_ids: List[ObjectId]) -> Result:
        label = catalog.LABELS[parent_level]
        oid = to_object_id(parent_id)
        collection = self.db[COLLECTIONS[parent_level]]
        if oid is None or collection.find_one({"_id": oid}, {"_id": 1}) is None:
            return fail(404, f"{label} not found")

        self._write(batches)
        field, _ = catalog.CHILDREN[parent_level]
        try:
            collection.update_one(
                {"_id": oid},
                {"$push": {field: {"$each": child_ids}}, "$set": {"updated_at": utcnow()}},
            )
        except PyMongoError:
            self._discard(batches, list(WRITE_ORDER))
            raise
        parent = catalog.get_document(self.db, parent_level, oid, populated=True)
        return ok(f"{label} extended successfully", status=201, **{catalog.result_key(parent_level): parent})
