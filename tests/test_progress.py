from bson import ObjectId

from fittrack import progress
from fittrack.db import COLLECTIONS


class RacingDB:
    """Bumps the UserPlan version right before each of the first `races` updates."""

    def __init__(self, db, races):
        self.db = db
        self.races = races

    def __getitem__(self, name):
        collection = self.db[name]
        if name != COLLECTIONS["USER_PLANS"]:
            return collection
        outer = self

        class Racing:
            def update_one(self, query, update, *args, **kwargs):
                if outer.races > 0:
                    outer.races -= 1
                    collection.update_one({"_id": query["_id"]}, {"$inc": {"version": 1}})
                return collection.update_one(query, update, *args, **kwargs)

            def __getattr__(self, attr):
                return getattr(collection, attr)

        return Racing()


def exercise_ids(plan):
    return [e["_id"] for e in plan["weeks"][0]["days"][0]["categories"][0]["exercises"]]


def test_select_plan(client, plan, user_headers):
    resp = client.post(f"/api/v1/user-plan/select-plan/{plan['_id']}", headers=user_headers)
    assert resp.status_code == 201, resp.text
    user_plan = resp.json()["user_plan"]
    assert user_plan["total_exercises"] == 2
    assert user_plan["completed_exercises"] == 0
    assert user_plan["completion_percentage"] == 0
    assert [e["exercise"] for e in user_plan["exercises"]] == exercise_ids(plan)
    assert all(e["completed"] is False for e in user_plan["exercises"])


def test_select_missing_plan_is_400(client, user_headers):
    resp = client.post(f"/api/v1/user-plan/select-plan/{'0' * 24}", headers=user_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Plan not found"


def test_complete_and_flip(client, plan, user_headers):
    client.post(f"/api/v1/user-plan/select-plan/{plan['_id']}", headers=user_headers)
    squat, _ = exercise_ids(plan)

    resp = client.put(f"/api/v1/user-plan/update-progress/{squat}", json={"status": True, "set_data": [10, 8]},
                      headers=user_headers)
    assert resp.status_code == 200, resp.text
    user_plan = resp.json()["user_plan"]
    assert user_plan["completed_exercises"] == 1
    assert user_plan["completion_percentage"] == 50.0
    assert user_plan["exercises"][0]["set_data"] == [10, 8]
    assert user_plan["exercises"][0]["completion_date"] is not None

    # no status flips the current flag
    resp = client.put(f"/api/v1/user-plan/update-progress/{squat}", json={}, headers=user_headers)
    user_plan = resp.json()["user_plan"]
    assert user_plan["completed_exercises"] == 0
    assert user_plan["exercises"][0]["completion_date"] is None
    assert user_plan["version"] == 2


def test_unknown_exercise_is_404(client, plan, user_headers):
    client.post(f"/api/v1/user-plan/select-plan/{plan['_id']}", headers=user_headers)
    resp = client.put(f"/api/v1/user-plan/update-progress/{ObjectId()}", json={"status": True}, headers=user_headers)
    assert resp.status_code == 404


def test_get_progress_populates_plan(client, plan, user_headers):
    client.post(f"/api/v1/user-plan/select-plan/{plan['_id']}", headers=user_headers)
    resp = client.get("/api/v1/user-plan", headers=user_headers)
    assert resp.status_code == 200
    [user_plan] = resp.json()["plans"]
    assert user_plan["plan"]["plan_name"] == "Leg Day Blast"
    assert user_plan["plan"]["weeks"][0]["days"][0]["day_name"] == "Legs"

    resp = client.get("/api/v1/user-plan", params={"planID": str(ObjectId())}, headers=user_headers)
    assert resp.json()["plans"] == []


def test_concurrent_update_is_retried(db, plan, user):
    progress.select_plan(db, plan["_id"], user["_id"])
    squat, lunge = exercise_ids(plan)

    result = progress.update_completion(RacingDB(db, races=1), squat, user["_id"], completed=True)
    assert result.status == 200
    result = progress.update_completion(db, lunge, user["_id"], completed=True)
    assert result.data["user_plan"]["completed_exercises"] == 2
    assert result.data["user_plan"]["completion_percentage"] == 100.0


def test_retries_are_bounded(db, plan, user):
    progress.select_plan(db, plan["_id"], user["_id"])
    squat, _ = exercise_ids(plan)

    result = progress.update_completion(RacingDB(db, races=progress.MAX_ATTEMPTS), squat, user["_id"], completed=True)
    assert result.status == 409
    stored = db[COLLECTIONS["USER_PLANS"]].find_one({"user": user["_id"]})
    assert stored["completed_exercises"] == 0


def test_completion_stats_with_empty_plan():
    assert progress.completion_stats([], 0) == {"completed_exercises": 0, "completion_percentage": 0.0}
