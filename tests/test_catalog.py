from conftest import make_plan_payload
from fittrack.catalog import fuzzy_pattern, plan_filters, toggle_flag
from fittrack.db import COLLECTIONS


class ConcurrentToggleDB:
    """Completes a second toggle of the same flag just before the first write."""

    def __init__(self, db, plan_id, flag):
        self.db = db
        self.plan_id = plan_id
        self.flag = flag
        self.pending = True

    def __getitem__(self, name):
        collection = self.db[name]
        if name != COLLECTIONS["PLANS"]:
            return collection
        outer = self

        class Interleaved:
            def find_one_and_update(self, *args, **kwargs):
                if outer.pending:
                    outer.pending = False
                    toggle_flag(outer.db, outer.plan_id, outer.flag)
                return collection.find_one_and_update(*args, **kwargs)

            def __getattr__(self, attr):
                return getattr(collection, attr)

        return Interleaved()


def test_fuzzy_pattern_ignores_whitespace():
    assert fuzzy_pattern("leg day") == fuzzy_pattern("legday")
    assert fuzzy_pattern("a.b") == r"a\s*\.\s*b"
    assert plan_filters() == {}
    assert plan_filters(search="   ") == {}


def test_search_and_filters(client, admin_headers, user_headers):
    client.post("/api/v1/plan/create", json=make_plan_payload(), headers=admin_headers)
    client.post("/api/v1/plan/create", json=make_plan_payload(plan_name="Home Cardio", location="Home"),
                headers=admin_headers)

    resp = client.get("/api/v1/plan/fetch", params={"search": "legday"}, headers=user_headers)
    assert resp.status_code == 200, resp.text
    assert [p["plan_name"] for p in resp.json()["plans"]] == ["Leg Day Blast"]

    resp = client.get("/api/v1/plan/fetch", params={"location": "home"}, headers=user_headers)
    assert [p["plan_name"] for p in resp.json()["plans"]] == ["Home Cardio"]

    # location is matched as a whole value
    resp = client.get("/api/v1/plan/fetch", params={"location": "gy"}, headers=user_headers)
    assert resp.json()["plans"] == []

    resp = client.get("/api/v1/plan/fetch", headers=user_headers)
    assert len(resp.json()["plans"]) == 2
    assert isinstance(resp.json()["plans"][0]["weeks"][0], str)

    resp = client.get("/api/v1/plan/fetch", params={"populate": True}, headers=user_headers)
    assert isinstance(resp.json()["plans"][0]["weeks"][0], dict)


def test_fetch_single_plan_and_levels(client, plan, user_headers):
    resp = client.get("/api/v1/plan/fetch", params={"planID": plan["_id"], "populate": True}, headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["plan"]["weeks"][0]["days"][0]["day_name"] == "Legs"

    week_id = plan["weeks"][0]["_id"]
    resp = client.get(f"/api/v1/plan/week/{week_id}", headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["week"]["days"][0]["categories"][0]["sub_category"] == "Training"

    resp = client.get("/api/v1/plan/exercise/not-an-id", headers=user_headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Exercise not found"


def test_overview(client, plan, user_headers):
    resp = client.get("/api/v1/plan/overview", headers=user_headers)
    assert resp.status_code == 200
    [card] = resp.json()["plans"]
    assert card["plan_name"] == "Leg Day Blast"
    assert card["week_count"] == 1
    assert "weeks" not in card


def test_day_exercises(client, plan, user_headers):
    day_id = plan["weeks"][0]["days"][0]["_id"]
    resp = client.get(f"/api/v1/plan/day/{day_id}/exercises", headers=user_headers)
    assert resp.status_code == 200
    assert [e["name"] for e in resp.json()["exercises"]] == ["Squat", "Lunge"]


def test_update_level(client, plan, admin_headers):
    exercise_id = plan["weeks"][0]["days"][0]["categories"][0]["exercises"][0]["_id"]
    resp = client.put(f"/api/v1/plan/exercise/{exercise_id}", json={"sets": 5}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["exercise"]["sets"] == 5
    assert resp.json()["exercise"]["name"] == "Squat"

    resp = client.put(f"/api/v1/plan/exercise/{exercise_id}", json={}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Nothing to update"

    resp = client.put(f"/api/v1/plan/{plan['_id']}", json={"plan_name": "Leg Day 2"}, headers=admin_headers)
    assert resp.json()["plan"]["plan_name"] == "Leg Day 2"

    resp = client.put(f"/api/v1/plan/{'0' * 24}", json={"plan_name": "Nope"}, headers=admin_headers)
    assert resp.status_code == 404


def test_delete_removes_reference_from_parent(client, db, plan, admin_headers, user_headers):
    week_id = plan["weeks"][0]["_id"]
    day_id = plan["weeks"][0]["days"][0]["_id"]
    resp = client.delete(f"/api/v1/plan/day/{day_id}", headers=admin_headers)
    assert resp.status_code == 200, resp.text

    resp = client.get(f"/api/v1/plan/week/{week_id}", headers=user_headers)
    assert resp.json()["week"]["days"] == []
    # children of the deleted day stay in the store
    assert db.categories.count_documents({}) == 1

    resp = client.delete(f"/api/v1/plan/day/{day_id}", headers=admin_headers)
    assert resp.status_code == 404


def test_delete_plan_keeps_weeks(client, db, plan, admin_headers):
    resp = client.delete(f"/api/v1/plan/{plan['_id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert db.plans.count_documents({}) == 0
    assert db.weeks.count_documents({}) == 1


def test_featured_and_trending_toggle(client, plan, admin_headers, user_headers):
    resp = client.post(f"/api/v1/plan/featured/{plan['_id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["plan"]["featured"] is True

    resp = client.get("/api/v1/plan/featured", headers=user_headers)
    assert [p["_id"] for p in resp.json()["plans"]] == [plan["_id"]]
    assert resp.json()["plans"][0]["weeks"][0]["days"][0]["day_name"] == "Legs"

    resp = client.post(f"/api/v1/plan/featured/{plan['_id']}", headers=admin_headers)
    assert resp.json()["plan"]["featured"] is False
    resp = client.get("/api/v1/plan/featured", headers=user_headers)
    assert resp.json()["plans"] == []

    resp = client.post(f"/api/v1/plan/trending/{plan['_id']}", headers=admin_headers)
    assert resp.json()["plan"]["trending"] is True
    resp = client.get("/api/v1/plan/trending", headers=user_headers)
    assert len(resp.json()["plans"]) == 1


def test_file_upload(client, settings, admin_headers):
    files = {"file": ("banner.png", b"\x89PNG fake", "image/png")}
    resp = client.post("/api/v1/plan/files/upload", files=files, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    url = resp.json()["url"]
    assert url.startswith("http://testserver/files/workoutPlan/")
    assert url.endswith(".png")


def test_concurrent_flag_toggles_both_count(db, plan):
    result = toggle_flag(ConcurrentToggleDB(db, plan["_id"], "featured"), plan["_id"], "featured")
    assert result.status == 200
    assert result.data["plan"]["featured"] is False
    assert db[COLLECTIONS["PLANS"]].find_one()["featured"] is False

    result = toggle_flag(db, plan["_id"], "trending")
    assert result.data["plan"]["trending"] is True
    toggle_flag(ConcurrentToggleDB(db, plan["_id"], "trending"), plan["_id"], "trending")
    assert db[COLLECTIONS["PLANS"]].find_one()["trending"] is True


def test_toggle_missing_plan_is_404(db):
    assert toggle_flag(db, "0" * 24, "featured").status == 404
