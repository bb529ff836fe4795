import json
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import ValidationError
from pymongo.database import Database

from .. import catalog
from ..authoring import PlanAuthor
from ..deps import Caller, admin_user, current_user, get_db, get_storage
from ..models import (
    CategoryIn, CategoryUpdate, DayIn, DayUpdate, ExerciseIn, ExerciseUpdate,
    PlanCreate, PlanUpdate, WeekIn, WeekUpdate, changes,
)
from ..responses import fail, ok, respond
from ..storage import LocalStorage, Upload, store_all

router = APIRouter(prefix="/plan", tags=["plans"])


# --- workout plans ---

@router.post("/create")
def create_plan(body: PlanCreate, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(PlanAuthor(db).create_plan(body))


@router.post("/create/json")
def create_plan_from_file(planData: UploadFile = File(...), db: Database = Depends(get_db),
                          _: Caller = Depends(admin_user)):
    try:
        payload = PlanCreate.model_validate(json.loads(planData.file.read()))
    except ValueError as e:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
        errors = e.errors(include_url=False) if isinstance(e, ValidationError) else [str(e)]
        return respond(fail(400, "Invalid plan file", errors=errors))
    return respond(PlanAuthor(db).create_plan(payload))


@router.get("/fetch")
def fetch_plans(planID: Optional[str] = None, search: Optional[str] = None, location: Optional[str] = None,
                training_type: Optional[str] = None, level: Optional[str] = None, populate: bool = False,
                db: Database = Depends(get_db), _: Caller = Depends(current_user)):
    result = catalog.fetch_plans(db, planID, populated=populate, search=search, location=location,
                                 training_type=training_type, level=level)
    return respond(result)


@router.get("/overview")
def plan_overview(db: Database = Depends(get_db), _: Caller = Depends(current_user)):
    return respond(catalog.plan_overview(db))


@router.get("/featured")
def featured_plans(db: Database = Depends(get_db), _: Caller = Depends(current_user)):
    return respond(catalog.flagged_plans(db, "featured"))


@router.post("/featured/{planID}")
def toggle_featured(planID: str, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(catalog.toggle_flag(db, planID, "featured"))


@router.get("/trending")
def trending_plans(db: Database = Depends(get_db), _: Caller = Depends(current_user)):
    return respond(catalog.flagged_plans(db, "trending"))


@router.post("/trending/{planID}")
def toggle_trending(planID: str, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(catalog.toggle_flag(db, planID, "trending"))


@router.post("/files/upload")
def upload_file(file: UploadFile = File(...), storage: LocalStorage = Depends(get_storage),
                _: Caller = Depends(admin_user)):
    [url] = store_all(storage, "workoutPlan", [Upload(file.filename, file.content_type, file.file.read())])
    return respond(ok("File uploaded successfully", url=url))


# --- weeks ---

@router.get("/week/{weekID}")
def fetch_week(weekID: str, populate: bool = True, db: Database = Depends(get_db), _: Caller = Depends(current_user)):
    return respond(catalog.fetch_level(db, "WEEKS", weekID, populate))


@router.put("/week/{weekID}")
def update_week(weekID: str, body: WeekUpdate, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(catalog.update_level(db, "WEEKS", weekID, changes(body)))


@router.delete("/week/{weekID}")
def delete_week(weekID: str, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(catalog.delete_level(db, "WEEKS", weekID))


@router.post("/week/{weekID}/day")
def add_day(weekID: str, body: DayIn, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(PlanAuthor(db).add_day(weekID, body))


# --- days ---

@router.get("/day/{dayID}")
def fetch_day(dayID: str, populate: bool = True, db: Database = Depends(get_db), _: Caller = Depends(current_user)):
    return respond(catalog.fetch_level(db, "DAYS", dayID, populate))


@router.get("/day/{dayID}/exercises")
def fetch_day_exercises(dayID: str, db: Database = Depends(get_db), _: Caller = Depends(current_user)):
    return respond(catalog.day_exercises(db, dayID))


@router.put("/day/{dayID}")
def update_day(dayID: str, body: DayUpdate, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(catalog.update_level(db, "DAYS", dayID, changes(body)))


@router.delete("/day/{dayID}")
def delete_day(dayID: str, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(catalog.delete_level(db, "DAYS", dayID))


@router.post("/day/{dayID}/category")
def add_category(dayID: str, body: CategoryIn, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(PlanAuthor(db).add_category(dayID, body))


# --- categories ---

@router.get("/category/{categoryID}")
def fetch_category(categoryID: str, populate: bool = True, db: Database = Depends(get_db),
                   _: Caller = Depends(current_user)):
    return respond(catalog.fetch_level(db, "CATEGORIES", categoryID, populate))


@router.put("/category/{categoryID}")
def update_category(categoryID: str, body: CategoryUpdate, db: Database = Depends(get_db),
                    _: Caller = Depends(admin_user)):
    return respond(catalog.update_level(db, "CATEGORIES", categoryID, changes(body)))


@router.delete("/category/{categoryID}")
def delete_category(categoryID: str, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(catalog.delete_level(db, "CATEGORIES", categoryID))


@router.post("/category/{categoryID}/exercise")
def add_exercise(categoryID: str, body: ExerciseIn, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(PlanAuthor(db).add_exercise(categoryID, body))


# --- exercises ---

@router.get("/exercise/{exerciseID}")
def fetch_exercise(exerciseID: str, db: Database = Depends(get_db), _: Caller = Depends(current_user)):
    return respond(catalog.fetch_level(db, "EXERCISES", exerciseID))


@router.put("/exercise/{exerciseID}")
def update_exercise(exerciseID: str, body: ExerciseUpdate, db: Database = Depends(get_db),
                    _: Caller = Depends(admin_user)):
    return respond(catalog.update_level(db, "EXERCISES", exerciseID, changes(body)))


@router.delete("/exercise/{exerciseID}")
def delete_exercise(exerciseID: str, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(catalog.delete_level(db, "EXERCISES", exerciseID))


# --- plan by id (declared last so the fixed paths above win) ---

@router.put("/{planID}")
def update_plan(planID: str, body: PlanUpdate, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(catalog.update_level(db, "PLANS", planID, changes(body)))


@router.delete("/{planID}")
def delete_plan(planID: str, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(catalog.delete_level(db, "PLANS", planID))


@router.post("/{planID}/week")
def add_week(planID: str, body: WeekIn, db: Database = Depends(get_db), _: Caller = Depends(admin_user)):
    return respond(PlanAuthor(db).add_weeks(planID, body))
