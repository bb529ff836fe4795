from typing import Optional

from fastapi import APIRouter, Depends
from pymongo.database import Database

from .. import progress
from ..deps import Caller, current_user, get_db
from ..models import ProgressUpdate
from ..responses import respond

router = APIRouter(prefix="/user-plan", tags=["user-plan"])


@router.post("/select-plan/{planID}")
def select_plan(planID: str, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(progress.select_plan(db, planID, caller.user_id))


@router.put("/update-progress/{exerciseID}")
def update_progress(exerciseID: str, body: ProgressUpdate, planID: Optional[str] = None,
                    db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    result = progress.update_completion(db, exerciseID, caller.user_id, completed=body.status,
                                        set_data=body.set_data, plan_id=planID)
    return respond(result)


@router.get("")
def get_progress(planID: Optional[str] = None, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(progress.get_progress(db, caller.user_id, planID))
