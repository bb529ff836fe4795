from typing import Optional

from fastapi import APIRouter, Depends
from pymongo.database import Database

from .. import challenges
from ..deps import Caller, current_user, get_db
from ..models import ChallengeIn, ChallengeUpdate, TaskIn, TaskUpdate
from ..responses import respond

router = APIRouter(prefix="/challenge", tags=["challenges"])


# --- tasks (registered before /{challengeID}) ---

@router.post("/task")
def create_task(body: TaskIn, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(challenges.create_task(db, caller.user_id, body))


@router.get("/task")
def get_tasks(taskID: Optional[str] = None, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(challenges.get_tasks(db, caller.user_id, taskID))


@router.put("/task/{taskID}")
def update_task(taskID: str, body: TaskUpdate, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(challenges.update_task(db, caller.user_id, taskID, body))


@router.patch("/task/{taskID}")
def update_task_progress(taskID: str, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(challenges.update_task_progress(db, caller.user_id, taskID))


@router.delete("/task/{taskID}")
def delete_task(taskID: str, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(challenges.delete_task(db, caller.user_id, taskID))


# --- challenges ---

@router.post("")
def create_challenge(body: ChallengeIn, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(challenges.create_challenge(db, caller.user_id, body))


@router.get("")
def read_challenges(challengeID: Optional[str] = None, db: Database = Depends(get_db),
                    caller: Caller = Depends(current_user)):
    return respond(challenges.read_challenges(db, caller.user_id, challengeID))


@router.put("/{challengeID}")
def update_challenge(challengeID: str, body: ChallengeUpdate, db: Database = Depends(get_db),
                     caller: Caller = Depends(current_user)):
    return respond(challenges.update_challenge(db, caller.user_id, challengeID, body))


@router.patch("/{challengeID}/activate")
def activate_challenge(challengeID: str, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(challenges.activate_challenge(db, caller.user_id, challengeID))


@router.delete("/{challengeID}")
def delete_challenge(challengeID: str, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(challenges.delete_challenge(db, caller.user_id, challengeID))
