from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from pymongo.database import Database

from .. import gallery, users
from ..deps import Caller, current_user, get_db, get_storage
from ..models import GalleryIn, ImageRemoval, LifeGoalIn, LifeGoalUpdate, ProfileUpdate, TodoIn, TodoUpdate
from ..responses import fail, respond
from ..storage import LocalStorage, Upload, store_all
from ..todos import life_goals, todos

router = APIRouter(prefix="/user", tags=["user"])


def to_upload(file: UploadFile) -> Upload:
    return Upload(file.filename, file.content_type, file.file.read())


# --- profile ---

@router.get("")
def get_user(db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(users.get_user(db, caller.user_id))


@router.put("/update")
def update_profile(body: ProfileUpdate, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(users.update_profile(db, caller.user_id, body))


@router.put("/profile-pic")
def update_profile_pic(image: UploadFile = File(...), db: Database = Depends(get_db),
                       storage: LocalStorage = Depends(get_storage), caller: Caller = Depends(current_user)):
    if not (image.content_type or "").startswith("image/"):
        return respond(fail(400, "Profile picture must be an image"))
    [url] = store_all(storage, f"profile/{caller.user_id}", [to_upload(image)])
    return respond(users.set_profile_pic(db, caller.user_id, url))


@router.post("/image/transformation")
def add_transformation(before: UploadFile = File(...), after: UploadFile = File(...),
                       before_date: Optional[str] = Form(default=None), db: Database = Depends(get_db),
                       storage: LocalStorage = Depends(get_storage), caller: Caller = Depends(current_user)):
    result = gallery.set_transformation(db, storage, caller.user_id, to_upload(before), to_upload(after), before_date)
    return respond(result)


# --- galleries ---

@router.post("/gallery")
def create_gallery(body: GalleryIn, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(gallery.create_gallery(db, caller.user_id, body))


@router.get("/gallery")
def get_galleries(galleryID: Optional[str] = None, db: Database = Depends(get_db),
                  caller: Caller = Depends(current_user)):
    return respond(gallery.get_galleries(db, caller.user_id, galleryID))


@router.delete("/gallery/{galleryID}")
def delete_gallery(galleryID: str, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(gallery.delete_gallery(db, caller.user_id, galleryID))


@router.post("/gallery/{galleryID}/image")
def add_gallery_images(galleryID: str, images: List[UploadFile] = File(...), db: Database = Depends(get_db),
                       storage: LocalStorage = Depends(get_storage), caller: Caller = Depends(current_user)):
    uploads = [to_upload(f) for f in images]
    return respond(gallery.add_images(db, storage, caller.user_id, galleryID, uploads))


@router.delete("/gallery/{galleryID}/image")
def remove_gallery_images(galleryID: str, body: ImageRemoval, db: Database = Depends(get_db),
                          caller: Caller = Depends(current_user)):
    return respond(gallery.remove_images(db, caller.user_id, galleryID, body.images))


# --- bookmarks & fitness profile ---

@router.post("/bookmarks/{dayID}")
def add_bookmark(dayID: str, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(gallery.add_bookmark(db, caller.user_id, dayID))


@router.get("/bookmarks")
def get_bookmarks(db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(gallery.get_bookmarks(db, caller.user_id))


@router.delete("/bookmarks/{dayID}")
def remove_bookmark(dayID: str, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(gallery.remove_bookmark(db, caller.user_id, dayID))


@router.post("/measurements")
def update_measurements(body: Dict[str, Any] = Body(...), db: Database = Depends(get_db),
                        caller: Caller = Depends(current_user)):
    return respond(gallery.update_measurements(db, caller.user_id, body))


@router.get("/fitness-profile")
def get_fitness_profile(db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(gallery.get_fitness_profile(db, caller.user_id))


# --- todos ---

@router.post("/todo")
def create_todo(body: TodoIn, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(todos(db).create(caller.user_id, body))


@router.get("/todo")
def get_todos(todoID: Optional[str] = None, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(todos(db).fetch(caller.user_id, todoID))


@router.put("/todo/{todoID}")
def update_todo(todoID: str, body: TodoUpdate, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(todos(db).update(caller.user_id, todoID, body))


@router.delete("/todo/{todoID}")
def delete_todo(todoID: str, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(todos(db).delete(caller.user_id, todoID))


# --- life goals ---

@router.post("/goal")
def create_goal(body: LifeGoalIn, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(life_goals(db).create(caller.user_id, body))


@router.get("/goal")
def get_goals(goalID: Optional[str] = None, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(life_goals(db).fetch(caller.user_id, goalID))


@router.put("/goal/{goalID}")
def update_goal(goalID: str, body: LifeGoalUpdate, db: Database = Depends(get_db),
                caller: Caller = Depends(current_user)):
    return respond(life_goals(db).update(caller.user_id, goalID, body))


@router.delete("/goal/{goalID}")
def delete_goal(goalID: str, db: Database = Depends(get_db), caller: Caller = Depends(current_user)):
    return respond(life_goals(db).delete(caller.user_id, goalID))
