from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


# --- catalog ---

class ExerciseIn(BaseModel):
    name: str = Field(min_length=1)
    exercise_number: Optional[int] = None
    exercise_type: Optional[str] = Field(default=None, description="Normal | Dropset | Superset")
    time_based: Optional[str] = None
    weighted: Optional[str] = None
    sets: Optional[int] = Field(default=None, ge=0)
    reps: Optional[List[int]] = None
    set_time: Optional[str] = None
    superset_names: Optional[List[str]] = None
    rest_time: Optional[float] = Field(default=None, ge=0)
    video_url: Optional[str] = None
    image_url: Optional[str] = None


class ExerciseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    exercise_number: Optional[int] = None
    exercise_type: Optional[str] = None
    time_based: Optional[str] = None
    weighted: Optional[str] = None
    sets: Optional[int] = Field(default=None, ge=0)
    reps: Optional[List[int]] = None
    set_time: Optional[str] = None
    superset_names: Optional[List[str]] = None
    rest_time: Optional[float] = Field(default=None, ge=0)
    video_url: Optional[str] = None
    image_url: Optional[str] = None


class CategoryIn(BaseModel):
    sub_category: str = Field(description="Warm up | Training | Superset | Circuit | Cool down")
    circuit_rest_time: Optional[float] = Field(default=None, ge=0)
    circuit_reps: Optional[int] = Field(default=None, ge=0)
    exercises: List[ExerciseIn] = Field(default_factory=list)


class CategoryUpdate(BaseModel):
    sub_category: Optional[str] = None
    circuit_rest_time: Optional[float] = Field(default=None, ge=0)
    circuit_reps: Optional[int] = Field(default=None, ge=0)


class DayIn(BaseModel):
    day: int = Field(ge=1)
    day_name: Optional[str] = None
    day_banner_image: Optional[str] = None
    day_video: Optional[str] = None
    day_of_week: Optional[str] = None
    estimated_duration: Optional[str] = None
    categories: List[CategoryIn] = Field(default_factory=list)


class DayUpdate(BaseModel):
    day: Optional[int] = Field(default=None, ge=1)
    day_name: Optional[str] = None
    day_banner_image: Optional[str] = None
    day_video: Optional[str] = None
    day_of_week: Optional[str] = None
    estimated_duration: Optional[str] = None


class WeekIn(BaseModel):
    week: Union[int, List[int]] = Field(description="Week number, or a list of week numbers sharing these days")
    days: List[DayIn] = Field(default_factory=list)

    @field_validator("week")
    @classmethod
    def _positive_weeks(cls, v):
        numbers = v if isinstance(v, list) else [v]
        if not numbers:
            raise ValueError("week list must not be empty")
        if any(n < 1 for n in numbers):
            raise ValueError("week numbers must be >= 1")
        return v


class WeekUpdate(BaseModel):
    week: Optional[int] = Field(default=None, ge=1)


class PlanFields(BaseModel):
    description: Optional[str] = None
    banner_image: Optional[str] = None
    workout_keywords: Optional[str] = None
    goal_orientation: Optional[List[str]] = None
    target_age_group: Optional[str] = None
    training_type: Optional[str] = None
    location: Optional[str] = None
    level: Optional[str] = Field(default=None, description="Beginner | Intermediate | Advanced")
    estimated_duration: Optional[str] = None
    rest_between_exercises_seconds: Optional[float] = Field(default=None, ge=0)
    average_calories_burned_per_minute: Optional[float] = Field(default=None, ge=0)


class PlanCreate(PlanFields):
    plan_name: str = Field(min_length=1)
    trending: bool = False
    featured: bool = False
    weeks: List[WeekIn] = Field(default_factory=list)


class PlanUpdate(PlanFields):
    plan_name: Optional[str] = Field(default=None, min_length=1)


# --- progress ---

class ProgressUpdate(BaseModel):
    status: Optional[bool] = Field(default=None, description="New completion flag; omitted flips the current one")
    set_data: Optional[Any] = None


# --- accounts ---

class SignupRequest(BaseModel):
    name: str = Field(min_length=3, max_length=50)
    email: str = Field(min_length=3)
    password: str = Field(min_length=8)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()


class VerifyOtpRequest(BaseModel):
    email: str
    otp: str

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()


class EmailRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()


class Height(BaseModel):
    value: float = Field(ge=0)
    unit: Literal["cm", "ft"]

    @field_validator("unit", mode="before")
    @classmethod
    def _lower(cls, v):
        return v.lower() if isinstance(v, str) else v


class Weight(BaseModel):
    value: float = Field(ge=0)
    unit: Literal["kg", "lb"]

    @field_validator("unit", mode="before")
    @classmethod
    def _lower(cls, v):
        return v.lower() if isinstance(v, str) else v


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=50)
    age: Optional[int] = Field(default=None, ge=0, le=130)
    gender: Optional[Literal["male", "female", "other"]] = None
    height: Optional[Height] = None
    weight: Optional[Weight] = None
    goal: Optional[str] = None
    experience: Optional[str] = None
    workout_type: Optional[str] = None
    workout_frequency: Optional[int] = Field(default=None, ge=0, le=14)

    @field_validator("gender", "goal", "experience", "workout_type", mode="before")
    @classmethod
    def _lower(cls, v):
        return v.lower() if isinstance(v, str) else v


# --- todos & goals ---

WEEK_DAYS = Literal["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Weekly", "Daily"]


class TodoTime(BaseModel):
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)
    am_pm: str


class TodoIn(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    priority: Optional[Literal[1, 2, 3]] = None
    day: List[WEEK_DAYS] = Field(default_factory=list)
    time: TodoTime
    is_completed: bool = False


class TodoUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    priority: Optional[Literal[1, 2, 3]] = None
    day: Optional[List[WEEK_DAYS]] = None
    time: Optional[TodoTime] = None
    is_completed: Optional[bool] = None


class LifeGoalIn(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    priority: Optional[Literal[1, 2, 3]] = None
    deadline: datetime
    completed: bool = False


class LifeGoalUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    priority: Optional[Literal[1, 2, 3]] = None
    deadline: Optional[datetime] = None
    completed: Optional[bool] = None


# --- galleries ---

class GalleryIn(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None


class ImageRemoval(BaseModel):
    images: List[str] = Field(min_length=1)


# --- challenges ---

class TaskDuration(BaseModel):
    value: float = Field(ge=0)
    unit: Literal["mins", "seconds", "hours", "litre", "steps", "pages"]


class TaskIn(BaseModel):
    title: str = Field(min_length=1)
    duration: TaskDuration
    completed: bool = False
    score: float = 0
    percentage: float = Field(default=0, ge=0, le=100)


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[TaskDuration] = None
    completed: Optional[bool] = None
    score: Optional[float] = None
    percentage: Optional[float] = Field(default=None, ge=0, le=100)


class SnapShot(BaseModel):
    image: str
    date: datetime


class BeforeAndAfter(BaseModel):
    before: Optional[SnapShot] = None
    after: Optional[SnapShot] = None


class ChallengeIn(BaseModel):
    title: str = Field(min_length=1)
    duration: int = Field(ge=1, description="Length in days")
    tasks: List[str] = Field(default_factory=list)
    start_date: Optional[datetime] = None
    before_and_after: Optional[BeforeAndAfter] = None


class ChallengeUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[int] = Field(default=None, ge=1)
    tasks: Optional[List[str]] = None
    start_date: Optional[datetime] = None
    completed: Optional[bool] = None
    before_and_after: Optional[BeforeAndAfter] = None


def changes(model: BaseModel) -> Dict[str, Any]:
    """Fields the client actually sent, ready for a $set."""
    return model.model_dump(exclude_unset=True, exclude_none=True)
