from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Any, Dict, List, Optional, Type, Union
from enum import Enum

from fitcircle.schemas.user import UserSummary

POST_CONTENT_MAX_LENGTH = 500
COMMENT_MAX_LENGTH = 300


class PostType(str, Enum):
    WEIGHT_UPDATE = "weight_update"
    MEAL_PLAN = "meal_plan"
    CUSTOM_MEAL = "custom_meal"
    CALORIE_LOG = "calorie_log"
    WORKOUT_LOG = "workout_log"
    PROGRESS_UPDATE = "progress_update"


class PostVisibility(str, Enum):
    FRIENDS = "friends"
    PUBLIC = "public"


# Per-type payloads. Keys are camelCase on the wire; unknown keys are kept.
# Every field is optional: form inputs may be blank, and numbers may arrive as strings.
Number = Optional[Union[float, str]]


class PostPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class WeightUpdatePayload(PostPayload):
    weight: Number = None
    change: Number = None


class MealPlanPayload(PostPayload):
    title: Optional[str] = None
    plan_type: Optional[str] = None
    total_calories: Number = None
    days: Optional[List[Any]] = None
    meals: Optional[List[Any]] = None


class CustomMealPayload(PostPayload):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    calories: Number = None
    protein: Number = None
    carbs: Number = None
    fat: Number = None
    fiber: Number = None
    serving: Optional[str] = None
    ingredients: Optional[List[Any]] = None


class CalorieLogPayload(PostPayload):
    calories: Number = None
    goal: Number = None
    meals: Optional[List[Any]] = None


class WorkoutLogPayload(PostPayload):
    workout: Optional[str] = None
    duration: Number = None
    calories: Number = None
    intensity: Optional[str] = None


class ProgressUpdatePayload(PostPayload):
    weight: Number = None
    body_fat: Number = None
    muscle_mass: Number = None
    note: Optional[str] = None


POST_PAYLOADS: Dict[PostType, Type[PostPayload]] = {
    PostType.WEIGHT_UPDATE: WeightUpdatePayload,
    PostType.MEAL_PLAN: MealPlanPayload,
    PostType.CUSTOM_MEAL: CustomMealPayload,
    PostType.CALORIE_LOG: CalorieLogPayload,
    PostType.WORKOUT_LOG: WorkoutLogPayload,
    PostType.PROGRESS_UPDATE: ProgressUpdatePayload,
}


# Post Schemas
class PostCreate(BaseModel):
    type: Optional[PostType] = None
    content: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    visibility: PostVisibility = PostVisibility.FRIENDS


class CommentCreate(BaseModel):
    text: str


class Reply(BaseModel):
    id: int
    user: UserSummary
    text: str
    created_at: datetime


class Comment(BaseModel):
    id: int
    user: UserSummary
    text: str
    replies: List[Reply] = []
    created_at: datetime


class CommentList(BaseModel):
    comments: List[Comment]


class Post(BaseModel):
    id: int
    user: UserSummary
    type: PostType
    content: str = ""
    data: Dict[str, Any] = {}
    visibility: PostVisibility
    likes: List[int] = []
    like_count: int = 0
    liked: bool = False
    comments: List[Comment] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class PostResponse(BaseModel):
    post: Post


class Feed(BaseModel):
    posts: List[Post]
    total: int
    page: int
    has_more: bool


class LikeResult(BaseModel):
    likes: int
    liked: bool
