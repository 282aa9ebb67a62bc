from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictFloat, StrictStr, field_validator
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union
from typing_extensions import Annotated

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

BlockType = Literal["warmup", "main", "recovery"]
DayStatus = Literal["pending", "generating", "ready", "error"]

PositiveStrictInt = Annotated[StrictInt, Field(gt=0)]
NonEmptyStr = Annotated[StrictStr, Field(min_length=1)]


# =============================================================================
# Generated workout document (wire shape shared with the rendering client)
# =============================================================================

class WorkoutItemPayload(BaseModel):
    """One exercise inside a block. `reps` is a count or a duration like "30s hold"."""
    model_config = ConfigDict(strict=True, extra="ignore")

    exercise_id: PositiveStrictInt
    name: NonEmptyStr
    sets: PositiveStrictInt
    reps: Union[PositiveStrictInt, NonEmptyStr]
    load: Optional[Union[StrictInt, StrictFloat, StrictStr]] = None
    rest_sec: Optional[Annotated[StrictInt, Field(ge=0)]] = None


class WorkoutBlockPayload(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    type: BlockType
    items: List[WorkoutItemPayload]


class WorkoutPayloadDoc(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    date: Annotated[StrictStr, Field(pattern=DATE_PATTERN)]
    title: NonEmptyStr
    duration_min: PositiveStrictInt
    coach_notes: Optional[StrictStr] = None
    blocks: Annotated[List[WorkoutBlockPayload], Field(min_length=1)]

    @field_validator("date")
    @classmethod
    def date_must_exist(cls, value: str) -> str:
        datetime.strptime(value, "%Y-%m-%d")
        return value


# =============================================================================
# Workout day API
# =============================================================================

class GenerateDayRequest(BaseModel):
    date: str


class GenerateDayResponse(BaseModel):
    status: Literal["generating", "pending", "no_action"]
    message: str


class WorkoutDayResponse(BaseModel):
    id: Optional[int] = None
    user_id: str
    date: str
    status: DayStatus
    payload: Optional[Dict[str, Any]] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    durable: bool = True


class DayNotFoundResponse(BaseModel):
    status: Literal["not_found"] = "not_found"
    message: str


class GenerateWeekDay(BaseModel):
    date: str
    status: Literal["generating", "pending", "no_action"]
    message: str


class GenerateWeekResponse(BaseModel):
    week_start: str
    week_end: str
    days: List[GenerateWeekDay]


class WorkoutWeekResponse(BaseModel):
    week_start: str
    week_end: str
    days: List[WorkoutDayResponse]


class PayloadValidationResponse(BaseModel):
    ok: bool
    errors: List[str] = []


# =============================================================================
# Exercise catalog API
# =============================================================================

class ExerciseRecordIn(BaseModel):
    """Bulk upsert item. `slug` is derived from `name` when omitted."""
    model_config = ConfigDict(extra="ignore")

    slug: Optional[str] = None
    name: str = Field(min_length=1)
    aliases: List[str] = []
    body_part: Optional[str] = None
    equipment: List[str] = []
    pattern: Optional[str] = None
    is_unilateral: bool = False


class BulkUpsertError(BaseModel):
    index: int
    error: str
    item: Any = None


class BulkUpsertResponse(BaseModel):
    inserted: int
    updated: int
    skipped: int
    total: int
    ignored: int = 0  # items beyond the per-call cap
    validation_errors: List[BulkUpsertError] = []


class ExerciseResolveResponse(BaseModel):
    name: str
    normalized: str
    exercise_id: int
    using_fallback: bool = False
