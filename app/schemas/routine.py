from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional, Dict
from datetime import datetime

from app.models.routine import RoutineType

DEFAULT_ESTIMATED_DURATION = 19  # minutes, used when the AI omits it
MAX_ROUTINE_TIPS = 3


def coerce_text_list(value: Any) -> List[str]:
    """Loose AI list field to a list of strings; unusable items are dropped"""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if isinstance(item, str):
            text = item.strip()
        elif isinstance(item, (int, float)) and not isinstance(item, bool):
            text = str(item)
        else:
            continue
        if text:
            items.append(text)
    return items


class DraftStep(BaseModel):
    """One step as suggested by the AI, before it is bound to a catalog product"""
    model_config = {"populate_by_name": True}

    step_number: Optional[int] = Field(None, alias="stepNumber")
    product_name: str = Field(..., alias="productName", min_length=1)
    instruction: str = ""
    wait_time: int = Field(0, alias="waitTime")

    @field_validator("instruction", mode="before")
    @classmethod
    def default_instruction(cls, v):
        return "" if v is None else str(v)

    @field_validator("wait_time", mode="before")
    @classmethod
    def clamp_wait_time(cls, v):
        try:
            return max(0, int(float(v)))
        except (TypeError, ValueError, OverflowError):
            return 0


class RoutineDraft(BaseModel):
    """Validated AI routine payload. Lives only for the duration of one synthesis call."""
    model_config = {"populate_by_name": True}

    steps: List[DraftStep]
    compatibility_warnings: List[str] = Field(default_factory=list, alias="compatibilityWarnings")
    estimated_duration: int = Field(DEFAULT_ESTIMATED_DURATION, alias="estimatedDuration")
    tips: List[str] = Field(default_factory=list, max_length=MAX_ROUTINE_TIPS)

    @field_validator("compatibility_warnings", mode="before")
    @classmethod
    def coerce_warnings(cls, v):
        return coerce_text_list(v)

    @field_validator("tips", mode="before")
    @classmethod
    def coerce_tips(cls, v):
        return coerce_text_list(v)[:MAX_ROUTINE_TIPS]

    @field_validator("estimated_duration", mode="before")
    @classmethod
    def coerce_duration(cls, v):
        try:
            return int(v) or DEFAULT_ESTIMATED_DURATION
        except (TypeError, ValueError):
            return DEFAULT_ESTIMATED_DURATION


class SynthesisOutcome(BaseModel):
    routine_type: str
    regenerated: bool
    step_count: Optional[int] = None
    dropped_steps: int = 0
    routine_id: Optional[str] = None
    reason: Optional[str] = None  # "insufficient_products", "no_steps_resolved"
    error: Optional[str] = None
    error_type: Optional[str] = None


class RegenerationResult(BaseModel):
    regenerated: bool
    count: int = 0
    per_type_results: Dict[str, SynthesisOutcome] = {}
    reason: Optional[str] = None


class RepairResult(BaseModel):
    routines_affected: int = 0
    routines_updated: int = 0
    routines_deleted: int = 0


# API payloads
class RoutineGenerateRequest(BaseModel):
    routine_type: RoutineType


class RoutineStepCreate(BaseModel):
    product_id: str
    instruction: str = ""
    wait_time: int = Field(0, ge=0)


class RoutineCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: RoutineType
    steps: List[RoutineStepCreate] = Field(..., min_length=1)
    compatibility_warnings: List[str] = []


class RoutineStepResponse(BaseModel):
    step_number: int
    product_id: str
    instruction: str
    wait_time: int


class RoutineResponse(BaseModel):
    id: str
    name: str
    type: str
    steps: List[RoutineStepResponse]
    is_ai_generated: bool
    compatibility_warnings: List[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, doc: dict) -> "RoutineResponse":
        return cls(
            id=str(doc["_id"]),
            name=doc["name"],
            type=doc["type"],
            steps=[
                RoutineStepResponse(
                    step_number=step["step_number"],
                    product_id=str(step["product_id"]),
                    instruction=step.get("instruction", ""),
                    wait_time=step.get("wait_time", 0),
                )
                for step in doc.get("steps", [])
            ],
            is_ai_generated=doc.get("is_ai_generated", False),
            compatibility_warnings=doc.get("compatibility_warnings", []),
            created_at=doc["created_at"],
            updated_at=doc.get("updated_at", doc["created_at"]),
        )


class RoutineListResponse(BaseModel):
    routines: List[RoutineResponse]
    total: int
