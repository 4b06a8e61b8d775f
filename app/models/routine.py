from pydantic import BaseModel, Field, model_validator
from typing import List
from datetime import datetime
from enum import Enum
from bson import ObjectId
from .user import PyObjectId


class RoutineType(str, Enum):
    MORNING = "morning"
    NIGHT = "night"


class RoutineStep(BaseModel):
    model_config = {"arbitrary_types_allowed": True}

    step_number: int = Field(..., ge=1)
    product_id: PyObjectId
    instruction: str = ""
    wait_time: int = Field(0, ge=0)  # minutes


class RoutineModel(BaseModel):
    """A stored routine. Steps are never empty and always numbered 1..N."""

    model_config = {
        "arbitrary_types_allowed": True,
        "populate_by_name": True,
        "use_enum_values": True,
        "json_encoders": {ObjectId: str, datetime: lambda v: v.isoformat()}
    }

    id: PyObjectId = Field(default_factory=PyObjectId, alias="_id")
    user_id: PyObjectId
    name: str
    type: RoutineType
    steps: List[RoutineStep]
    is_ai_generated: bool = False
    compatibility_warnings: List[str] = []
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def check_steps_dense(self):
        if not self.steps:
            raise ValueError("A routine must have at least one step")
        numbers = [step.step_number for step in self.steps]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValueError(f"Step numbers must run 1..{len(numbers)} in order, got {numbers}")
        return self


def renumber_steps(steps: List[dict]) -> List[dict]:
    """Return copies of stored step documents numbered 1..N, keeping their order"""
    ordered = sorted(steps, key=lambda s: s.get("step_number", 0))
    return [{**step, "step_number": index} for index, step in enumerate(ordered, 1)]
