from .product import (
    ProductCreate, ProductUpdate, ProductResponse,
    ProductMutationResponse, ProductDeleteResponse
)
from .routine import (
    DraftStep, RoutineDraft, SynthesisOutcome, RegenerationResult, RepairResult,
    RoutineGenerateRequest, RoutineStepCreate, RoutineCreate,
    RoutineStepResponse, RoutineResponse, RoutineListResponse
)

__all__ = [
    # Product schemas
    "ProductCreate", "ProductUpdate", "ProductResponse",
    "ProductMutationResponse", "ProductDeleteResponse",
    # Routine schemas
    "DraftStep", "RoutineDraft", "SynthesisOutcome", "RegenerationResult", "RepairResult",
    "RoutineGenerateRequest", "RoutineStepCreate", "RoutineCreate",
    "RoutineStepResponse", "RoutineResponse", "RoutineListResponse"
]
