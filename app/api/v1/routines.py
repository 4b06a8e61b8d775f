from fastapi import APIRouter, Depends, status
from pymongo import DESCENDING
from pymongo.database import Database
import logging

from app.api.deps import get_db, get_current_active_user, get_routine_generator
from app.core.exceptions import RoutineSynthesisError, bad_request, not_found, forbidden, synthesis_error_response
from app.database import as_object_id
from app.models.user import UserModel
from app.models.routine import RoutineModel, RoutineStep
from app.schemas.routine import (
    RoutineCreate,
    RoutineGenerateRequest,
    RoutineListResponse,
    RoutineResponse,
    SynthesisOutcome,
    RegenerationResult,
)
from app.services.routine_generator_service import RoutineGeneratorService

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_owned_routine(db: Database, routine_id: str, user: UserModel, action: str) -> dict:
    try:
        routine_oid = as_object_id(routine_id)
    except ValueError:
        raise bad_request("Invalid routine ID")

    routine = db.routines.find_one({"_id": routine_oid})
    if not routine:
        raise not_found("Routine not found")

    if routine["user_id"] != user.id:
        raise forbidden(f"Not authorized to {action} this routine")

    return routine


@router.get("", response_model=RoutineListResponse)
def get_routines(
    current_user: UserModel = Depends(get_current_active_user),
    db: Database = Depends(get_db),
):
    """Get user's routines, newest first"""
    routines = list(db.routines.find({"user_id": current_user.id}).sort("created_at", DESCENDING))
    return RoutineListResponse(
        routines=[RoutineResponse.from_document(r) for r in routines],
        total=len(routines),
    )


@router.post("", response_model=RoutineResponse, status_code=status.HTTP_201_CREATED)
def create_routine(
    payload: RoutineCreate,
    current_user: UserModel = Depends(get_current_active_user),
    db: Database = Depends(get_db),
):
    """Create a user-authored routine; steps are numbered in the order submitted"""
    try:
        product_ids = [as_object_id(step.product_id) for step in payload.steps]
    except ValueError:
        raise bad_request("Invalid product ID in steps")

    owned = {
        p["_id"]
        for p in db.products.find({"_id": {"$in": product_ids}, "user_id": current_user.id}, {"_id": 1})
    }
    unknown = [str(pid) for pid in product_ids if pid not in owned]
    if unknown:
        raise bad_request(f"Unknown product(s): {', '.join(unknown)}")

    routine = RoutineModel(
        user_id=current_user.id,
        name=payload.name,
        type=payload.type,
        steps=[
            RoutineStep(
                step_number=index,
                product_id=product_id,
                instruction=step.instruction,
                wait_time=step.wait_time,
            )
            for index, (step, product_id) in enumerate(zip(payload.steps, product_ids), 1)
        ],
        is_ai_generated=False,
        compatibility_warnings=payload.compatibility_warnings,
    )
    doc = routine.model_dump(by_alias=True)
    db.routines.insert_one(doc)

    return RoutineResponse.from_document(doc)


@router.post("/generate", response_model=SynthesisOutcome)
def generate_routine(
    request: RoutineGenerateRequest,
    current_user: UserModel = Depends(get_current_active_user),
    generator: RoutineGeneratorService = Depends(get_routine_generator),
):
    """Generate (or replace) the AI routine of one type from the user's products"""
    try:
        return generator.synthesize(current_user.id, request.routine_type.value)
    except RoutineSynthesisError as e:
        logger.error(f"Routine generation failed: {e}")
        raise synthesis_error_response(e)


@router.post("/regenerate", response_model=RegenerationResult)
def regenerate_routines(
    current_user: UserModel = Depends(get_current_active_user),
    generator: RoutineGeneratorService = Depends(get_routine_generator),
):
    """Regenerate all AI routines now; failures are reported per routine type"""
    return generator.regenerate_all(current_user.id)


@router.get("/{routine_id}", response_model=RoutineResponse)
def get_routine(
    routine_id: str,
    current_user: UserModel = Depends(get_current_active_user),
    db: Database = Depends(get_db),
):
    routine = _get_owned_routine(db, routine_id, current_user, "access")
    return RoutineResponse.from_document(routine)


@router.delete("/{routine_id}")
def delete_routine(
    routine_id: str,
    current_user: UserModel = Depends(get_current_active_user),
    db: Database = Depends(get_db),
):
    routine = _get_owned_routine(db, routine_id, current_user, "delete")
    db.routines.delete_one({"_id": routine["_id"]})
    return {"message": "Routine deleted successfully"}
