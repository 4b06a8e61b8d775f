from typing import Optional
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.database import Database
from bson import ObjectId

from app.database import get_database
from app.core.security import verify_token
from app.models.user import UserModel
from app.services.ai_completion_service import AICompletionService, ai_completion_service
from app.services.catalog_reconciler import CatalogReconciler
from app.services.regeneration_queue import RegenerationQueue
from app.services.routine_generator_service import RoutineGeneratorService

logger = logging.getLogger(__name__)

security = HTTPBearer()

_regeneration_queue: Optional[RegenerationQueue] = None

def get_db() -> Database:
    return get_database()

async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Database = Depends(get_db)
) -> UserModel:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = verify_token(credentials.credentials)
    if user_id is None or not ObjectId.is_valid(user_id):
        logger.error("Token verification failed - invalid or expired token")
        raise credentials_exception

    user_data = db.users.find_one({"_id": ObjectId(user_id)})
    if user_data is None:
        raise credentials_exception

    return UserModel(**user_data)

async def get_current_active_user(
    current_user: UserModel = Depends(get_current_user)
) -> UserModel:
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user"
        )
    return current_user

def get_ai_service() -> AICompletionService:
    return ai_completion_service

def get_routine_generator(
    db: Database = Depends(get_db),
    ai_service: AICompletionService = Depends(get_ai_service)
) -> RoutineGeneratorService:
    return RoutineGeneratorService(db, ai_service)

def get_regeneration_queue() -> RegenerationQueue:
    global _regeneration_queue
    if _regeneration_queue is None:
        _regeneration_queue = RegenerationQueue(
            lambda: RoutineGeneratorService(get_database(), ai_completion_service)
        )
    return _regeneration_queue

def shutdown_regeneration_queue() -> None:
    global _regeneration_queue
    if _regeneration_queue is not None:
        _regeneration_queue.shutdown(wait=True)
        _regeneration_queue = None

def get_catalog_reconciler(
    db: Database = Depends(get_db),
    queue: RegenerationQueue = Depends(get_regeneration_queue)
) -> CatalogReconciler:
    return CatalogReconciler(db, queue)
