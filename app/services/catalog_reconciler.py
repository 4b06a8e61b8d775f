"""
Keeps stored routines consistent with the product catalog.

Two jobs: deciding when a catalog change warrants regenerating the AI
routines, and repairing routines that reference a product about to be
deleted. Repair runs inline and must succeed before the product goes away;
regeneration is handed to the RegenerationQueue and never awaited.
"""
from concurrent.futures import Future
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Set
import logging

from pymongo.database import Database
from pymongo.errors import PyMongoError

from app.core.exceptions import IntegrityRepairError
from app.database import as_object_id
from app.models.routine import renumber_steps
from app.schemas.routine import RepairResult
from app.services.regeneration_queue import RegenerationQueue

logger = logging.getLogger(__name__)


class CatalogChange(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


# Product fields that change which routine the AI would build
SIGNIFICANT_FIELDS = frozenset({"type", "usage", "is_active"})


def decide_regeneration_trigger(change_kind, changed_fields: Optional[Iterable[str]] = None) -> bool:
    change_kind = CatalogChange(change_kind)
    if change_kind in (CatalogChange.CREATED, CatalogChange.DELETED):
        return True
    return bool(SIGNIFICANT_FIELDS.intersection(changed_fields or ()))


def changed_product_fields(existing: Dict[str, Any], updates: Dict[str, Any]) -> Set[str]:
    """Fields in updates whose value differs from the stored product"""
    return {field for field, value in updates.items() if existing.get(field) != value}


class CatalogReconciler:
    def __init__(self, db: Database, queue: Optional[RegenerationQueue] = None):
        self.db = db
        self.queue = queue

    def notify(self, change_kind, user_id, changed_fields: Optional[Iterable[str]] = None) -> Optional[Future]:
        change_kind = CatalogChange(change_kind)
        if not decide_regeneration_trigger(change_kind, changed_fields):
            logger.debug(f"Product {change_kind.value} for user {user_id} does not affect routines")
            return None
        if self.queue is None:
            logger.warning(f"No regeneration queue configured, skipping regeneration for user {user_id}")
            return None
        return self.queue.submit(user_id, change_kind.value)

    def product_created(self, user_id) -> Optional[Future]:
        return self.notify(CatalogChange.CREATED, user_id)

    def product_updated(self, user_id, changed_fields: Iterable[str]) -> Optional[Future]:
        return self.notify(CatalogChange.UPDATED, user_id, changed_fields)

    def repair_routines_for_deleted_product(self, user_id, product_id) -> RepairResult:
        user_oid = as_object_id(user_id)
        product_oid = as_object_id(product_id)
        result = RepairResult()

        try:
            routines = list(
                self.db.routines.find({"user_id": user_oid, "steps.product_id": product_oid})
            )
            result.routines_affected = len(routines)

            for routine in routines:
                remaining = [
                    step for step in routine.get("steps", [])
                    if step.get("product_id") != product_oid
                ]

                if not remaining:
                    self.db.routines.delete_one({"_id": routine["_id"]})
                    result.routines_deleted += 1
                    logger.info(f"Deleted routine {routine['_id']}: no steps left after removing product {product_oid}")
                else:
                    self.db.routines.update_one(
                        {"_id": routine["_id"]},
                        {"$set": {"steps": renumber_steps(remaining), "updated_at": datetime.utcnow()}},
                    )
                    result.routines_updated += 1
        except PyMongoError as e:
            logger.error(f"Routine repair failed for product {product_oid}: {e}")
            raise IntegrityRepairError(f"Could not repair routines referencing product {product_oid}") from e

        return result

    def delete_product(self, user_id, product_id) -> RepairResult:
        """Repair routines, remove the product, then queue regeneration"""
        user_oid = as_object_id(user_id)
        product_oid = as_object_id(product_id)

        repair = self.repair_routines_for_deleted_product(user_oid, product_oid)
        self.db.products.delete_one({"_id": product_oid, "user_id": user_oid})
        logger.info(
            f"Deleted product {product_oid}: {repair.routines_affected} routine(s) affected, "
            f"{repair.routines_deleted} removed"
        )

        self.notify(CatalogChange.DELETED, user_oid)
        return repair
