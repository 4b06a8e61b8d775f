from typing import Any, Dict, List, Optional, Tuple
import logging

from pymongo import ASCENDING
from pymongo.database import Database

from app.core.config import settings
from app.core.exceptions import InsufficientCatalog, NoStepsResolved
from app.core.monitoring import routine_steps_dropped
from app.database import as_object_id
from app.models.routine import RoutineModel, RoutineStep, RoutineType
from app.schemas.routine import RegenerationResult, RoutineDraft, SynthesisOutcome
from app.services.ai_completion_service import AICompletionService, ai_completion_service
from app.services.product_matcher import match_steps
from app.services.routine_parser import parse_routine_response
from app.services.routine_prompts import ROUTINE_SYSTEM_PROMPT, build_routine_prompt

logger = logging.getLogger(__name__)


class RoutineGeneratorService:
    """
    Builds AI routines from the user's own products.

    There is at most one AI-generated routine per (user, routine type); each
    successful synthesis replaces it wholesale.
    """

    def __init__(self, db: Database, ai_service: Optional[AICompletionService] = None):
        self.db = db
        self.ai_service = ai_service or ai_completion_service

    def get_active_products(self, user_id) -> List[Dict[str, Any]]:
        return list(
            self.db.products.find(
                {"user_id": as_object_id(user_id), "is_active": True}
            ).sort("created_at", ASCENDING)
        )

    def get_skin_profile(self, user_id) -> Dict[str, Any]:
        user = self.db.users.find_one({"_id": as_object_id(user_id)}) or {}
        profile = user.get("profile") or {}
        return {
            "skin_type": profile.get("skin_type"),
            "skin_concerns": profile.get("skin_concerns") or [],
        }

    def _require_catalog(self, products: List[Dict[str, Any]]) -> None:
        if len(products) < settings.MIN_PRODUCTS_FOR_ROUTINE:
            raise InsufficientCatalog(len(products), settings.MIN_PRODUCTS_FOR_ROUTINE)

    def synthesize(
        self,
        user_id,
        routine_type: str,
        products: Optional[List[Dict[str, Any]]] = None,
    ) -> SynthesisOutcome:
        """
        Generate and store the AI routine of one type for a user.

        Parser and provider errors propagate; a thin catalog or a draft with no
        recognisable products is reported in the outcome instead.
        """
        routine_type = RoutineType(routine_type).value
        user_oid = as_object_id(user_id)

        if products is None:
            products = self.get_active_products(user_oid)
        products = [p for p in products if p.get("is_active", True)]

        try:
            self._require_catalog(products)
        except InsufficientCatalog as e:
            logger.info(f"⚠️ Not generating {routine_type} routine for user {user_oid}: {e}")
            return SynthesisOutcome(
                routine_type=routine_type, regenerated=False, reason="insufficient_products"
            )

        profile = self.get_skin_profile(user_oid)
        prompt = build_routine_prompt(
            products, routine_type, profile["skin_type"], profile["skin_concerns"]
        )

        completion = self.ai_service.complete(prompt, system_prompt=ROUTINE_SYSTEM_PROMPT)
        draft = parse_routine_response(completion.text, completion.completion_status)

        try:
            steps, dropped = self._bind_steps(draft, products)
        except NoStepsResolved as e:
            logger.warning(f"{routine_type} routine not regenerated for user {user_oid}: {e}")
            routine_steps_dropped.labels(routine_type=routine_type).inc(len(draft.steps))
            return SynthesisOutcome(
                routine_type=routine_type,
                regenerated=False,
                dropped_steps=len(draft.steps),
                reason="no_steps_resolved",
            )

        if dropped:
            routine_steps_dropped.labels(routine_type=routine_type).inc(dropped)

        routine = RoutineModel(
            user_id=user_oid,
            name=f"AI Generated {routine_type.capitalize()} Routine",
            type=routine_type,
            steps=steps,
            is_ai_generated=True,
            compatibility_warnings=draft.compatibility_warnings,
        )
        routine_id = self._replace_ai_routine(routine)

        logger.info(
            f"✨ Stored {routine_type} routine {routine_id} for user {user_oid} "
            f"({len(steps)} steps, {dropped} dropped)"
        )
        return SynthesisOutcome(
            routine_type=routine_type,
            regenerated=True,
            step_count=len(steps),
            dropped_steps=dropped,
            routine_id=str(routine_id),
        )

    def _bind_steps(
        self, draft: RoutineDraft, products: List[Dict[str, Any]]
    ) -> Tuple[List[RoutineStep], int]:
        candidate_ids = {p["_id"] for p in products if p.get("_id") is not None}
        bound, unmatched = match_steps(draft.steps, products)

        steps = []
        dropped = len(unmatched)
        for draft_step, product in bound:
            if product.get("_id") not in candidate_ids:
                dropped += 1
                continue
            steps.append(
                RoutineStep(
                    step_number=len(steps) + 1,
                    product_id=product["_id"],
                    instruction=draft_step.instruction,
                    wait_time=draft_step.wait_time,
                )
            )

        if not steps:
            raise NoStepsResolved(f"none of {len(draft.steps)} suggested steps matched a product")
        return steps, dropped

    def _replace_ai_routine(self, routine: RoutineModel):
        doc = routine.model_dump(by_alias=True)
        query = {"user_id": routine.user_id, "type": routine.type, "is_ai_generated": True}

        if settings.MONGODB_USE_TRANSACTIONS:
            with self.db.client.start_session() as session:
                with session.start_transaction():
                    self.db.routines.delete_many(query, session=session)
                    self.db.routines.insert_one(doc, session=session)
        else:
            # Readers can briefly see no AI routine of this type between the two writes
            self.db.routines.delete_many(query)
            self.db.routines.insert_one(doc)

        return doc["_id"]

    def regenerate_all(self, user_id) -> RegenerationResult:
        """Regenerate every routine type; one type failing never stops the others"""
        user_oid = as_object_id(user_id)
        products = self.get_active_products(user_oid)

        if len(products) < settings.MIN_PRODUCTS_FOR_ROUTINE:
            logger.info(f"⚠️ Not enough products to regenerate routines for user {user_oid}")
            return RegenerationResult(regenerated=False, reason="insufficient_products")

        results = {}
        count = 0
        for routine_type in RoutineType:
            try:
                outcome = self.synthesize(user_oid, routine_type.value, products)
            except Exception as e:
                logger.warning(f"⚠️ Could not regenerate {routine_type.value} routine: {e}")
                outcome = SynthesisOutcome(
                    routine_type=routine_type.value,
                    regenerated=False,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            if outcome.regenerated:
                count += 1
            results[routine_type.value] = outcome

        return RegenerationResult(regenerated=count > 0, count=count, per_type_results=results)
