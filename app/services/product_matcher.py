from typing import Any, Dict, List, Optional, Tuple
import logging

from app.schemas.routine import DraftStep

logger = logging.getLogger(__name__)


def match_product(product_name: str, candidates: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Resolve an AI-suggested product name to one of the user's products.

    Tiers, all case-insensitive, first hit in catalog order wins:
      1. exact name
      2. suggested name contains the product name
      3. product name contains the suggested name
    """
    suggested = (product_name or "").strip().lower()
    if not suggested:
        return None

    names = [(candidate, (candidate.get("name") or "").strip().lower()) for candidate in candidates]

    for candidate, name in names:
        if name and name == suggested:
            return candidate
    for candidate, name in names:
        if name and name in suggested:
            return candidate
    for candidate, name in names:
        if name and suggested in name:
            return candidate
    return None


def match_steps(
    steps: List[DraftStep], candidates: List[Dict[str, Any]]
) -> Tuple[List[Tuple[DraftStep, Dict[str, Any]]], List[DraftStep]]:
    """Pair each draft step with its product; steps with no match come back separately"""
    bound = []
    dropped = []
    for step in steps:
        product = match_product(step.product_name, candidates)
        if product is None:
            logger.info(f"No catalog product matches suggested '{step.product_name}', dropping step")
            dropped.append(step)
        else:
            bound.append((step, product))
    return bound, dropped
