from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional
import logging

from app.core.config import settings
from app.core.monitoring import routine_regenerations
from app.schemas.routine import RegenerationResult

logger = logging.getLogger(__name__)


class RegenerationQueue:
    """
    Runs routine regeneration off the request path.

    Jobs for the same user are not serialized; whichever finishes last owns
    the stored AI routine of each type.
    """

    def __init__(self, generator_factory: Callable, max_workers: Optional[int] = None):
        self.generator_factory = generator_factory
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.REGENERATION_WORKERS,
            thread_name_prefix="routine-regen",
        )

    def submit(self, user_id, trigger: str) -> Future:
        logger.info(f"Queued routine regeneration for user {user_id} (product {trigger})")
        future = self._executor.submit(self._run, user_id, trigger)
        future.add_done_callback(lambda f: self._record(f, user_id, trigger))
        return future

    def _run(self, user_id, trigger: str) -> RegenerationResult:
        generator = self.generator_factory()
        return generator.regenerate_all(user_id)

    def _record(self, future: Future, user_id, trigger: str) -> None:
        error = future.exception()
        if error is not None:
            routine_regenerations.labels(trigger=trigger, status="error").inc()
            logger.error(
                f"⚠️ Background routine regeneration failed for user {user_id}: {error}",
                exc_info=error,
            )
            return

        result = future.result()
        if result.regenerated:
            routine_regenerations.labels(trigger=trigger, status="success").inc()
            logger.info(f"✨ Auto-regenerated {result.count} routine(s) for user {user_id} after product {trigger}")
        else:
            routine_regenerations.labels(trigger=trigger, status="skipped").inc()
            logger.info(
                f"No routines regenerated for user {user_id} after product {trigger}: "
                f"{result.reason or 'no routine type produced steps'}"
            )

        for routine_type, outcome in result.per_type_results.items():
            if outcome.error:
                logger.warning(f"{routine_type} routine for user {user_id} failed: {outcome.error_type}: {outcome.error}")

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
