# ============================================================================
# File: ingestion/runner.py
# Description: Refresh orchestrator driving one tick of one source
# ============================================================================
"""
Refresh Runner - Orchestrates Fetch, Persist, Invalidate for one source.

Each tick walks a small state machine:

    IDLE -> FETCHING -> PERSISTING -> INVALIDATING -> IDLE
    FETCHING | PERSISTING -> FAILED -> IDLE

- A failed fetch or persist leaves the store and the cache untouched.
- Invalidation happens only after a successful write, and its own failures
  are logged, never raised (entries expire by TTL anyway).
- ``run`` propagates UpstreamError / StorageError to the caller;
  ``run_tick`` is the background variant and never raises.
"""

import enum
import logging
import time
from collections import deque
from typing import Deque, Dict, Optional, Tuple

from cache.read_through import ReadThroughCache
from core.exceptions import ServiceError, StorageError, UpstreamError
from ingestion.base import RefreshSource
from schemas.records import RefreshResult

logger = logging.getLogger(__name__)


class RefreshState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PERSISTING = "persisting"
    INVALIDATING = "invalidating"
    FAILED = "failed"


class RefreshRunner:
    """
    Refresh orchestrator

    Responsibilities:
    - Fetch -> Persist -> Invalidate for one source per call
    - Track the current state of every source
    - Log each phase with its outcome
    """

    def __init__(self, cache: ReadThroughCache, history_size: int = 200):
        self.cache = cache
        self._states: Dict[str, RefreshState] = {}
        self._last_errors: Dict[str, str] = {}
        # (source, state) in the order they were entered
        self.transitions: Deque[Tuple[str, RefreshState]] = deque(maxlen=history_size)

    def state(self, source_name: str) -> RefreshState:
        return self._states.get(source_name, RefreshState.IDLE)

    def last_error(self, source_name: str) -> Optional[str]:
        return self._last_errors.get(source_name)

    def _enter(self, source: RefreshSource, state: RefreshState):
        self._states[source.name] = state
        self.transitions.append((source.name, state))
        logger.debug(f"[{source.name}] -> {state.value}")

    async def run(self, source: RefreshSource) -> RefreshResult:
        """
        Run one refresh tick.

        Returns:
            RefreshResult with the rows written and cache keys invalidated

        Raises:
            UpstreamError: fetch failed after all retries
            StorageError: persist failed
        """
        started = time.perf_counter()
        phase = RefreshState.FETCHING

        try:
            # --------------------------------------------------
            # PHASE 1: FETCH
            # --------------------------------------------------
            self._enter(source, RefreshState.FETCHING)
            payload = await source.fetch()

            # --------------------------------------------------
            # PHASE 2: PERSIST
            # --------------------------------------------------
            phase = RefreshState.PERSISTING
            self._enter(source, RefreshState.PERSISTING)
            record_ids = await source.persist(payload)

        except (UpstreamError, StorageError) as e:
            self._fail(source, phase, e.message)
            raise
        except Exception as e:
            self._fail(source, phase, str(e))
            if phase == RefreshState.PERSISTING:
                raise StorageError(
                    f"Unexpected error while persisting {source.name}",
                    context={"source_name": source.name, "phase": phase.value},
                    original_exception=e
                )
            raise

        # --------------------------------------------------
        # PHASE 3: INVALIDATE
        # --------------------------------------------------
        self._enter(source, RefreshState.INVALIDATING)
        invalidated = await self._invalidate(source)

        self._enter(source, RefreshState.IDLE)
        self._last_errors.pop(source.name, None)

        result = RefreshResult(
            source=source.name,
            status="success",
            records_written=len(record_ids),
            keys_invalidated=invalidated,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            record_ids=record_ids,
        )
        logger.info(
            f"Refresh completed for {source.name}: "
            f"written={result.records_written}, invalidated={invalidated}, "
            f"duration={result.duration_ms}ms"
        )
        return result

    async def run_tick(self, source: RefreshSource) -> Optional[RefreshResult]:
        """Background tick: every failure is logged, nothing is raised"""
        try:
            return await self.run(source)
        except ServiceError as e:
            logger.error(
                f"Scheduled refresh of {source.name} failed: {e.message}",
                extra={"error_context": e.to_dict()}
            )
        except Exception:
            logger.exception(f"Scheduled refresh of {source.name} failed unexpectedly")
        return None

    def _fail(self, source: RefreshSource, phase: RefreshState, message: str):
        self._enter(source, RefreshState.FAILED)
        self._last_errors[source.name] = message
        logger.error(f"[{source.name}] {phase.value} failed: {message}")
        self._enter(source, RefreshState.IDLE)

    async def _invalidate(self, source: RefreshSource) -> int:
        count = 0
        for key in source.stale_keys():
            if await self.cache.delete(key):
                count += 1
        for prefix in source.stale_prefixes():
            count += await self.cache.invalidate_prefix(prefix)
        return count
