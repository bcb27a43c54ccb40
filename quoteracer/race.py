"""
Race Coordinator

Races one request per source under a shared deadline.

PHASES:
=======
1. First-to-succeed: wait on outcomes in completion order until one
   succeeds, every source fails, or the deadline fires.
2. Settle: cancel everything still pending and gather it, so every loser
   is accounted for in the failure list.

At most one success is ever surfaced per race.
"""

from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
import asyncio
import logging

from .contracts import (
    FetchStatus, RaceResult, SourceDescriptor, SourceFailure, SourceSuccess, utc_now
)
from .errors import AggregateFailure, CancellationError
from .fetcher import SourceFetcher

logger = logging.getLogger(__name__)

RACE_WON = "race won by another source"
DEADLINE_EXCEEDED = "deadline exceeded"


class RaceCoordinator:
    """Fan-out of independent fetch tasks, first valid responder wins."""

    def __init__(self, fetcher: SourceFetcher):
        self._fetcher = fetcher

    async def race(self, sources: Sequence[SourceDescriptor], timeout_seconds: float) -> RaceResult:
        started_at = utc_now()
        if not sources:
            return RaceResult(winner=None, failures=(), started_at=started_at, completed_at=utc_now())

        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(timeout_seconds, 0.0)
        tasks: Dict[asyncio.Task, SourceDescriptor] = {
            asyncio.ensure_future(self._fetcher.fetch(source)): source for source in sources
        }
        failures: List[SourceFailure] = []
        winner: Optional[SourceSuccess] = None
        pending = set(tasks)

        try:
            # Phase 1: first-to-succeed
            while pending and winner is None:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                done, pending = await asyncio.wait(
                    pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
                )
                winner = self._collect(done, tasks, failures)
        finally:
            # Phase 2: settle the losers
            reason = RACE_WON if winner is not None else DEADLINE_EXCEEDED
            failures.extend(await self._settle(pending, tasks, reason, started_at))

        result = RaceResult(
            winner=winner,
            failures=tuple(failures),
            started_at=started_at,
            completed_at=utc_now(),
        )
        if winner is not None:
            logger.info(
                "Race won by %s in %.1fms (%d losers)",
                winner.source_id, result.duration_ms, len(result.failures),
            )
        else:
            logger.info("All %d sources failed in %.1fms", len(sources), result.duration_ms)
        return result

    async def race_or_raise(self, sources: Sequence[SourceDescriptor], timeout_seconds: float) -> SourceSuccess:
        """Like race(), but an all-failed outcome raises AggregateFailure."""
        result = await self.race(sources, timeout_seconds)
        if result.winner is None:
            raise AggregateFailure(result.failures)
        return result.winner

    def _collect(
        self,
        done: set,
        tasks: Dict[asyncio.Task, SourceDescriptor],
        failures: List[SourceFailure],
    ) -> Optional[SourceSuccess]:
        successes: List[SourceSuccess] = []
        for task in done:
            error = task.exception()
            if error is not None:
                source = tasks[task]
                failures.append(SourceFailure(
                    source_id=source.source_id,
                    url=source.url,
                    status=FetchStatus.NETWORK_ERROR,
                    cause=error,
                ))
                continue
            outcome = task.result()
            if isinstance(outcome, SourceSuccess):
                successes.append(outcome)
            else:
                failures.append(outcome)

        if not successes:
            return None

        # Several completions in one wakeup: earliest responder wins
        successes.sort(key=lambda s: s.elapsed_ms)
        for extra in successes[1:]:
            logger.debug("Discarding late success from %s", extra.source_id)
        return successes[0]

    async def _settle(
        self,
        pending: set,
        tasks: Dict[asyncio.Task, SourceDescriptor],
        reason: str,
        started_at: datetime,
    ) -> Tuple[SourceFailure, ...]:
        if not pending:
            return ()

        ordered = list(pending)
        for task in ordered:
            task.cancel()
        settled = await asyncio.gather(*ordered, return_exceptions=True)

        elapsed_ms = (utc_now() - started_at).total_seconds() * 1000
        failures = []
        for task, outcome in zip(ordered, settled):
            source = tasks[task]
            if isinstance(outcome, SourceFailure):
                failures.append(outcome)
                continue
            if isinstance(outcome, (SourceSuccess, asyncio.CancelledError)):
                # Late successes are discarded like cancelled requests
                cause: Exception = CancellationError(reason)
                status = FetchStatus.CANCELLED
            elif isinstance(outcome, Exception):
                cause = outcome
                status = FetchStatus.NETWORK_ERROR
            else:
                raise outcome
            failures.append(SourceFailure(
                source_id=source.source_id,
                url=source.url,
                status=status,
                cause=cause,
                elapsed_ms=elapsed_ms,
            ))
        return tuple(failures)
