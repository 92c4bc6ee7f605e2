"""Batch Runner - Time-Boxed Execution of One Action Over Many Items

Scheduled jobs run under a hard wall-clock budget. The runner starts one
orchestrated action per item, bounded by a semaphore, and stops
starting new items once the deadline passes. Items already in flight
finish; items never started are reported as skipped. A batch never
fails as a whole.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from core.orchestrator import OrchestrationRequest, Orchestrator
from core.response_aggregator import OrchestratorResponse
from core.types import ExecutionContext, InvocationType

logger = logging.getLogger(__name__)

DEFAULT_BATCH_DEADLINE = 110.0
DEFAULT_BATCH_CONCURRENCY = 5


@dataclass
class BatchItemResult:
    index: int
    success: bool
    response: Optional[OrchestratorResponse] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "success": self.success,
            "response": self.response.to_dict() if self.response else None,
        }


@dataclass
class BatchResult:
    batch_id: str
    total_items: int
    processed: int = 0
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    time_boxed: bool = False
    results: List[BatchItemResult] = field(default_factory=list)
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "total_items": self.total_items,
            "processed": self.processed,
            "success_count": self.success_count,
            "failed_count": self.failed_count,
            "skipped_count": self.skipped_count,
            "time_boxed": self.time_boxed,
            "duration_ms": round(self.duration_ms, 2),
            "results": [r.to_dict() for r in self.results],
        }


class BatchRunner:
    """Runs one action per item under a deadline"""

    def __init__(
        self,
        orchestrator: Orchestrator,
        default_deadline: float = DEFAULT_BATCH_DEADLINE,
        default_concurrency: int = DEFAULT_BATCH_CONCURRENCY,
    ):
        self.orchestrator = orchestrator
        self.default_deadline = default_deadline
        self.default_concurrency = default_concurrency

    async def run(
        self,
        action: str,
        items: Sequence[Any],
        context: Optional[ExecutionContext] = None,
        deadline: Optional[float] = None,
        concurrency: Optional[int] = None,
    ) -> BatchResult:
        context = context or ExecutionContext(invocation_type=InvocationType.SCHEDULED)
        deadline = self.default_deadline if deadline is None else deadline
        concurrency = concurrency or self.default_concurrency
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        batch = BatchResult(batch_id=uuid.uuid4().hex, total_items=len(items))
        loop = asyncio.get_running_loop()
        stop_at = loop.time() + deadline
        semaphore = asyncio.Semaphore(concurrency)
        started = time.perf_counter()

        logger.info(
            f"📦 Batch {batch.batch_id[:8]}: '{action}' x {len(items)} "
            f"(deadline={deadline}s, concurrency={concurrency})"
        )

        async def _process(index: int, item: Any) -> Optional[BatchItemResult]:
            async with semaphore:
                if loop.time() >= stop_at:
                    return None
                try:
                    response = await self.orchestrator.orchestrate(
                        OrchestrationRequest(
                            action=action,
                            input=item,
                            context=context.child(metadata={**context.metadata, "batch_id": batch.batch_id}),
                        )
                    )
                except Exception as e:
                    logger.error(f"❌ Batch item {index} raised: {e}")
                    return BatchItemResult(index=index, success=False)
                return BatchItemResult(index=index, success=response.success, response=response)

        outcomes = await asyncio.gather(*(_process(i, item) for i, item in enumerate(items)))

        for outcome in outcomes:
            if outcome is None:
                batch.skipped_count += 1
                continue
            batch.results.append(outcome)
            batch.processed += 1
            if outcome.success:
                batch.success_count += 1
            else:
                batch.failed_count += 1

        batch.time_boxed = batch.skipped_count > 0
        batch.duration_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"📦 Batch {batch.batch_id[:8]} done: {batch.success_count} ok, {batch.failed_count} failed, "
            f"{batch.skipped_count} skipped{' (time-boxed)' if batch.time_boxed else ''}"
        )
        return batch
