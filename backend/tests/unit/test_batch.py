"""Unit tests for the time-boxed batch runner."""

import pytest
from unittest.mock import AsyncMock, patch

from core.batch import BatchRunner


class TestBatchRunner:

    @pytest.mark.asyncio
    async def test_all_items_processed(self, orchestrator):
        runner = BatchRunner(orchestrator)

        result = await runner.run("echo.echo", [{"i": i} for i in range(4)], concurrency=2)

        assert result.total_items == 4
        assert result.processed == 4
        assert result.success_count == 4
        assert result.skipped_count == 0
        assert result.time_boxed is False
        assert sorted(r.index for r in result.results) == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_failures_counted_not_raised(self, orchestrator):
        result = await BatchRunner(orchestrator).run("echo.fail", [1, 2])

        assert result.failed_count == 2
        assert result.success_count == 0

    @pytest.mark.asyncio
    async def test_deadline_skips_unstarted_items(self, orchestrator):
        runner = BatchRunner(orchestrator)
        items = [{"delay": 0.1} for _ in range(4)]

        result = await runner.run("echo.slow", items, deadline=0.05, concurrency=1)

        assert result.processed == 1
        assert result.skipped_count == 3
        assert result.time_boxed is True
        assert result.processed + result.skipped_count == result.total_items

    @pytest.mark.asyncio
    async def test_raising_item_becomes_failure(self, orchestrator):
        with patch.object(orchestrator, "orchestrate", AsyncMock(side_effect=RuntimeError("bad item"))):
            result = await BatchRunner(orchestrator).run("echo.echo", [1])

        assert result.failed_count == 1
        assert result.results[0].response is None

    @pytest.mark.asyncio
    async def test_invalid_concurrency(self, orchestrator):
        with pytest.raises(ValueError):
            await BatchRunner(orchestrator).run("echo.echo", [1], concurrency=-1)

    @pytest.mark.asyncio
    async def test_items_carry_batch_id(self, orchestrator, echo_agent):
        seen = []

        async def capture(payload, context):
            seen.append(context.metadata.get("batch_id"))
            return payload

        echo_agent.register_handler("echo", capture)
        result = await BatchRunner(orchestrator).run("echo.echo", [1, 2])

        assert seen == [result.batch_id, result.batch_id]
