"""Unit tests for outcome recorders."""

import pytest

from core.outcomes import AgentOutcome, InMemoryOutcomeRecorder, OutcomeRecord, SQLOutcomeRecorder
from core.types import AgentError, ErrorKind, ExecutionPath, ExecutionResult, ResultMetadata


def _result(success=True):
    metadata = ResultMetadata(
        agent_id="echo-agent",
        capability="echo",
        request_id="r1",
        duration_ms=12.5,
        execution_path=ExecutionPath.RULE_BASED,
        step_id="first",
    )
    if success:
        return ExecutionResult.ok({"x": 1}, metadata, confidence=0.8)
    return ExecutionResult.failure(AgentError.of(ErrorKind.EXECUTION_FAILURE, "bad"), metadata)


class TestOutcomeRecord:

    def test_from_result(self):
        record = OutcomeRecord.from_result(_result(success=False), "wf")

        assert record.success is False
        assert record.error_kind == "ExecutionFailure"
        assert record.execution_path == "rule_based"
        assert record.workflow_id == "wf"
        assert record.step_id == "first"
        assert record.to_dict()["recorded_at"]


class TestInMemoryOutcomeRecorder:

    @pytest.mark.asyncio
    async def test_bounded(self):
        recorder = InMemoryOutcomeRecorder(max_records=2)
        for _ in range(3):
            await recorder.record(_result())
        assert len(recorder.records) == 2


class TestSQLOutcomeRecorder:

    @pytest.mark.asyncio
    async def test_persists_rows(self):
        recorder = SQLOutcomeRecorder("sqlite:///:memory:")

        await recorder.record(_result(), "wf")
        await recorder.record(_result(success=False))

        db = recorder.session_factory()
        try:
            rows = db.query(AgentOutcome).order_by(AgentOutcome.id).all()
        finally:
            db.close()

        assert len(rows) == 2
        assert rows[0].workflow_id == "wf"
        assert rows[0].confidence == pytest.approx(0.8)
        assert rows[1].success is False
        assert rows[1].error_kind == "ExecutionFailure"

    @pytest.mark.asyncio
    async def test_write_failure_is_logged_not_raised(self):
        recorder = SQLOutcomeRecorder("sqlite:///:memory:")
        AgentOutcome.__table__.drop(bind=recorder.engine)

        await recorder.record(_result())
