"""Outcome Recording - Write-Only History of Capability Executions

The Orchestrator records one outcome per executed capability. Recording
is fire-and-forget: a failing recorder is logged and never breaks the
invocation that produced the outcome. Nothing in the engine reads these
records back.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from core.types import ExecutionResult

logger = logging.getLogger(__name__)


@dataclass
class OutcomeRecord:
    """Flattened view of one ExecutionResult"""

    agent_id: str
    capability: str
    request_id: str
    success: bool
    execution_path: str
    used_fallback: bool = False
    confidence: Optional[float] = None
    needs_human_review: bool = False
    duration_ms: float = 0.0
    error_kind: Optional[str] = None
    workflow_id: Optional[str] = None
    step_id: Optional[str] = None
    recorded_at: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def from_result(cls, result: ExecutionResult, workflow_id: Optional[str] = None) -> "OutcomeRecord":
        return cls(
            agent_id=result.metadata.agent_id,
            capability=result.metadata.capability,
            request_id=result.metadata.request_id,
            success=result.success,
            execution_path=result.metadata.execution_path.value,
            used_fallback=result.metadata.used_fallback,
            confidence=result.confidence,
            needs_human_review=result.needs_human_review,
            duration_ms=result.metadata.duration_ms,
            error_kind=result.error.kind.value if result.error else None,
            workflow_id=workflow_id,
            step_id=result.metadata.step_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["recorded_at"] = self.recorded_at.isoformat()
        return data


class OutcomeRecorder(ABC):
    """Base recorder; subclasses only implement _write()"""

    async def record(self, result: ExecutionResult, workflow_id: Optional[str] = None) -> None:
        try:
            await self._write(OutcomeRecord.from_result(result, workflow_id))
        except Exception as e:
            logger.warning(
                f"⚠️ Failed to record outcome for "
                f"{result.metadata.agent_id}/{result.metadata.capability}: {e}"
            )

    @abstractmethod
    async def _write(self, record: OutcomeRecord) -> None:
        pass


class InMemoryOutcomeRecorder(OutcomeRecorder):
    """Keeps records in a bounded list (tests and single-process dev runs)"""

    def __init__(self, max_records: int = 10000):
        self.max_records = max_records
        self.records: List[OutcomeRecord] = []

    async def _write(self, record: OutcomeRecord) -> None:
        self.records.append(record)
        if len(self.records) > self.max_records:
            del self.records[: len(self.records) - self.max_records]


class NullOutcomeRecorder(OutcomeRecorder):
    """Drops every record"""

    async def _write(self, record: OutcomeRecord) -> None:
        return None


Base = declarative_base()


class AgentOutcome(Base):
    __tablename__ = "agent_outcomes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    agent_id = Column(String(100), nullable=False, index=True)
    capability = Column(String(100), nullable=False, index=True)
    request_id = Column(String(64), nullable=False)
    success = Column(Boolean, nullable=False)
    execution_path = Column(String(20), nullable=False)
    used_fallback = Column(Boolean, default=False)
    confidence = Column(Float, nullable=True)
    needs_human_review = Column(Boolean, default=False)
    duration_ms = Column(Float, default=0.0)
    error_kind = Column(String(50), nullable=True)
    workflow_id = Column(String(100), nullable=True)
    step_id = Column(String(100), nullable=True)
    recorded_at = Column(DateTime, default=datetime.utcnow, index=True)


def create_outcome_engine(database_url: str):
    """Create a SQLAlchemy engine; SQLite gets WAL and a shared connection"""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    engine = create_engine(
        database_url,
        connect_args={
            "check_same_thread": False,
            "timeout": 30,  # Wait up to 30 seconds for lock
        },
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


class SQLOutcomeRecorder(OutcomeRecorder):
    """Persists outcomes to the agent_outcomes table

    Writes run in a worker thread so the event loop never blocks on the
    database.
    """

    def __init__(self, database_url: str = "sqlite:///:memory:", engine=None):
        self.engine = engine or create_outcome_engine(database_url)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"🗄️ Outcome recorder using {self.engine.url.render_as_string(hide_password=True)}")

    def _insert(self, record: OutcomeRecord) -> None:
        db = self.session_factory()
        try:
            db.add(AgentOutcome(**asdict(record)))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    async def _write(self, record: OutcomeRecord) -> None:
        await asyncio.to_thread(self._insert, record)
