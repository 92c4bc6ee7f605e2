"""Health Monitor - Failure Counters and Derived Agent Status

The counters kept here are the only frequently-mutated shared state in
the engine. Status is never stored: it is recomputed from the counters
on every query via derive_status().

    consecutive_failures == 0                  -> HEALTHY
    1 <= consecutive_failures < threshold      -> DEGRADED
    consecutive_failures >= threshold          -> UNHEALTHY

ERROR is reserved for agents whose health probe itself raised.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_DEGRADED_THRESHOLD = 5


class HealthStatus(str, Enum):
    """Agent health status"""
    HEALTHY = "HEALTHY"
    DEGRADED = "DEGRADED"
    UNHEALTHY = "UNHEALTHY"
    ERROR = "ERROR"


# Statuses the Orchestrator refuses to dispatch to
BLOCKING_STATUSES = frozenset({HealthStatus.UNHEALTHY, HealthStatus.ERROR})


def derive_status(consecutive_failures: int, degraded_threshold: int) -> HealthStatus:
    """Map a consecutive failure count to a health status"""
    if consecutive_failures <= 0:
        return HealthStatus.HEALTHY
    if consecutive_failures < degraded_threshold:
        return HealthStatus.DEGRADED
    return HealthStatus.UNHEALTHY


@dataclass
class HealthSnapshot:
    """Point-in-time health view of one agent"""

    agent_id: str
    status: HealthStatus
    consecutive_failures: int = 0
    ai_available: bool = False
    error_message: Optional[str] = None
    total_executions: int = 0
    total_successes: int = 0
    total_failures: int = 0
    last_run: Optional[datetime] = None
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None

    @property
    def success_rate(self) -> Optional[float]:
        if self.total_executions == 0:
            return None
        return self.total_successes / self.total_executions

    @property
    def is_dispatchable(self) -> bool:
        return self.status not in BLOCKING_STATUSES

    @classmethod
    def error(cls, agent_id: str, message: str) -> "HealthSnapshot":
        return cls(agent_id=agent_id, status=HealthStatus.ERROR, error_message=message)

    def to_dict(self) -> Dict[str, Any]:
        def _iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "agent_id": self.agent_id,
            "status": self.status.value,
            "consecutive_failures": self.consecutive_failures,
            "ai_available": self.ai_available,
            "error_message": self.error_message,
            "total_executions": self.total_executions,
            "total_successes": self.total_successes,
            "total_failures": self.total_failures,
            "success_rate": self.success_rate,
            "last_run": _iso(self.last_run),
            "last_success": _iso(self.last_success),
            "last_failure": _iso(self.last_failure),
        }


class _AgentCounters:
    """Mutable counters for one agent, guarded by their own lock"""

    def __init__(self, ai_available: bool):
        self.lock = threading.Lock()
        self.consecutive_failures = 0
        self.ai_available = ai_available
        self.total_executions = 0
        self.total_successes = 0
        self.total_failures = 0
        self.last_run: Optional[datetime] = None
        self.last_success: Optional[datetime] = None
        self.last_failure: Optional[datetime] = None
        self.last_error: Optional[str] = None


class HealthMonitor:
    """Tracks consecutive failures and AI availability per agent

    Each agent gets its own lock so concurrent invocations of the same
    agent update its counters atomically without serializing unrelated
    agents.
    """

    def __init__(self, degraded_threshold: int = DEFAULT_DEGRADED_THRESHOLD):
        if degraded_threshold < 1:
            raise ValueError("degraded_threshold must be at least 1")
        self.degraded_threshold = degraded_threshold
        self._counters: Dict[str, _AgentCounters] = {}
        self._registry_lock = threading.Lock()

    def track(self, agent_id: str, ai_available: bool = False) -> None:
        """Start tracking an agent (idempotent)"""
        with self._registry_lock:
            if agent_id not in self._counters:
                self._counters[agent_id] = _AgentCounters(ai_available)
                logger.debug(f"   Health tracking started: {agent_id} (ai={ai_available})")

    def _get(self, agent_id: str) -> _AgentCounters:
        counters = self._counters.get(agent_id)
        if counters is None:
            self.track(agent_id)
            counters = self._counters[agent_id]
        return counters

    def record_success(self, agent_id: str) -> None:
        counters = self._get(agent_id)
        now = datetime.utcnow()
        with counters.lock:
            counters.consecutive_failures = 0
            counters.total_executions += 1
            counters.total_successes += 1
            counters.last_run = now
            counters.last_success = now
            counters.last_error = None

    def record_failure(self, agent_id: str, message: Optional[str] = None) -> int:
        """Count one failed invocation; returns the new consecutive count"""
        counters = self._get(agent_id)
        now = datetime.utcnow()
        with counters.lock:
            counters.consecutive_failures += 1
            counters.total_executions += 1
            counters.total_failures += 1
            counters.last_run = now
            counters.last_failure = now
            counters.last_error = message
            failures = counters.consecutive_failures

        if failures == self.degraded_threshold:
            logger.warning(
                f"🚨 Agent '{agent_id}' reached {failures} consecutive failures - now UNHEALTHY"
            )
        return failures

    def set_ai_available(self, agent_id: str, available: bool) -> None:
        counters = self._get(agent_id)
        with counters.lock:
            counters.ai_available = available

    def is_ai_available(self, agent_id: str) -> bool:
        counters = self._get(agent_id)
        with counters.lock:
            return counters.ai_available

    def reset(self, agent_id: str) -> None:
        """Clear the consecutive failure count (manual operator action)"""
        counters = self._get(agent_id)
        with counters.lock:
            counters.consecutive_failures = 0
            counters.last_error = None
        logger.info(f"♻️ Health counters reset for '{agent_id}'")

    def status(self, agent_id: str) -> HealthStatus:
        counters = self._get(agent_id)
        with counters.lock:
            failures = counters.consecutive_failures
        return derive_status(failures, self.degraded_threshold)

    def snapshot(self, agent_id: str) -> HealthSnapshot:
        counters = self._get(agent_id)
        with counters.lock:
            failures = counters.consecutive_failures
            snapshot = HealthSnapshot(
                agent_id=agent_id,
                status=derive_status(failures, self.degraded_threshold),
                consecutive_failures=failures,
                ai_available=counters.ai_available,
                total_executions=counters.total_executions,
                total_successes=counters.total_successes,
                total_failures=counters.total_failures,
                last_run=counters.last_run,
                last_success=counters.last_success,
                last_failure=counters.last_failure,
            )
            last_error = counters.last_error

        if snapshot.status == HealthStatus.UNHEALTHY:
            snapshot.error_message = f"{failures} consecutive failures"
        elif snapshot.status == HealthStatus.DEGRADED:
            snapshot.error_message = f"{failures} recent failures"
        if last_error and snapshot.error_message:
            snapshot.error_message = f"{snapshot.error_message} (last: {last_error})"
        return snapshot
