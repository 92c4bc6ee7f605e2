"""Event Bus - In-Process Publish/Subscribe for Agent Lifecycle Events

The Orchestrator publishes agent.started / agent.completed /
agent.failed / agent.needs_review (and the workflow.* pair) here.
Subscribers are notified in subscription order; a failing subscriber is
logged and never affects the publisher or other subscribers.
"""

import inspect
import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

MAX_HISTORY_SIZE = 1000

WILDCARD = "*"


class EventType:
    """Event type names"""
    AGENT_STARTED = "agent.started"
    AGENT_COMPLETED = "agent.completed"
    AGENT_FAILED = "agent.failed"
    AGENT_NEEDS_REVIEW = "agent.needs_review"
    WORKFLOW_STARTED = "workflow.started"
    WORKFLOW_COMPLETED = "workflow.completed"


@dataclass
class AgentEvent:
    type: str
    source_agent_id: Optional[str] = None
    request_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source_agent_id": self.source_agent_id,
            "request_id": self.request_id,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }


EventHandler = Callable[[AgentEvent], Union[Awaitable[None], None]]


@dataclass
class _Subscription:
    id: str
    event_type: str
    handler: EventHandler
    agent_id: Optional[str] = None
    once: bool = False

    def matches(self, event: AgentEvent) -> bool:
        if self.event_type != WILDCARD and self.event_type != event.type:
            return False
        if self.agent_id and self.agent_id != event.source_agent_id:
            return False
        return True


class EventBus:
    """Async pub/sub with a bounded history"""

    def __init__(self, max_history: int = MAX_HISTORY_SIZE):
        self._subscriptions: Dict[str, _Subscription] = {}
        self._history: Deque[AgentEvent] = deque(maxlen=max_history)

    def subscribe(
        self,
        event_type: str,
        handler: EventHandler,
        agent_id: Optional[str] = None,
        once: bool = False,
    ) -> str:
        """Subscribe to an event type ("*" for all); returns the subscription id"""
        subscription_id = uuid.uuid4().hex
        self._subscriptions[subscription_id] = _Subscription(
            id=subscription_id,
            event_type=event_type,
            handler=handler,
            agent_id=agent_id,
            once=once,
        )
        logger.debug(f"📡 Subscribed to '{event_type}' ({subscription_id})")
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        return self._subscriptions.pop(subscription_id, None) is not None

    async def publish(self, event: AgentEvent) -> None:
        self._history.append(event)

        for subscription in list(self._subscriptions.values()):
            if not subscription.matches(event):
                continue
            try:
                outcome = subscription.handler(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.error(f"❌ Event handler for '{event.type}' failed: {e}")
            if subscription.once:
                self._subscriptions.pop(subscription.id, None)

    async def emit(
        self,
        event_type: str,
        source_agent_id: Optional[str] = None,
        request_id: Optional[str] = None,
        **payload,
    ) -> AgentEvent:
        event = AgentEvent(
            type=event_type,
            source_agent_id=source_agent_id,
            request_id=request_id,
            payload=payload,
        )
        await self.publish(event)
        return event

    def get_history(self, event_type: Optional[str] = None, limit: int = 100) -> List[AgentEvent]:
        events = [e for e in self._history if event_type is None or e.type == event_type]
        return events[-limit:]

    def clear_history(self) -> None:
        self._history.clear()

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)
