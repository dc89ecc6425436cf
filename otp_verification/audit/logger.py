"""
Audit Logger
============
Hash-chained audit trail with a pluggable storage sink.
"""

import asyncio
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Union

import structlog

from .events import AuditEvent, AuditEventType, AuditOutcome
from .hashing import compute_event_hash

logger = structlog.get_logger(__name__)

AuditSink = Callable[[AuditEvent], Awaitable[None]]

# Context variable bound per request by the HTTP layer
CLIENT_IP_KEY = "client_ip"


def _value(item: Union[str, AuditEventType, AuditOutcome]) -> str:
    return item.value if isinstance(item, (AuditEventType, AuditOutcome)) else item


class AuditLogger:
    """
    Seals audit events into a hash chain and hands them to storage.

    The most recent ``buffer_size`` events are kept in memory. When a sink
    is configured every event is awaited into it before the chain advances,
    and sink errors propagate to the caller. Appends are serialized so
    concurrent requests cannot fork the chain.
    """

    def __init__(
        self,
        service_name: str,
        sink: Optional[AuditSink] = None,
        buffer_size: int = 1000,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.service_name = service_name
        self.sink = sink
        self._clock = clock
        self._head: Optional[str] = None
        self._recent: Deque[AuditEvent] = deque(maxlen=buffer_size)
        self._lock = asyncio.Lock()

    @property
    def head(self) -> Optional[str]:
        """Hash of the last event in the chain."""
        return self._head

    def set_previous_hash(self, hash_value: Optional[str]) -> None:
        """Continue a chain whose head was loaded from storage."""
        self._head = hash_value

    async def log(
        self,
        event_type: Union[AuditEventType, str],
        action: str,
        outcome: Union[AuditOutcome, str] = AuditOutcome.SUCCESS,
        actor_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> AuditEvent:
        """
        Append an event to the chain.

        Args:
            event_type: What happened
            action: Human-readable description
            outcome: "success" or "failure"
            actor_id: Who triggered it, if known
            resource_type: Kind of record affected, e.g. "User"
            resource_id: Identifier of that record
            payload: Extra fields, included in the hash
            ip_address: Client address; defaults to the one bound for the
                current request

        Returns:
            The sealed event
        """
        if ip_address is None:
            ip_address = structlog.contextvars.get_contextvars().get(CLIENT_IP_KEY)

        async with self._lock:
            fields = {
                "timestamp": self._clock(),
                "service": self.service_name,
                "event_type": _value(event_type),
                "outcome": _value(outcome),
                "resource_id": resource_id,
                "ip_address": ip_address,
                "payload": dict(payload or {}),
            }
            event = AuditEvent(
                id=uuid.uuid4().hex,
                action=action,
                actor_id=actor_id,
                resource_type=resource_type,
                hash=compute_event_hash(self._head, **fields),
                previous_hash=self._head,
                **fields,
            )

            if self.sink is not None:
                await self.sink(event)

            self._head = event.hash
            self._recent.append(event)

        logger.info("Audit event logged", event_id=event.id, event_type=event.event_type, outcome=event.outcome)
        return event

    def flush(self) -> List[AuditEvent]:
        """Return and forget the buffered events."""
        events = list(self._recent)
        self._recent.clear()
        return events
