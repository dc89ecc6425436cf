"""
Audit Events
============
Event types, outcomes and the event record for the verification flows.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class AuditEventType(str, Enum):
    """Audit event types for registration, OTP and login."""
    USER_REGISTERED = "user.registered"
    OTP_REQUESTED = "otp.requested"
    OTP_VERIFIED = "otp.verified"
    AUTH_LOGIN = "auth.login"


class AuditOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class AuditEvent:
    """
    One entry in the audit chain.

    ``hash`` covers ``hashed_fields()`` plus ``previous_hash``; ``id``,
    ``action``, ``actor_id`` and ``resource_type`` are descriptive only.
    """
    id: str
    timestamp: datetime
    service: str
    event_type: str
    action: str
    outcome: str
    hash: str
    previous_hash: Optional[str] = None
    actor_id: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    ip_address: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    def hashed_fields(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "service": self.service,
            "event_type": self.event_type,
            "outcome": self.outcome,
            "resource_id": self.resource_id,
            "ip_address": self.ip_address,
            "payload": self.payload,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "service": self.service,
            "event_type": self.event_type,
            "action": self.action,
            "outcome": self.outcome,
            "actor_id": self.actor_id,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "ip_address": self.ip_address,
            "payload": dict(self.payload),
            "hash": self.hash,
            "previous_hash": self.previous_hash,
        }
