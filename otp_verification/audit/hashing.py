"""
Audit Hashing
=============
SHA-256 chaining for tamper-evident audit trails.
"""

import hashlib
import json
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple

import structlog

from .events import AuditEvent

logger = structlog.get_logger(__name__)


def compute_event_hash(
    previous_hash: Optional[str],
    timestamp: datetime,
    service: str,
    event_type: str,
    outcome: str,
    resource_id: Optional[str],
    ip_address: Optional[str],
    payload: Dict[str, Any],
) -> str:
    """
    Hash an event together with the hash of the event before it.

    Editing or removing any event changes every hash after it.
    """
    canonical = json.dumps(
        [previous_hash, timestamp.isoformat(), service, event_type, outcome, resource_id, ip_address, payload],
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def verify_chain_integrity(events: Sequence[AuditEvent]) -> Tuple[bool, Optional[int]]:
    """
    Walk a chain oldest first.

    Returns:
        (True, None) for an intact chain, otherwise (False, index of the
        first event whose link or hash does not check out)
    """
    expected_previous = events[0].previous_hash if events else None

    for index, event in enumerate(events):
        if event.previous_hash != expected_previous:
            logger.warning("Audit chain link broken", event_id=event.id, index=index)
            return False, index

        if event.hash != compute_event_hash(event.previous_hash, **event.hashed_fields()):
            logger.warning("Audit event hash mismatch", event_id=event.id, index=index)
            return False, index

        expected_previous = event.hash

    return True, None
