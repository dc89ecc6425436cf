"""
Audit Logging Module
====================
Append-only, tamper-evident audit trail with hash chaining.
"""

from .events import AuditEvent, AuditEventType, AuditOutcome
from .hashing import compute_event_hash, verify_chain_integrity
from .logger import CLIENT_IP_KEY, AuditLogger, AuditSink

__all__ = [
    "AuditEventType",
    "AuditOutcome",
    "AuditEvent",
    "compute_event_hash",
    "verify_chain_integrity",
    "AuditLogger",
    "AuditSink",
    "CLIENT_IP_KEY",
]
