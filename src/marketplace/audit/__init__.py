"""Audit trail: models, storage, logger, and CLI for negotiation events."""

from marketplace.audit.cli import build_parser
from marketplace.audit.logger import AuditLogger
from marketplace.audit.models import AuditEntry, EventType
from marketplace.audit.store import (
    close_audit_db,
    init_audit_db,
    init_audit_table,
    insert_audit_entry,
    open_db,
    query_audit_trail,
)

__all__ = [
    "AuditEntry",
    "AuditLogger",
    "EventType",
    "build_parser",
    "close_audit_db",
    "init_audit_db",
    "init_audit_table",
    "insert_audit_entry",
    "open_db",
    "query_audit_trail",
]
