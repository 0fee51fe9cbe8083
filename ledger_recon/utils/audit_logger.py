"""
Audit logging for classification decisions.
"""

from collections import Counter
from typing import Any, List, Optional
from uuid import uuid4

import structlog

from ..models import AuditAction, AuditEntry

logger = structlog.get_logger()


class ClassificationAuditLog:
    """
    In-memory audit trail of rule decisions for one classification run.

    Every entry is mirrored to structlog: gaps at WARNING, the rest at DEBUG.
    """

    def __init__(self, run_id: Optional[str] = None):
        self.run_id = run_id or str(uuid4())
        self.entries: List[AuditEntry] = []

    def log(self, entry: AuditEntry) -> None:
        """Add an audit entry."""
        self.entries.append(entry)

        log_method = logger.warning if entry.action == AuditAction.CLASSIFICATION_GAP else logger.debug
        log_method(
            entry.message,
            run_id=self.run_id,
            action=entry.action.value,
            entry_id=entry.entry_id,
            rule=entry.rule,
            outcome=entry.outcome,
        )

    def record(
        self,
        action: AuditAction,
        entry_id: Any,
        rule: str,
        outcome: str,
        message: str,
        **details: Any,
    ) -> AuditEntry:
        """Create and add an audit entry."""
        entry = AuditEntry(
            action=action,
            entry_id=entry_id,
            rule=rule,
            outcome=outcome,
            message=message,
            details=details,
        )
        self.log(entry)
        return entry

    def get_entries(
        self,
        action_filter: Optional[str] = None,
        rule_filter: Optional[str] = None,
    ) -> List[AuditEntry]:
        """Get filtered audit entries."""
        entries = self.entries

        if action_filter:
            entries = [e for e in entries if e.action.value == action_filter]

        if rule_filter:
            entries = [e for e in entries if e.rule == rule_filter]

        return entries

    def summary(self) -> dict:
        """Get summary statistics of audit log."""
        action_counts = Counter(e.action.value for e in self.entries)
        rule_counts = Counter(e.rule for e in self.entries if e.rule)

        return {
            "run_id": self.run_id,
            "total_entries": len(self.entries),
            "gap_count": action_counts.get(AuditAction.CLASSIFICATION_GAP.value, 0),
            "action_counts": dict(action_counts),
            "rule_counts": dict(rule_counts),
        }
