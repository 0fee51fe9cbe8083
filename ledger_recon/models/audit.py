"""Audit trail model for classification decisions."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from .enums import AuditAction


@dataclass
class AuditEntry:
    """An entry in the classification audit log."""
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)

    # Action
    action: AuditAction = AuditAction.ENTRY_CLASSIFIED

    # Context
    entry_id: Any = None
    rule: Optional[str] = None
    outcome: Optional[str] = None

    # Details
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)
