"""Utility modules."""

from .audit_logger import ClassificationAuditLog

__all__ = ["ClassificationAuditLog"]
