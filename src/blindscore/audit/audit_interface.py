"""
BlindScore Audit Interface
Boundary-safe adapter for forwarding engine notifications to an audit sink
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional


class AuditInterface(ABC):
    """Abstract interface for audit logging"""

    @abstractmethod
    def log_event(self, event_type: str, correlation_id: str, data: Dict[str, Any], recorded_at: datetime) -> bool:
        """
        Log an audit event

        Args:
            event_type: Type of audit event
            correlation_id: Correlation ID for event tracking
            data: Event data payload
            recorded_at: When the event was recorded

        Returns:
            True if event was logged successfully, False otherwise
        """
        pass

    @abstractmethod
    def get_events(self, event_type_prefix: str, correlation_id: str, limit: int) -> Optional[list]:
        """
        Retrieve audit events

        Args:
            event_type_prefix: Prefix for event type filtering
            correlation_id: Correlation ID for filtering
            limit: Maximum number of events to retrieve

        Returns:
            List of events or None if not available
        """
        pass


class InMemoryAuditInterface(AuditInterface):
    """In-process audit sink"""

    def __init__(self):
        self._records: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def log_event(self, event_type: str, correlation_id: str, data: Dict[str, Any], recorded_at: datetime) -> bool:
        with self._lock:
            self._records.append({
                "event_type": event_type,
                "correlation_id": correlation_id,
                "data": data,
                "recorded_at": recorded_at,
            })
        return True

    def get_events(self, event_type_prefix: str, correlation_id: str, limit: int) -> Optional[list]:
        with self._lock:
            matching = [
                r for r in self._records
                if r["event_type"].startswith(event_type_prefix) and r["correlation_id"] == correlation_id
            ]
        return matching[:limit]
