"""
BlindScore Engine Audit Emitter
Records engine notifications and forwards them through the audit boundary
"""

import logging
import threading
from typing import List, Optional, Type, TypeVar

from blindscore.audit.audit_interface import AuditInterface
from blindscore.contracts.models_v1 import EngineEventV1

logger = logging.getLogger(__name__)

EventT = TypeVar("EventT", bound=EngineEventV1)


class EngineAuditEmitter:
    """Notification sink for one engine instance"""

    def __init__(self, engine_id: str, audit_interface: Optional[AuditInterface] = None):
        """
        Initialize audit emitter

        Args:
            engine_id: Engine instance used as the correlation id
            audit_interface: Boundary-safe audit interface (optional)
        """
        self.engine_id = engine_id
        self.audit_interface = audit_interface
        self._records: List[EngineEventV1] = []
        self._lock = threading.Lock()

    def emit(self, event: EngineEventV1) -> bool:
        """
        Record an event and forward it

        Returns:
            True if the audit interface accepted the event (or none is configured)
        """
        with self._lock:
            self._records.append(event)

        event_name = getattr(event, "event_name", type(event).__name__)
        if self.audit_interface is None:
            logger.info(f"Engine event: {event_name} #{event.sequence} for engine {self.engine_id}")
            return True

        accepted = self.audit_interface.log_event(
            event_type=f"blindscore.{event_name}",
            correlation_id=self.engine_id,
            data=event.model_dump(mode="json"),
            recorded_at=event.emitted_at,
        )
        if not accepted:
            logger.warning(f"Audit interface did not accept event {event_name} #{event.sequence}")
        return accepted

    @property
    def records(self) -> List[EngineEventV1]:
        with self._lock:
            return list(self._records)

    def of_type(self, event_type: Type[EventT]) -> List[EventT]:
        """Recorded events of one notification type"""
        return [e for e in self.records if isinstance(e, event_type)]
