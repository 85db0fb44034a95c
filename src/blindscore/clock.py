"""
Time source for proof freshness and notification timestamps
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

EPOCH_DEFAULT = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """UTC time source shared by the verifier, nonce store and engine"""

    @abstractmethod
    def now(self) -> datetime:
        """Current time, timezone-aware UTC"""

    def skew_seconds(self, issued_at: datetime) -> float:
        """Absolute distance between now and a proof timestamp; naive timestamps are read as UTC"""
        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)
        return abs((self.now() - issued_at).total_seconds())


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Manually advanced clock for deterministic tests and demos"""

    def __init__(self, start_time: Optional[datetime] = None):
        self._current_time = start_time or EPOCH_DEFAULT

    def now(self) -> datetime:
        return self._current_time

    def advance(self, delta: timedelta) -> None:
        self._current_time += delta
