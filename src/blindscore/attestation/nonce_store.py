"""
BlindScore Nonce Store
Replay protection for attested inputs, keyed per submitter
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

from blindscore.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


@dataclass
class NonceRecord:
    """Nonce tracking record for replay protection"""
    nonce: str
    submitter: str
    used_at: datetime
    expires_at: datetime


class NonceStore:
    """Bounded, thread-safe store of consumed nonces"""

    def __init__(self, nonce_ttl_seconds: int = 3600, max_nonce_history: int = 100000,
                 clock: Optional[Clock] = None):
        """
        Initialize nonce store

        Args:
            nonce_ttl_seconds: How long a consumed nonce is remembered. Must
                exceed the attestation skew window so an expired record can
                never be replayed inside a valid window.
            max_nonce_history: Maximum nonces tracked before oldest are evicted
            clock: Clock interface (defaults to SystemClock)
        """
        self._nonces: "OrderedDict[Tuple[str, str], NonceRecord]" = OrderedDict()
        self._nonce_ttl = timedelta(seconds=nonce_ttl_seconds)
        self._max_nonce_history = max_nonce_history
        self._clock = clock or SystemClock()
        self._lock = threading.RLock()

        logger.info(f"NonceStore initialized (ttl={nonce_ttl_seconds}s, max={max_nonce_history})")

    def is_nonce_available(self, submitter: str, nonce: str) -> bool:
        """Check whether a nonce has not been consumed by this submitter"""
        with self._lock:
            self._expire()
            return (submitter, nonce) not in self._nonces

    def mark_nonce_used(self, submitter: str, nonce: str) -> None:
        """Record a nonce as consumed"""
        with self._lock:
            now = self._clock.now()
            self._nonces[(submitter, nonce)] = NonceRecord(
                nonce=nonce,
                submitter=submitter,
                used_at=now,
                expires_at=now + self._nonce_ttl,
            )
            while len(self._nonces) > self._max_nonce_history:
                self._nonces.popitem(last=False)

    def _expire(self) -> None:
        now = self._clock.now()
        expired = [key for key, record in self._nonces.items() if record.expires_at <= now]
        for key in expired:
            del self._nonces[key]
        if expired:
            logger.debug(f"Expired {len(expired)} nonces")

    def __len__(self) -> int:
        with self._lock:
            return len(self._nonces)
