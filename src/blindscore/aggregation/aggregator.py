"""
BlindScore Aggregator
Folds composite scores into an encrypted running sum under a hard submission cap
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from blindscore.ciphertext.runtime import CiphertextRuntime, EncryptedValue
from blindscore.disclosure.controller import DisclosureController, DisclosureLevel
from blindscore.errors import CapacityExceeded

logger = logging.getLogger(__name__)


class AggregateState(str, Enum):
    """Aggregate lifecycle"""
    ACCUMULATING = "accumulating"
    PUBLISHED = "published"


@dataclass(frozen=True)
class Aggregate:
    """Running encrypted sum and plaintext count"""
    sum_score: EncryptedValue
    submission_count: int
    state: AggregateState = AggregateState.ACCUMULATING


class Aggregator:
    """Single mutable aggregate cell; the only mutator of the running sum"""

    def __init__(self, runtime: CiphertextRuntime, disclosure: DisclosureController, cap: int):
        """
        Initialize aggregator

        Args:
            runtime: Ciphertext runtime
            disclosure: Disclosure controller for grants on sum handles
            cap: Hard submission cap (validated against the accumulator width by EngineConfig)
        """
        if cap < 1:
            raise ValueError("cap must be positive")
        self.runtime = runtime
        self.disclosure = disclosure
        self.cap = cap
        self.last_published_count: Optional[int] = None
        self._aggregate = self._fresh()
        logger.info(f"Aggregator initialized (cap={cap})")

    @property
    def current(self) -> Aggregate:
        return self._aggregate

    @property
    def sum_handle(self) -> str:
        return self._aggregate.sum_score.handle

    @property
    def submission_count(self) -> int:
        return self._aggregate.submission_count

    @property
    def state(self) -> AggregateState:
        return self._aggregate.state

    def check_capacity(self) -> None:
        """Raise CapacityExceeded when no further submission fits"""
        if self._aggregate.submission_count >= self.cap:
            raise CapacityExceeded(self.cap)

    def ingest(self, score: EncryptedValue) -> Tuple[str, int]:
        """
        Fold one composite score into the aggregate

        Args:
            score: Encrypted composite score

        Returns:
            Tuple of (new_sum_handle, new_count)

        Raises:
            CapacityExceeded: If the aggregate already holds cap submissions
        """
        self.check_capacity()
        replaced = self._aggregate.sum_score
        new_sum = self.runtime.add(replaced, score)
        self.disclosure.grant(new_sum.handle, DisclosureLevel.ENGINE_ONLY)
        self.discard(score)
        self.discard(replaced)
        self._aggregate = Aggregate(
            sum_score=new_sum,
            submission_count=self._aggregate.submission_count + 1,
            state=AggregateState.ACCUMULATING,
        )
        logger.info(f"Aggregate advanced to {self._aggregate.submission_count}/{self.cap}")
        return new_sum.handle, self._aggregate.submission_count

    def publish(self) -> Tuple[str, int]:
        """
        Grant PUBLIC on the live sum

        Returns:
            Tuple of (sum_handle, count_at_publication)
        """
        handle = self.sum_handle
        count = self.submission_count
        self.disclosure.grant(handle, DisclosureLevel.PUBLIC)
        self._aggregate = Aggregate(
            sum_score=self._aggregate.sum_score,
            submission_count=count,
            state=AggregateState.PUBLISHED,
        )
        self.last_published_count = count
        logger.info(f"Aggregate published at count {count}")
        return handle, count

    def reset(self) -> Aggregate:
        """
        Reinitialise to an encrypted zero and a zero count

        A previously published sum keeps its PUBLIC grant and stays
        decryptable; an unpublished one is destroyed.
        """
        previous = self._aggregate
        self._aggregate = self._fresh()
        self.discard(previous.sum_score)
        logger.info(f"Aggregate reset (previous count {previous.submission_count})")
        return previous

    def discard(self, value: EncryptedValue) -> bool:
        """
        Destroy a ciphertext the aggregate no longer references

        PUBLIC values are kept so earlier publications stay decryptable.

        Returns:
            True if the ciphertext was destroyed
        """
        if self.disclosure.is_public(value.handle):
            return False
        self.disclosure.forget(value.handle)
        return self.runtime.release([value.handle]) == 1

    def _fresh(self) -> Aggregate:
        zero = self.runtime.trivial_encrypt(0)
        self.disclosure.grant(zero.handle, DisclosureLevel.ENGINE_ONLY)
        return Aggregate(sum_score=zero, submission_count=0, state=AggregateState.ACCUMULATING)
