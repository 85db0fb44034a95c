"""
BlindScore Scoring Engine
Evaluates one submission against the encrypted policy without decrypting anything
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from blindscore.ciphertext.runtime import CiphertextRuntime, EncryptedValue
from blindscore.disclosure.controller import DisclosureController
from blindscore.policy.store import Policy

logger = logging.getLogger(__name__)

CHECK_WEIGHT = 25
CHECK_COUNT = 4
MAX_COMPOSITE_SCORE = CHECK_WEIGHT * CHECK_COUNT


@dataclass(frozen=True)
class Submission:
    """One submission's encrypted metrics; never persisted"""
    coverage: EncryptedValue
    style: EncryptedValue
    complexity: EncryptedValue
    bugs: EncryptedValue

    @classmethod
    def from_values(cls, values: Sequence[EncryptedValue]) -> 'Submission':
        """Build from admitted values in (coverage, style, complexity, bugs) order"""
        if len(values) != CHECK_COUNT:
            raise ValueError(f"a submission carries exactly {CHECK_COUNT} metrics, got {len(values)}")
        coverage, style, complexity, bugs = values
        return cls(coverage=coverage, style=style, complexity=complexity, bugs=bugs)


class ScoringEngine:
    """
    Composite scoring by homomorphic compare-then-select

    Every call performs the same primitive sequence: two constants, four
    comparisons, four selects, three additions. Nothing in the scoring path
    depends on a plaintext.
    """

    def __init__(self, runtime: CiphertextRuntime, disclosure: DisclosureController):
        self.runtime = runtime
        self.disclosure = disclosure
        logger.info("ScoringEngine initialized")

    def score(self, submission: Submission, policy: Policy) -> EncryptedValue:
        """
        Compute the encrypted composite score

        Args:
            submission: Admitted encrypted metrics
            policy: Current policy snapshot

        Returns:
            EncryptedValue in {0, 25, 50, 75, 100}
        """
        for handle in policy.handles():
            self.disclosure.require_engine_access(handle)

        rt = self.runtime
        weight = rt.trivial_encrypt(CHECK_WEIGHT)
        zero = rt.trivial_encrypt(0)

        coverage_ok = rt.ge(submission.coverage, policy.cov_min)
        style_ok = rt.ge(submission.style, policy.style_min)
        complexity_ok = rt.le(submission.complexity, policy.compl_max)
        bugs_ok = rt.le(submission.bugs, policy.bugs_max)

        coverage_pts = rt.select(coverage_ok, weight, zero)
        style_pts = rt.select(style_ok, weight, zero)
        complexity_pts = rt.select(complexity_ok, weight, zero)
        bugs_pts = rt.select(bugs_ok, weight, zero)

        # pairwise keeps each partial sum at or below 50
        quality = rt.add(coverage_pts, style_pts)
        hygiene = rt.add(complexity_pts, bugs_pts)
        composite = rt.add(quality, hygiene)

        rt.release(v.handle for v in (
            weight, zero,
            coverage_ok, style_ok, complexity_ok, bugs_ok,
            coverage_pts, style_pts, complexity_pts, bugs_pts,
            quality, hygiene,
        ))
        return composite
