"""
BlindScore Policy Store
Holds the four encrypted acceptance thresholds
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from blindscore.ciphertext.runtime import CiphertextRuntime, EncryptedValue
from blindscore.disclosure.controller import DisclosureController, DisclosureLevel
from blindscore.errors import OutOfRange

logger = logging.getLogger(__name__)

THRESHOLD_MIN = 0
THRESHOLD_MAX = 100

DEFAULT_THRESHOLDS = {
    "cov_min": 0,
    "style_min": 0,
    "compl_max": 100,
    "bugs_max": 100,
}


@dataclass(frozen=True)
class Policy:
    """
    Encrypted acceptance thresholds

    cov_min and style_min pass when the metric is >= the threshold;
    compl_max and bugs_max pass when the metric is <= the threshold.
    """
    cov_min: EncryptedValue
    style_min: EncryptedValue
    compl_max: EncryptedValue
    bugs_max: EncryptedValue

    def handles(self) -> Tuple[str, str, str, str]:
        return (self.cov_min.handle, self.style_min.handle, self.compl_max.handle, self.bugs_max.handle)

    def values(self) -> Tuple[EncryptedValue, EncryptedValue, EncryptedValue, EncryptedValue]:
        return (self.cov_min, self.style_min, self.compl_max, self.bugs_max)


def validate_thresholds(**thresholds) -> None:
    """Raise OutOfRange for any threshold that is not an integer in 0..100"""
    for name, value in thresholds.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise OutOfRange(name, value, THRESHOLD_MIN, THRESHOLD_MAX)
        if not THRESHOLD_MIN <= value <= THRESHOLD_MAX:
            raise OutOfRange(name, value, THRESHOLD_MIN, THRESHOLD_MAX)


class PolicyStore:
    """Single mutable policy cell; replaced as a whole"""

    def __init__(self, runtime: CiphertextRuntime, disclosure: DisclosureController):
        self.runtime = runtime
        self.disclosure = disclosure
        self._policy = self.encrypt_plain(**DEFAULT_THRESHOLDS)
        self._install(self._policy)
        logger.info("PolicyStore initialized with permissive defaults")

    @property
    def current(self) -> Policy:
        return self._policy

    def encrypt_plain(self, cov_min: int, style_min: int, compl_max: int, bugs_max: int) -> Policy:
        """Validate plaintext thresholds and encrypt them as constants"""
        validate_thresholds(cov_min=cov_min, style_min=style_min, compl_max=compl_max, bugs_max=bugs_max)
        return Policy(
            cov_min=self.runtime.trivial_encrypt(cov_min),
            style_min=self.runtime.trivial_encrypt(style_min),
            compl_max=self.runtime.trivial_encrypt(compl_max),
            bugs_max=self.runtime.trivial_encrypt(bugs_max),
        )

    def replace(self, policy: Policy) -> Policy:
        """
        Install a new policy

        Grants ENGINE_ONLY on each threshold so scoring can use them.
        """
        self._install(policy)
        previous, self._policy = self._policy, policy
        self._discard_unreferenced(previous)
        logger.info("Policy replaced")
        return previous

    def make_public(self) -> Tuple[str, str, str, str]:
        """Grant PUBLIC on the current thresholds"""
        handles = self._policy.handles()
        self.disclosure.grant_all(handles, DisclosureLevel.PUBLIC)
        logger.info("Policy thresholds granted public disclosure")
        return handles

    def handles(self) -> Tuple[str, str, str, str]:
        return self._policy.handles()

    def _install(self, policy: Policy) -> None:
        self.disclosure.ensure_all(policy.handles(), DisclosureLevel.ENGINE_ONLY)

    def _discard_unreferenced(self, previous: Policy) -> None:
        # public thresholds stay decryptable after replacement
        live = set(self._policy.handles())
        stale = [h for h in previous.handles() if h not in live and not self.disclosure.is_public(h)]
        for handle in stale:
            self.disclosure.forget(handle)
        self.runtime.release(stale)
