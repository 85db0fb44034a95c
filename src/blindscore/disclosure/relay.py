"""
BlindScore Decryption Relay
Reference implementation of the external relay that turns publicly disclosed
handles back into plaintexts, plus the plaintext average post-processing step
"""

import logging
from typing import Optional, Tuple

from blindscore.ciphertext.runtime import CiphertextRuntime
from blindscore.contracts.models_v1 import SumPublishedV1
from blindscore.disclosure.controller import DisclosureController
from blindscore.errors import DisclosureDenied

logger = logging.getLogger(__name__)


def average(sum_plaintext: int, count_at_publication: int) -> Optional[float]:
    """
    Off-chain average of a decrypted sum

    Args:
        sum_plaintext: Decrypted aggregate sum
        count_at_publication: Count carried by the publication notification

    Returns:
        The average, or None when no submissions were folded
    """
    if count_at_publication < 0:
        raise ValueError("count_at_publication must be non-negative")
    if count_at_publication == 0:
        return None
    return sum_plaintext / count_at_publication


class DecryptionRelay:
    """Decrypts handles that hold a PUBLIC grant, for any requester"""

    def __init__(self, runtime: CiphertextRuntime, disclosure: DisclosureController):
        self.runtime = runtime
        self.disclosure = disclosure

    def public_decrypt(self, handle: str) -> int:
        """
        Decrypt a publicly disclosed handle

        Raises:
            DisclosureDenied: If the handle lacks a PUBLIC grant
        """
        try:
            self.disclosure.require_public(handle)
        except DisclosureDenied:
            logger.warning(f"Public decryption refused for {handle[:16]}...")
            raise
        return self.runtime.reveal(handle)

    def decrypt_publication(self, event: SumPublishedV1) -> Tuple[int, int, Optional[float]]:
        """
        Decrypt a sum publication and pair it with its own denominator

        Returns:
            Tuple of (sum, count_at_publication, average)
        """
        total = self.public_decrypt(event.sum_handle)
        return total, event.count_at_publication, average(total, event.count_at_publication)
