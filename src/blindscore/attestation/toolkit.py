"""
BlindScore Client Input Toolkit
Reference implementation of the client-side encryption/attestation collaborator

Turns plaintext integers into input ciphertext handles plus an attestor
proof bound to one submitter and one engine instance.
"""

import logging
import secrets
from typing import List, Optional

from blindscore.attestation.crypto import AttestorKeyPair, sign_binding
from blindscore.ciphertext.runtime import CiphertextRuntime, FheType
from blindscore.clock import Clock, SystemClock
from blindscore.contracts.models_v1 import AttestedInputV1

logger = logging.getLogger(__name__)


def generate_nonce() -> str:
    """Generate a cryptographically secure nonce"""
    return secrets.token_urlsafe(24)


class EncryptedInputBuilder:
    """Collects plaintext inputs and produces one attested input"""

    def __init__(
        self,
        runtime: CiphertextRuntime,
        attestor: AttestorKeyPair,
        engine_id: str,
        submitter: str,
        clock: Optional[Clock] = None,
    ):
        self.runtime = runtime
        self.attestor = attestor
        self.engine_id = engine_id
        self.submitter = submitter
        self.clock = clock or SystemClock()
        self._values: List[int] = []

    def add16(self, value: int) -> 'EncryptedInputBuilder':
        """Queue a 16-bit unsigned plaintext"""
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"euint16 input must be an integer, got {type(value).__name__}")
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"euint16 input {value} is outside 0..65535")
        self._values.append(value)
        return self

    def encrypt(self, nonce: Optional[str] = None) -> AttestedInputV1:
        """
        Encrypt queued values and sign the binding

        Args:
            nonce: Optional explicit nonce (generated when omitted)

        Returns:
            AttestedInputV1 ready for submission
        """
        if not self._values:
            raise ValueError("no inputs queued")

        handles = [self.runtime.register_input(v, FheType.EUINT16).handle for v in self._values]
        payload = {
            "handles": handles,
            "submitter": self.submitter,
            "engine_id": self.engine_id,
            "nonce": nonce or generate_nonce(),
            "issued_at": self.clock.now(),
        }
        proof = sign_binding(payload, self.attestor)
        logger.debug(f"Encrypted {len(handles)} inputs for {self.submitter}")
        self._values = []
        return AttestedInputV1(proof=proof, **payload)


def encrypt_metrics(
    runtime: CiphertextRuntime,
    attestor: AttestorKeyPair,
    engine_id: str,
    submitter: str,
    coverage: int,
    style: int,
    complexity: int,
    bugs: int,
    clock: Optional[Clock] = None,
) -> AttestedInputV1:
    """Encrypt one submission's four metrics in engine order"""
    builder = EncryptedInputBuilder(runtime, attestor, engine_id, submitter, clock)
    return builder.add16(coverage).add16(style).add16(complexity).add16(bugs).encrypt()
