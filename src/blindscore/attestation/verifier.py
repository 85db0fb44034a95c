"""
BlindScore Attestation Verifier
Admits externally supplied ciphertexts only with a valid, fresh, context-bound proof
"""

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Iterable, List, Optional

from cryptography.hazmat.primitives.asymmetric import ed25519

from blindscore.attestation.crypto import (
    AttestorKeyPair,
    VerificationFailureReason,
    compute_key_id,
    verify_input_signature,
)
from blindscore.attestation.nonce_store import NonceStore
from blindscore.ciphertext.runtime import CiphertextRuntime, EncryptedValue, FheType
from blindscore.clock import Clock, SystemClock
from blindscore.contracts.models_v1 import AttestedInputV1
from blindscore.errors import ProofInvalid

logger = logging.getLogger(__name__)


class VerificationAuditEvent:
    """Audit event for input proof verification"""

    def __init__(
        self,
        submitter: str,
        key_id: str,
        handle_count: int,
        success: bool,
        failure_reason: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ):
        self.submitter = submitter
        self.key_id = key_id
        self.handle_count = handle_count
        self.success = success
        self.failure_reason = failure_reason
        self.timestamp = timestamp or datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for audit logging"""
        result = {
            'event_type': 'input_proof_verification_success' if self.success else 'input_proof_verification_failure',
            'submitter': self.submitter,
            'key_id': self.key_id,
            'handle_count': self.handle_count,
            'success': self.success,
            'timestamp': self.timestamp.isoformat().replace('+00:00', 'Z')
        }
        if self.failure_reason:
            result['failure_reason'] = self.failure_reason
        return result


class AttestationVerifier:
    """Verifies attested inputs for one engine instance"""

    def __init__(
        self,
        runtime: CiphertextRuntime,
        engine_id: str,
        trusted_attestors: Iterable[ed25519.Ed25519PublicKey] = (),
        clock: Optional[Clock] = None,
        nonce_store: Optional[NonceStore] = None,
        max_timestamp_skew_seconds: int = 300,
        audit_history: int = 1000,
    ):
        """
        Initialize attestation verifier

        Args:
            runtime: Ciphertext runtime the input handles must live in
            engine_id: Identity of the receiving engine instance
            trusted_attestors: Public keys whose proofs are accepted
            clock: Clock interface for freshness checks (defaults to SystemClock)
            nonce_store: Replay protection store
            max_timestamp_skew_seconds: Maximum allowed proof age or future skew
            audit_history: Number of verification audit events retained
        """
        self.runtime = runtime
        self.engine_id = engine_id
        self.clock = clock or SystemClock()
        self.nonce_store = nonce_store or NonceStore(
            nonce_ttl_seconds=max(3600, 2 * max_timestamp_skew_seconds), clock=self.clock
        )
        self.max_timestamp_skew_seconds = max_timestamp_skew_seconds
        self._attestors: Dict[str, ed25519.Ed25519PublicKey] = {}
        self.audit_events: Deque[Dict[str, Any]] = deque(maxlen=audit_history)
        for public_key in trusted_attestors:
            self.trust_attestor(public_key)

        logger.info(f"AttestationVerifier initialized for engine {engine_id} ({len(self._attestors)} attestors)")

    def trust_attestor(self, attestor) -> str:
        """
        Register an attestor public key

        Args:
            attestor: Ed25519 public key or AttestorKeyPair

        Returns:
            Key identifier of the registered attestor
        """
        if isinstance(attestor, AttestorKeyPair):
            attestor = attestor.public_key
        key_id = compute_key_id(attestor)
        self._attestors[key_id] = attestor
        logger.info(f"Trusted attestor registered: {key_id[:16]}...")
        return key_id

    def is_trusted(self, key_id: str) -> bool:
        return key_id in self._attestors

    def verify(self, attested: AttestedInputV1, caller: str, expected_count: int) -> List[EncryptedValue]:
        """
        Verify an attested input without consuming its nonce

        Args:
            attested: Attested input to verify
            caller: Principal invoking the engine operation
            expected_count: Number of handles the operation requires

        Returns:
            Admitted encrypted values, in input order

        Raises:
            ProofInvalid: If any check fails
        """
        reason = self._check(attested, caller, expected_count)
        self._audit(attested, success=reason is None, failure_reason=reason)
        if reason is not None:
            logger.warning(f"Rejected input proof from {caller}: {reason}")
            raise ProofInvalid(reason)
        return [EncryptedValue(handle=h, fhe_type=FheType.EUINT16) for h in attested.handles]

    def commit(self, attested: AttestedInputV1) -> None:
        """Consume the nonce of an input whose operation completed"""
        self.nonce_store.mark_nonce_used(attested.submitter, attested.nonce)

    def _check(self, attested: AttestedInputV1, caller: str, expected_count: int) -> Optional[str]:
        # 1. Shape
        if len(attested.handles) != expected_count:
            return VerificationFailureReason.COUNT_MISMATCH

        # 2. Attestor is known
        public_key = self._attestors.get(attested.proof.key_id)
        if public_key is None:
            return VerificationFailureReason.UNKNOWN_KEY_ID

        # 3. Signature
        signature_valid, signature_error = verify_input_signature(attested, public_key)
        if not signature_valid:
            return signature_error

        # 4. Binding to caller and engine instance
        if attested.submitter != caller:
            return VerificationFailureReason.SUBMITTER_MISMATCH
        if attested.engine_id != self.engine_id:
            return VerificationFailureReason.CONTEXT_MISMATCH

        # 5. Freshness
        if self.clock.skew_seconds(attested.issued_at) > self.max_timestamp_skew_seconds:
            return VerificationFailureReason.TIMESTAMP_OUT_OF_BOUNDS

        # 6. Handles are registered input ciphertexts of the right type
        if len(set(attested.handles)) != len(attested.handles):
            return VerificationFailureReason.UNKNOWN_HANDLE
        for handle in attested.handles:
            if not self.runtime.is_input(handle):
                return VerificationFailureReason.UNKNOWN_HANDLE
            if self.runtime.type_of(handle) is not FheType.EUINT16:
                return VerificationFailureReason.TYPE_MISMATCH

        # 7. Replay
        if not self.nonce_store.is_nonce_available(attested.submitter, attested.nonce):
            return VerificationFailureReason.NONCE_REUSE

        return None

    def _audit(self, attested: AttestedInputV1, success: bool, failure_reason: Optional[str]) -> None:
        event = VerificationAuditEvent(
            submitter=attested.submitter,
            key_id=attested.proof.key_id,
            handle_count=len(attested.handles),
            success=success,
            failure_reason=failure_reason,
            timestamp=self.clock.now(),
        )
        self.audit_events.append(event.to_dict())
        logger.debug(f"Input proof audit: {event.to_dict()}")
