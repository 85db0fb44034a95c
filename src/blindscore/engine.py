"""
BlindScore Confidential Scoring Engine
Externally invoked operations over the policy, the aggregate and the owner capability

Each operation runs to completion under one lock. All checks happen before
any mutation, so a failing call leaves the engine exactly as it was.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple
from uuid import uuid4

from blindscore.aggregation.aggregator import Aggregator, AggregateState
from blindscore.attestation.crypto import deserialize_public_key
from blindscore.attestation.verifier import AttestationVerifier
from blindscore.audit.audit_interface import AuditInterface
from blindscore.audit.emitter import EngineAuditEmitter
from blindscore.ciphertext.runtime import CiphertextRuntime
from blindscore.clock import Clock, SystemClock
from blindscore.config import EngineConfig
from blindscore.contracts.models_v1 import (
    AggregatesResetV1,
    AttestedInputV1,
    EngineEventV1,
    EngineStateSnapshotV1,
    OwnershipTransferredV1,
    PolicyPublishedV1,
    PolicyUpdatedV1,
    SubmissionIngestedV1,
    SumPublishedV1,
)
from blindscore.disclosure.controller import DisclosureController
from blindscore.disclosure.relay import DecryptionRelay
from blindscore.errors import BlindScoreError, NotOwner, ZeroOwner
from blindscore.policy.store import Policy, PolicyStore, validate_thresholds
from blindscore.scoring.engine import CHECK_COUNT, ScoringEngine, Submission

logger = logging.getLogger(__name__)

ZERO_PRINCIPAL = "0x" + "0" * 40


def is_zero_principal(principal: Optional[str]) -> bool:
    """True for a missing, blank or all-zero principal"""
    if principal is None:
        return True
    value = principal.strip().lower()
    if not value:
        return True
    if value.startswith("0x"):
        return set(value[2:]) <= {"0"}
    return False


@dataclass
class EngineState:
    """Persisted state of one engine: policy, aggregate and owner"""
    owner: str
    policy: PolicyStore
    aggregate: Aggregator


@dataclass(frozen=True)
class SubmissionResult:
    """Handles produced by one accepted submission"""
    composite_handle: str
    sum_handle: str
    submission_count: int


class ConfidentialScoringEngine:
    """Confidential aggregation of encrypted code-quality metrics"""

    def __init__(
        self,
        owner: str,
        config: Optional[EngineConfig] = None,
        runtime: Optional[CiphertextRuntime] = None,
        attestors: Iterable = (),
        clock: Optional[Clock] = None,
        audit_interface: Optional[AuditInterface] = None,
        engine_id: Optional[str] = None,
    ):
        """
        Initialize engine

        Args:
            owner: Principal holding the owner capability
            config: Deployment configuration (defaults to EngineConfig())
            runtime: Ciphertext runtime (created from config when omitted)
            attestors: Trusted attestor public keys or key pairs, in addition
                to config.trusted_attestor_keys
            clock: Clock interface (defaults to SystemClock)
            audit_interface: Optional audit sink for notifications
            engine_id: Instance identity that input proofs must be bound to
        """
        if is_zero_principal(owner):
            raise ZeroOwner()

        self.config = config or EngineConfig()
        self.engine_id = engine_id or f"engine-{uuid4().hex[:16]}"
        self.clock = clock or SystemClock()
        self.runtime = runtime or CiphertextRuntime(
            debug_decrypt=self.config.debug_decrypt,
            trace_limit=self.config.trace_limit,
        )
        self.disclosure = DisclosureController()
        self.verifier = AttestationVerifier(
            runtime=self.runtime,
            engine_id=self.engine_id,
            trusted_attestors=(),
            clock=self.clock,
            max_timestamp_skew_seconds=self.config.attestation_max_skew_seconds,
        )
        for public_key_b64 in self.config.trusted_attestor_keys:
            self.verifier.trust_attestor(deserialize_public_key(public_key_b64))
        for attestor in attestors:
            self.verifier.trust_attestor(attestor)
        self.scoring = ScoringEngine(self.runtime, self.disclosure)
        self.relay = DecryptionRelay(self.runtime, self.disclosure)
        self.emitter = EngineAuditEmitter(self.engine_id, audit_interface)
        self.state = EngineState(
            owner=owner,
            policy=PolicyStore(self.runtime, self.disclosure),
            aggregate=Aggregator(self.runtime, self.disclosure, self.config.submission_cap),
        )
        self._sequence = 0
        self._lock = threading.RLock()

        logger.info(
            f"ConfidentialScoringEngine {self.engine_id} initialized "
            f"(owner={owner}, cap={self.config.submission_cap}, "
            f"publish_sum_owner_only={self.config.publish_sum_owner_only})"
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_owner(self, operation: str, caller: str) -> None:
        if caller != self.state.owner:
            raise NotOwner(operation, caller)

    def _emit(self, event_cls, **fields) -> EngineEventV1:
        self._sequence += 1
        event = event_cls(
            engine_id=self.engine_id,
            sequence=self._sequence,
            emitted_at=self.clock.now(),
            **fields,
        )
        self.emitter.emit(event)
        return event

    def _rejected(self, operation: str, caller: Optional[str], error: BlindScoreError) -> None:
        logger.warning(f"{operation} rejected for {caller}: {type(error).__name__}: {error}")

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    @property
    def owner(self) -> str:
        return self.state.owner

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        """
        Move the owner capability

        Raises:
            NotOwner: If caller is not the owner
            ZeroOwner: If new_owner is the null identity
        """
        with self._lock:
            try:
                self._require_owner("transfer_ownership", caller)
                if is_zero_principal(new_owner):
                    raise ZeroOwner()
            except BlindScoreError as e:
                self._rejected("transfer_ownership", caller, e)
                raise
            previous = self.state.owner
            self.state.owner = new_owner
            self._emit(OwnershipTransferredV1, previous_owner=previous, new_owner=new_owner)
            logger.info(f"Ownership transferred from {previous} to {new_owner}")

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    def set_policy(self, caller: str, attested: AttestedInputV1) -> Tuple[str, str, str, str]:
        """
        Replace the policy with four attested threshold ciphertexts

        Args:
            caller: Invoking principal (must be the owner)
            attested: cov_min, style_min, compl_max, bugs_max handles plus proof

        Returns:
            The four new policy handles
        """
        with self._lock:
            try:
                self._require_owner("set_policy", caller)
                values = self.verifier.verify(attested, caller, expected_count=CHECK_COUNT)
            except BlindScoreError as e:
                self._rejected("set_policy", caller, e)
                raise
            cov_min, style_min, compl_max, bugs_max = values
            policy = Policy(cov_min=cov_min, style_min=style_min, compl_max=compl_max, bugs_max=bugs_max)
            self.state.policy.replace(policy)
            self.runtime.consume_inputs(attested.handles)
            self.verifier.commit(attested)
            handles = policy.handles()
            self._emit(PolicyUpdatedV1, handles=list(handles), attested=True)
            return handles

    def set_policy_plain(self, caller: str, cov_min: int, style_min: int, compl_max: int,
                         bugs_max: int) -> Tuple[str, str, str, str]:
        """
        Replace the policy from plaintext thresholds (bootstrapping and testing)

        Raises:
            NotOwner: If caller is not the owner
            OutOfRange: If any threshold is outside 0..100
        """
        with self._lock:
            try:
                self._require_owner("set_policy_plain", caller)
                validate_thresholds(cov_min=cov_min, style_min=style_min, compl_max=compl_max, bugs_max=bugs_max)
            except BlindScoreError as e:
                self._rejected("set_policy_plain", caller, e)
                raise
            policy = self.state.policy.encrypt_plain(cov_min, style_min, compl_max, bugs_max)
            self.state.policy.replace(policy)
            handles = policy.handles()
            self._emit(PolicyUpdatedV1, handles=list(handles), attested=False)
            return handles

    def make_policy_public(self, caller: str) -> Tuple[str, str, str, str]:
        """Grant PUBLIC on the current thresholds; the policy stays owner-mutable"""
        with self._lock:
            try:
                self._require_owner("make_policy_public", caller)
            except BlindScoreError as e:
                self._rejected("make_policy_public", caller, e)
                raise
            handles = self.state.policy.make_public()
            self._emit(PolicyPublishedV1, handles=list(handles))
            return handles

    def get_policy_handles(self) -> Tuple[str, str, str, str]:
        """Current policy handles, whatever their disclosure state"""
        with self._lock:
            return self.state.policy.handles()

    # ------------------------------------------------------------------
    # Submissions and aggregate
    # ------------------------------------------------------------------

    def submit_metrics(self, caller: str, attested: AttestedInputV1) -> SubmissionResult:
        """
        Score one submission and fold it into the aggregate

        Args:
            caller: Submitting principal (must match the proof binding)
            attested: coverage, style, complexity, bugs handles plus proof

        Returns:
            SubmissionResult with the composite handle, new sum handle and count

        Raises:
            CapacityExceeded: If the aggregate is full
            ProofInvalid: If the input proof fails verification
        """
        with self._lock:
            try:
                self.state.aggregate.check_capacity()
                values = self.verifier.verify(attested, caller, expected_count=CHECK_COUNT)
            except BlindScoreError as e:
                self._rejected("submit_metrics", caller, e)
                raise
            submission = Submission.from_values(values)
            composite = self.scoring.score(submission, self.state.policy.current)
            sum_handle, count = self.state.aggregate.ingest(composite)
            self.verifier.commit(attested)
            # submissions are never persisted
            self.runtime.release(attested.handles)
            self._emit(
                SubmissionIngestedV1,
                composite_handle=composite.handle,
                sum_handle=sum_handle,
                submission_count=count,
            )
            return SubmissionResult(composite_handle=composite.handle, sum_handle=sum_handle, submission_count=count)

    def publish_sum(self, caller: str) -> str:
        """
        Grant PUBLIC on the running sum

        Owner-only unless the deployment sets publish_sum_owner_only=False.

        Returns:
            The published sum handle
        """
        with self._lock:
            if self.config.publish_sum_owner_only:
                try:
                    self._require_owner("publish_sum", caller)
                except BlindScoreError as e:
                    self._rejected("publish_sum", caller, e)
                    raise
            handle, count = self.state.aggregate.publish()
            self._emit(SumPublishedV1, sum_handle=handle, count_at_publication=count)
            return handle

    def get_aggregate_handles(self) -> Tuple[str, int]:
        """Current (sum handle, submission count)"""
        with self._lock:
            return self.state.aggregate.sum_handle, self.state.aggregate.submission_count

    def reset_aggregates(self, caller: str) -> str:
        """
        Reinitialise the aggregate to an encrypted zero and a zero count

        Earlier published handles stay decryptable.

        Returns:
            The fresh sum handle
        """
        with self._lock:
            try:
                self._require_owner("reset_aggregates", caller)
            except BlindScoreError as e:
                self._rejected("reset_aggregates", caller, e)
                raise
            previous = self.state.aggregate.reset()
            handle = self.state.aggregate.sum_handle
            self._emit(
                AggregatesResetV1,
                sum_handle=handle,
                previous_sum_handle=previous.sum_score.handle,
                previous_count=previous.submission_count,
            )
            return handle

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def aggregate_state(self) -> AggregateState:
        return self.state.aggregate.state

    @property
    def events(self):
        return self.emitter.records

    def state_snapshot(self) -> EngineStateSnapshotV1:
        """Logical persisted layout, as handles and plaintext counters"""
        with self._lock:
            return EngineStateSnapshotV1(
                engine_id=self.engine_id,
                owner=self.state.owner,
                policy_handles=list(self.state.policy.handles()),
                sum_handle=self.state.aggregate.sum_handle,
                submission_count=self.state.aggregate.submission_count,
                aggregate_state=self.state.aggregate.state.value,
                submission_cap=self.state.aggregate.cap,
                disclosure=self.disclosure.snapshot(),
                last_published_count=self.state.aggregate.last_published_count,
            )
