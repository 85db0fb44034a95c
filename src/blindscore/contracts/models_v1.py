"""
BlindScore v1 Pydantic Models

Canonical contract models for attested inputs and engine notifications.
All models use strict validation and enforce field constraints.
"""

import re
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

_HANDLE_RE = re.compile(r'^[0-9a-f]{64}$')


def _validate_handle(v: str) -> str:
    if not _HANDLE_RE.match(v):
        raise ValueError('handle must be 64 lowercase hex characters')
    return v


class ProofAlgorithm(str, Enum):
    """Supported input proof algorithms"""
    ED25519 = "ed25519"


class InputProofV1(BaseModel):
    """Signature binding input ciphertexts to a submitter and engine"""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, frozen=True)

    alg: ProofAlgorithm = Field(default=ProofAlgorithm.ED25519, description="Proof algorithm")
    key_id: str = Field(description="Attestor key identifier")
    sig_b64: str = Field(min_length=1, description="Base64 encoded signature")


class AttestedInputV1(BaseModel):
    """Encrypted input handles plus the proof that admits them"""

    # signed fields are kept byte-for-byte
    model_config = ConfigDict(extra="forbid", frozen=True)

    handles: List[str] = Field(min_length=1, description="Input ciphertext handles, in order")
    submitter: str = Field(min_length=1, description="Principal the input is bound to")
    engine_id: str = Field(min_length=1, description="Engine instance the input is bound to")
    nonce: str = Field(min_length=8, description="Single-use nonce")
    issued_at: datetime = Field(description="When the proof was issued")
    proof: InputProofV1 = Field(description="Attestor signature")

    @field_validator('handles')
    @classmethod
    def validate_handles(cls, v: List[str]) -> List[str]:
        for handle in v:
            _validate_handle(handle)
        return v

    @field_serializer('issued_at')
    def serialize_issued_at(self, value: datetime) -> str:
        return value.isoformat()

    def binding_payload(self) -> dict:
        """Payload covered by the attestor signature"""
        return {
            "handles": list(self.handles),
            "submitter": self.submitter,
            "engine_id": self.engine_id,
            "nonce": self.nonce,
            "issued_at": self.issued_at,
        }


class DisclosureLevelName(str, Enum):
    """Wire names for disclosure grants"""
    NONE = "none"
    ENGINE_ONLY = "engine_only"
    PUBLIC = "public"


class EngineEventV1(BaseModel):
    """Common envelope for engine notifications"""

    model_config = ConfigDict(extra="forbid", frozen=True)

    event_id: str = Field(default_factory=lambda: uuid4().hex, description="Event identifier")
    engine_id: str = Field(description="Emitting engine instance")
    sequence: int = Field(ge=1, description="Monotonic per-engine event sequence")
    emitted_at: datetime = Field(description="When the event was emitted")

    @field_serializer('emitted_at')
    def serialize_emitted_at(self, value: datetime) -> str:
        return value.isoformat()


class PolicyUpdatedV1(EngineEventV1):
    """Policy thresholds were replaced"""

    event_name: Literal["policy_updated"] = "policy_updated"
    handles: List[str] = Field(min_length=4, max_length=4, description="cov_min, style_min, compl_max, bugs_max")
    attested: bool = Field(description="True when thresholds arrived as attested ciphertexts")


class PolicyPublishedV1(EngineEventV1):
    """Policy thresholds were granted public disclosure"""

    event_name: Literal["policy_published"] = "policy_published"
    handles: List[str] = Field(min_length=4, max_length=4)


class SubmissionIngestedV1(EngineEventV1):
    """A submission was scored and folded into the aggregate"""

    event_name: Literal["submission_ingested"] = "submission_ingested"
    composite_handle: str = Field(description="Composite score handle (never disclosed)")
    sum_handle: str = Field(description="New running sum handle")
    submission_count: int = Field(ge=1, description="Count after this submission")

    @field_validator('composite_handle', 'sum_handle')
    @classmethod
    def validate_handle(cls, v: str) -> str:
        return _validate_handle(v)


class SumPublishedV1(EngineEventV1):
    """The running sum was granted public disclosure"""

    event_name: Literal["sum_published"] = "sum_published"
    sum_handle: str = Field(description="Published sum handle")
    count_at_publication: int = Field(ge=0, description="Denominator for the off-chain average")

    @field_validator('sum_handle')
    @classmethod
    def validate_handle(cls, v: str) -> str:
        return _validate_handle(v)


class AggregatesResetV1(EngineEventV1):
    """The aggregate was reinitialised to an encrypted zero"""

    event_name: Literal["aggregates_reset"] = "aggregates_reset"
    sum_handle: str = Field(description="Fresh zero sum handle")
    previous_sum_handle: str = Field(description="Sum handle before the reset")
    previous_count: int = Field(ge=0)


class OwnershipTransferredV1(EngineEventV1):
    """Owner capability moved to another principal"""

    event_name: Literal["ownership_transferred"] = "ownership_transferred"
    previous_owner: str
    new_owner: str


class EngineStateSnapshotV1(BaseModel):
    """Logical persisted state layout, expressed as handles"""

    model_config = ConfigDict(extra="forbid", frozen=True)

    engine_id: str
    owner: str
    policy_handles: List[str] = Field(min_length=4, max_length=4)
    sum_handle: str
    submission_count: int = Field(ge=0)
    aggregate_state: Literal["accumulating", "published"]
    submission_cap: int = Field(ge=1)
    disclosure: dict = Field(default_factory=dict, description="handle -> grant level name")
    last_published_count: Optional[int] = None
