"""
Contracts Module - Pydantic wire models
"""

from .models_v1 import (
    ProofAlgorithm,
    InputProofV1,
    AttestedInputV1,
    DisclosureLevelName,
    EngineEventV1,
    PolicyUpdatedV1,
    PolicyPublishedV1,
    SubmissionIngestedV1,
    SumPublishedV1,
    AggregatesResetV1,
    OwnershipTransferredV1,
    EngineStateSnapshotV1,
)

__all__ = [
    'ProofAlgorithm',
    'InputProofV1',
    'AttestedInputV1',
    'DisclosureLevelName',
    'EngineEventV1',
    'PolicyUpdatedV1',
    'PolicyPublishedV1',
    'SubmissionIngestedV1',
    'SumPublishedV1',
    'AggregatesResetV1',
    'OwnershipTransferredV1',
    'EngineStateSnapshotV1',
]
