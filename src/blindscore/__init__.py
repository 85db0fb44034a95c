"""
BlindScore - Confidential aggregation of encrypted code-quality assessments

Only an encrypted running sum and a plaintext count are ever revealed;
individual submissions and the acceptance policy stay encrypted unless a
disclosure grant says otherwise.
"""

from .engine import ConfidentialScoringEngine, EngineState, SubmissionResult, ZERO_PRINCIPAL, is_zero_principal
from .config import EngineConfig, max_safe_capacity
from .errors import (
    BlindScoreError,
    NotOwner,
    ZeroOwner,
    OutOfRange,
    ProofInvalid,
    CapacityExceeded,
    DisclosureDenied,
    DisclosureDowngrade,
    UnknownHandle,
)

__version__ = "0.1.0"

__all__ = [
    'ConfidentialScoringEngine',
    'EngineState',
    'SubmissionResult',
    'ZERO_PRINCIPAL',
    'is_zero_principal',
    'EngineConfig',
    'max_safe_capacity',
    'BlindScoreError',
    'NotOwner',
    'ZeroOwner',
    'OutOfRange',
    'ProofInvalid',
    'CapacityExceeded',
    'DisclosureDenied',
    'DisclosureDowngrade',
    'UnknownHandle',
]
