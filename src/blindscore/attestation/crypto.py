"""
BlindScore Attestation Cryptographic Operations
Ed25519 signing and verification for input proofs
"""

import base64
import logging
from typing import Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from blindscore.contracts.models_v1 import AttestedInputV1, InputProofV1, ProofAlgorithm
from blindscore.replay.canonical_utils import canonical_bytes, stable_hash

logger = logging.getLogger(__name__)


class VerificationFailureReason(str):
    """Reasons for input proof rejection"""
    COUNT_MISMATCH = "count_mismatch"
    UNKNOWN_KEY_ID = "unknown_key_id"
    INVALID_SIGNATURE = "invalid_signature"
    SUBMITTER_MISMATCH = "submitter_mismatch"
    CONTEXT_MISMATCH = "context_mismatch"
    TIMESTAMP_OUT_OF_BOUNDS = "timestamp_out_of_bounds"
    UNKNOWN_HANDLE = "unknown_handle"
    TYPE_MISMATCH = "type_mismatch"
    NONCE_REUSE = "nonce_reuse"


class AttestorKeyPair:
    """Attestor key pair for Ed25519 input proofs"""

    def __init__(self, private_key: Optional[ed25519.Ed25519PrivateKey] = None):
        """
        Initialize key pair
        Args:
            private_key: Optional existing private key, generates new one if None
        """
        if private_key is None:
            self._private_key = ed25519.Ed25519PrivateKey.generate()
        else:
            self._private_key = private_key

        self._public_key = self._private_key.public_key()
        self._key_id = compute_key_id(self._public_key)

    @property
    def private_key(self) -> ed25519.Ed25519PrivateKey:
        """Get private key (never logged or audited)"""
        return self._private_key

    @property
    def public_key(self) -> ed25519.Ed25519PublicKey:
        return self._public_key

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def public_key_b64(self) -> str:
        return serialize_public_key(self._public_key)


def compute_key_id(public_key: ed25519.Ed25519PublicKey) -> str:
    """Compute stable key_id as hash of public key"""
    return stable_hash(serialize_public_key(public_key))


def serialize_public_key(public_key: ed25519.Ed25519PublicKey) -> str:
    """Serialize public key as base64 of its raw bytes"""
    public_bytes = public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw
    )
    return base64.b64encode(public_bytes).decode('utf-8')


def deserialize_public_key(public_key_b64: str) -> ed25519.Ed25519PublicKey:
    """Deserialize public key from base64 raw bytes"""
    return ed25519.Ed25519PublicKey.from_public_bytes(base64.b64decode(public_key_b64, validate=True))


def sign_binding(payload: dict, key_pair: AttestorKeyPair) -> InputProofV1:
    """
    Sign an input binding payload

    Args:
        payload: Binding payload (handles, submitter, engine_id, nonce, issued_at)
        key_pair: Attestor key pair

    Returns:
        Input proof carrying the signature
    """
    signature = key_pair.private_key.sign(canonical_bytes(payload))
    return InputProofV1(
        alg=ProofAlgorithm.ED25519,
        key_id=key_pair.key_id,
        sig_b64=base64.b64encode(signature).decode('utf-8'),
    )


def verify_input_signature(
    attested: AttestedInputV1,
    public_key: ed25519.Ed25519PublicKey
) -> Tuple[bool, Optional[str]]:
    """
    Verify the attestor signature over an attested input

    Args:
        attested: Attested input to verify
        public_key: Attestor public key

    Returns:
        Tuple of (is_valid, error_reason)
    """
    try:
        signature = base64.b64decode(attested.proof.sig_b64, validate=True)
        public_key.verify(signature, canonical_bytes(attested.binding_payload()))
        return True, None
    except InvalidSignature:
        return False, VerificationFailureReason.INVALID_SIGNATURE
    except (ValueError, TypeError) as e:
        logger.warning(f"Malformed input proof signature: {e}")
        return False, VerificationFailureReason.INVALID_SIGNATURE
