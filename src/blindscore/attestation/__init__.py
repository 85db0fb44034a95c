"""
Attestation Module - Input proofs for externally supplied ciphertexts

Exports the verifier used by the engine and the reference client toolkit.
"""

from .crypto import (
    AttestorKeyPair,
    VerificationFailureReason,
    sign_binding,
    verify_input_signature,
    serialize_public_key,
    deserialize_public_key,
)
from .nonce_store import NonceStore
from .toolkit import EncryptedInputBuilder, encrypt_metrics, generate_nonce
from .verifier import AttestationVerifier, VerificationAuditEvent

__all__ = [
    'AttestorKeyPair',
    'VerificationFailureReason',
    'sign_binding',
    'verify_input_signature',
    'serialize_public_key',
    'deserialize_public_key',
    'NonceStore',
    'EncryptedInputBuilder',
    'encrypt_metrics',
    'generate_nonce',
    'AttestationVerifier',
    'VerificationAuditEvent',
]
