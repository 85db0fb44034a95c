"""
Test factories for attested inputs and submissions
"""

from typing import Optional, Sequence

from blindscore.attestation.crypto import AttestorKeyPair
from blindscore.attestation.toolkit import EncryptedInputBuilder
from blindscore.ciphertext.runtime import EncryptedValue
from blindscore.contracts.models_v1 import AttestedInputV1
from blindscore.engine import ConfidentialScoringEngine

OWNER = "0x" + "0a" * 20
ALICE = "0x" + "1b" * 20
BOB = "0x" + "2c" * 20


def make_attested_input(
    engine: ConfidentialScoringEngine,
    attestor: AttestorKeyPair,
    submitter: str,
    values: Sequence[int],
    nonce: Optional[str] = None,
    engine_id: Optional[str] = None,
) -> AttestedInputV1:
    """Encrypt values for the engine's runtime and sign the binding"""
    builder = EncryptedInputBuilder(
        runtime=engine.runtime,
        attestor=attestor,
        engine_id=engine_id or engine.engine_id,
        submitter=submitter,
        clock=engine.clock,
    )
    for value in values:
        builder.add16(value)
    return builder.encrypt(nonce=nonce)


def submit(engine: ConfidentialScoringEngine, attestor: AttestorKeyPair, submitter: str,
           coverage: int, style: int, complexity: int, bugs: int):
    """Encrypt and submit one set of metrics"""
    attested = make_attested_input(engine, attestor, submitter, [coverage, style, complexity, bugs])
    return engine.submit_metrics(submitter, attested)


def decrypt(engine: ConfidentialScoringEngine, handle: str) -> int:
    """Test-harness decryption of any handle"""
    return engine.runtime.decrypt_for_testing(EncryptedValue(handle=handle))
