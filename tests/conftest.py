"""
Pytest configuration and shared fixtures for BlindScore
Marks confidentiality-sensitive modules and provides fresh engines per test
"""

import os
from datetime import datetime, timezone

import pytest

from blindscore.attestation.crypto import AttestorKeyPair
from blindscore.ciphertext.runtime import CiphertextRuntime
from blindscore.clock import FixedClock
from blindscore.config import ENV_PREFIX, EngineConfig
from blindscore.disclosure.controller import DisclosureController
from blindscore.engine import ConfidentialScoringEngine

from factories import OWNER

# Modules whose tests must not share mutable fixtures
SENSITIVE_MODULES = {
    'test_attestation_verifier',
    'test_disclosure_controller',
    'test_scoring_engine',
    'test_engine_operations',
}


def pytest_collection_modifyitems(config, items):
    """Mark sensitive tests automatically based on module name"""
    for item in items:
        module_name = item.module.__name__
        if any(sensitive in module_name for sensitive in SENSITIVE_MODULES):
            item.add_marker(pytest.mark.sensitive)


@pytest.fixture(autouse=True)
def isolate_engine_environment(monkeypatch):
    """Keep BLINDSCORE_* variables from leaking into configs built by tests"""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def fixed_clock() -> FixedClock:
    """Fixed clock starting at 2024-01-01 00:00:00 UTC"""
    return FixedClock(datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def attestor() -> AttestorKeyPair:
    """Trusted attestor key pair"""
    return AttestorKeyPair()


@pytest.fixture
def runtime() -> CiphertextRuntime:
    """Runtime with test-harness decryption enabled"""
    return CiphertextRuntime(debug_decrypt=True)


@pytest.fixture
def disclosure() -> DisclosureController:
    return DisclosureController()


@pytest.fixture
def debug_config() -> EngineConfig:
    return EngineConfig(debug_decrypt=True)


@pytest.fixture
def engine(debug_config, attestor, fixed_clock) -> ConfidentialScoringEngine:
    """Fresh engine owned by OWNER, trusting the test attestor"""
    return ConfidentialScoringEngine(
        owner=OWNER,
        config=debug_config,
        attestors=[attestor],
        clock=fixed_clock,
        engine_id="engine-test-01",
    )
