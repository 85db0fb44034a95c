"""
Tests for disclosure grants and the decryption relay
"""

import pytest

from blindscore.contracts.models_v1 import SumPublishedV1
from blindscore.disclosure.controller import DisclosureLevel
from blindscore.disclosure.relay import DecryptionRelay, average
from blindscore.errors import DisclosureDenied, DisclosureDowngrade

pytestmark = pytest.mark.boundary

HANDLE = "a" * 64
OTHER = "b" * 64


class TestDisclosureController:
    """Test the monotonic grant lattice"""

    def test_handles_default_to_none(self, disclosure):
        assert disclosure.level_of(HANDLE) is DisclosureLevel.NONE
        assert not disclosure.is_public(HANDLE)

    def test_grants_move_upward(self, disclosure):
        assert disclosure.grant(HANDLE, DisclosureLevel.ENGINE_ONLY) is DisclosureLevel.ENGINE_ONLY
        assert disclosure.grant(HANDLE, DisclosureLevel.PUBLIC) is DisclosureLevel.PUBLIC
        assert disclosure.is_public(HANDLE)

    def test_repeated_grant_is_idempotent(self, disclosure):
        disclosure.grant(HANDLE, DisclosureLevel.PUBLIC)
        assert disclosure.grant(HANDLE, DisclosureLevel.PUBLIC) is DisclosureLevel.PUBLIC

    def test_downgrade_rejected(self, disclosure):
        disclosure.grant(HANDLE, DisclosureLevel.PUBLIC)
        with pytest.raises(DisclosureDowngrade):
            disclosure.grant(HANDLE, DisclosureLevel.ENGINE_ONLY)
        assert disclosure.is_public(HANDLE)

    def test_none_is_not_grantable(self, disclosure):
        with pytest.raises(ValueError):
            disclosure.grant(HANDLE, DisclosureLevel.NONE)

    def test_grant_all_is_all_or_nothing(self, disclosure):
        disclosure.grant(OTHER, DisclosureLevel.PUBLIC)
        with pytest.raises(DisclosureDowngrade):
            disclosure.grant_all([HANDLE, OTHER], DisclosureLevel.ENGINE_ONLY)
        assert disclosure.level_of(HANDLE) is DisclosureLevel.NONE

    def test_ensure_all_leaves_higher_grants(self, disclosure):
        disclosure.grant(OTHER, DisclosureLevel.PUBLIC)
        disclosure.ensure_all([HANDLE, OTHER], DisclosureLevel.ENGINE_ONLY)
        assert disclosure.level_of(HANDLE) is DisclosureLevel.ENGINE_ONLY
        assert disclosure.level_of(OTHER) is DisclosureLevel.PUBLIC

    def test_require_engine_access(self, disclosure):
        with pytest.raises(DisclosureDenied):
            disclosure.require_engine_access(HANDLE)
        disclosure.grant(HANDLE, DisclosureLevel.ENGINE_ONLY)
        disclosure.require_engine_access(HANDLE)

    def test_forget_drops_private_grants(self, disclosure):
        disclosure.grant(HANDLE, DisclosureLevel.ENGINE_ONLY)
        disclosure.forget(HANDLE)
        assert len(disclosure) == 0
        assert disclosure.level_of(HANDLE) is DisclosureLevel.NONE

    def test_public_grants_cannot_be_forgotten(self, disclosure):
        disclosure.grant(HANDLE, DisclosureLevel.PUBLIC)
        with pytest.raises(DisclosureDowngrade):
            disclosure.forget(HANDLE)
        assert disclosure.is_public(HANDLE)

    def test_snapshot_uses_wire_names(self, disclosure):
        disclosure.grant(HANDLE, DisclosureLevel.ENGINE_ONLY)
        disclosure.grant(OTHER, DisclosureLevel.PUBLIC)
        assert disclosure.snapshot() == {HANDLE: "engine_only", OTHER: "public"}


class TestDecryptionRelay:
    """Test public decryption and the average step"""

    def test_public_handle_decrypts(self, runtime, disclosure):
        value = runtime.trivial_encrypt(150)
        disclosure.grant(value.handle, DisclosureLevel.PUBLIC)
        relay = DecryptionRelay(runtime, disclosure)
        assert relay.public_decrypt(value.handle) == 150

    def test_engine_only_handle_refused(self, runtime, disclosure):
        value = runtime.trivial_encrypt(150)
        disclosure.grant(value.handle, DisclosureLevel.ENGINE_ONLY)
        relay = DecryptionRelay(runtime, disclosure)
        with pytest.raises(DisclosureDenied):
            relay.public_decrypt(value.handle)

    def test_decrypt_publication_pairs_sum_with_its_count(self, runtime, disclosure, fixed_clock):
        value = runtime.trivial_encrypt(150)
        disclosure.grant(value.handle, DisclosureLevel.PUBLIC)
        event = SumPublishedV1(
            engine_id="engine-relay",
            sequence=1,
            emitted_at=fixed_clock.now(),
            sum_handle=value.handle,
            count_at_publication=2,
        )
        relay = DecryptionRelay(runtime, disclosure)
        assert relay.decrypt_publication(event) == (150, 2, 75.0)

    def test_average(self):
        assert average(150, 2) == 75.0
        assert average(0, 0) is None
        with pytest.raises(ValueError):
            average(10, -1)
