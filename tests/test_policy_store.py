"""
Tests for the encrypted policy store
"""

import pytest

from blindscore.disclosure.controller import DisclosureLevel
from blindscore.errors import DisclosureDowngrade, OutOfRange
from blindscore.policy.store import DEFAULT_THRESHOLDS, PolicyStore, validate_thresholds


@pytest.fixture
def store(runtime, disclosure) -> PolicyStore:
    return PolicyStore(runtime, disclosure)


def plaintexts(runtime, policy):
    return tuple(runtime.decrypt_for_testing(v) for v in policy.values())


class TestPolicyStore:
    """Test policy installation and disclosure"""

    def test_defaults_are_permissive(self, store, runtime):
        assert plaintexts(runtime, store.current) == (0, 0, 100, 100)
        assert DEFAULT_THRESHOLDS == {"cov_min": 0, "style_min": 0, "compl_max": 100, "bugs_max": 100}

    def test_installed_thresholds_are_engine_only(self, store, disclosure):
        for handle in store.handles():
            assert disclosure.level_of(handle) is DisclosureLevel.ENGINE_ONLY

    def test_replace_swaps_whole_policy(self, store, runtime):
        original = store.current
        new_policy = store.encrypt_plain(80, 70, 30, 5)
        previous = store.replace(new_policy)
        assert previous is original
        assert plaintexts(runtime, store.current) == (80, 70, 30, 5)

    @pytest.mark.parametrize("thresholds", [
        (101, 70, 30, 5),
        (80, -1, 30, 5),
        (80, 70, 30, True),
        (80, 70, "30", 5),
    ])
    def test_out_of_range_rejected_before_encryption(self, store, runtime, thresholds):
        before = store.handles()
        mark = runtime.trace_mark()
        with pytest.raises(OutOfRange):
            store.encrypt_plain(*thresholds)
        assert store.handles() == before
        assert runtime.trace_since(mark) == []

    def test_validate_reports_field(self):
        with pytest.raises(OutOfRange) as exc:
            validate_thresholds(cov_min=10, bugs_max=500)
        assert exc.value.field_name == "bugs_max"

    def test_make_public(self, store, disclosure):
        handles = store.make_public()
        assert all(disclosure.is_public(h) for h in handles)

    def test_public_thresholds_stay_public_when_reinstalled(self, store, disclosure):
        handles = store.make_public()
        store.replace(store.current)
        assert all(disclosure.is_public(h) for h in handles)

    def test_make_public_does_not_cover_later_policies(self, store, disclosure):
        store.make_public()
        store.replace(store.encrypt_plain(50, 50, 50, 50))
        for handle in store.handles():
            assert disclosure.level_of(handle) is DisclosureLevel.ENGINE_ONLY

    def test_public_threshold_cannot_be_downgraded(self, store, disclosure):
        handles = store.make_public()
        with pytest.raises(DisclosureDowngrade):
            disclosure.grant(handles[0], DisclosureLevel.ENGINE_ONLY)

    def test_replaced_private_thresholds_released(self, store, runtime, disclosure):
        old = store.handles()
        store.replace(store.encrypt_plain(80, 70, 30, 5))
        assert not any(runtime.contains(h) for h in old)
        assert all(disclosure.level_of(h) is DisclosureLevel.NONE for h in old)

    def test_replaced_public_thresholds_kept(self, store, runtime):
        old = store.make_public()
        store.replace(store.encrypt_plain(80, 70, 30, 5))
        assert [runtime.reveal(h) for h in old] == [0, 0, 100, 100]
