"""
Tests for the encrypted running sum
"""

import pytest

from blindscore.aggregation.aggregator import AggregateState, Aggregator
from blindscore.disclosure.controller import DisclosureLevel
from blindscore.errors import CapacityExceeded


@pytest.fixture
def aggregator(runtime, disclosure) -> Aggregator:
    return Aggregator(runtime, disclosure, cap=3)


class TestAggregator:
    """Test folding, capacity and the publication state machine"""

    def test_starts_at_encrypted_zero(self, aggregator, runtime, disclosure):
        assert aggregator.submission_count == 0
        assert aggregator.state is AggregateState.ACCUMULATING
        assert runtime.reveal(aggregator.sum_handle) == 0
        assert disclosure.level_of(aggregator.sum_handle) is DisclosureLevel.ENGINE_ONLY

    def test_ingest_adds_and_counts(self, aggregator, runtime):
        aggregator.ingest(runtime.trivial_encrypt(75))
        handle, count = aggregator.ingest(runtime.trivial_encrypt(50))
        assert count == 2
        assert handle == aggregator.sum_handle
        assert runtime.reveal(handle) == 125

    def test_ingest_releases_composite_and_replaced_sum(self, aggregator, runtime, disclosure):
        replaced = aggregator.sum_handle
        score = runtime.trivial_encrypt(75)
        aggregator.ingest(score)
        assert not runtime.contains(score.handle)
        assert not runtime.contains(replaced)
        assert disclosure.level_of(replaced) is DisclosureLevel.NONE
        assert len(disclosure) == 1

    def test_cap_rejects_without_change(self, aggregator, runtime):
        for _ in range(3):
            aggregator.ingest(runtime.trivial_encrypt(100))
        before = aggregator.current
        with pytest.raises(CapacityExceeded) as exc:
            aggregator.ingest(runtime.trivial_encrypt(100))
        assert exc.value.cap == 3
        assert aggregator.current == before

    def test_publish_grants_public_and_records_count(self, aggregator, runtime, disclosure):
        aggregator.ingest(runtime.trivial_encrypt(75))
        handle, count = aggregator.publish()
        assert disclosure.is_public(handle)
        assert count == 1
        assert aggregator.state is AggregateState.PUBLISHED
        assert aggregator.last_published_count == 1

    def test_ingest_after_publish_resumes_accumulating(self, aggregator, runtime, disclosure):
        aggregator.ingest(runtime.trivial_encrypt(75))
        published, _ = aggregator.publish()
        handle, count = aggregator.ingest(runtime.trivial_encrypt(25))
        assert aggregator.state is AggregateState.ACCUMULATING
        assert handle != published
        assert not disclosure.is_public(handle)
        assert runtime.reveal(handle) == 100

    def test_reset_keeps_previous_grants(self, aggregator, runtime, disclosure):
        aggregator.ingest(runtime.trivial_encrypt(75))
        published, _ = aggregator.publish()
        previous = aggregator.reset()
        assert previous.sum_score.handle == published
        assert aggregator.submission_count == 0
        assert aggregator.sum_handle != published
        assert disclosure.is_public(published)

    def test_invalid_cap(self, runtime, disclosure):
        with pytest.raises(ValueError):
            Aggregator(runtime, disclosure, cap=0)
