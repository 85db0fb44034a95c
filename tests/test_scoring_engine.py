"""
Tests for homomorphic composite scoring
Tests score values and that the primitive sequence never depends on the data
"""

import pytest

from blindscore.errors import DisclosureDenied
from blindscore.policy.store import PolicyStore
from blindscore.scoring.engine import MAX_COMPOSITE_SCORE, ScoringEngine, Submission


@pytest.fixture
def store(runtime, disclosure) -> PolicyStore:
    return PolicyStore(runtime, disclosure)


@pytest.fixture
def scoring(runtime, disclosure) -> ScoringEngine:
    return ScoringEngine(runtime, disclosure)


def metrics(runtime, coverage, style, complexity, bugs) -> Submission:
    return Submission.from_values([runtime.register_input(v) for v in (coverage, style, complexity, bugs)])


class TestScoringEngine:
    """Test compare-then-select scoring"""

    @pytest.mark.parametrize("values,expected", [
        ((90, 60, 20, 2), 75),      # style below minimum
        ((80, 70, 30, 5), 100),     # boundaries are inclusive
        ((79, 69, 31, 6), 0),
        ((100, 100, 0, 0), 100),
        ((10, 90, 90, 1), 50),
        ((85, 10, 40, 9), 25),
    ])
    def test_composite_is_25_per_passed_check(self, runtime, store, scoring, values, expected):
        store.replace(store.encrypt_plain(80, 70, 30, 5))
        score = scoring.score(metrics(runtime, *values), store.current)
        assert runtime.decrypt_for_testing(score) == expected

    @pytest.mark.parametrize("values", [
        (0, 0, 100, 100),
        (100, 100, 0, 0),
        (0, 100, 0, 100),
        (42, 7, 99, 1),
        (73, 58, 12, 50),
    ])
    def test_default_policy_passes_everything_in_range(self, runtime, store, scoring, values):
        score = scoring.score(metrics(runtime, *values), store.current)
        assert runtime.decrypt_for_testing(score) == MAX_COMPOSITE_SCORE

    def test_metrics_above_100_fail_max_checks(self, runtime, store, scoring):
        score = scoring.score(metrics(runtime, 500, 500, 500, 500), store.current)
        assert runtime.decrypt_for_testing(score) == 50

    def test_trace_is_independent_of_outcome(self, runtime, store, scoring):
        store.replace(store.encrypt_plain(80, 70, 30, 5))

        mark = runtime.trace_mark()
        scoring.score(metrics(runtime, 100, 100, 0, 0), store.current)
        passing = runtime.trace_since(mark)

        mark = runtime.trace_mark()
        scoring.score(metrics(runtime, 0, 0, 100, 100), store.current)
        failing = runtime.trace_since(mark)

        assert passing == failing
        assert [e.op for e in passing] == (
            ["trivial_encrypt"] * 2 + ["ge", "ge", "le", "le"] + ["select"] * 4 + ["add"] * 3
        )

    def test_scoring_requires_engine_grant(self, runtime, disclosure, scoring):
        unguarded = PolicyStore(runtime, disclosure).encrypt_plain(1, 1, 1, 1)
        with pytest.raises(DisclosureDenied):
            scoring.score(metrics(runtime, 1, 1, 1, 1), unguarded)

    def test_submission_needs_four_metrics(self, runtime):
        with pytest.raises(ValueError):
            Submission.from_values([runtime.register_input(1)])

    def test_intermediates_released(self, runtime, store, scoring):
        submission = metrics(runtime, 90, 60, 20, 2)
        before = len(runtime)
        score = scoring.score(submission, store.current)
        assert len(runtime) == before + 1
        assert runtime.contains(score.handle)
