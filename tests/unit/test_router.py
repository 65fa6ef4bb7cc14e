"""Tests for backend selection strategies."""

import random
from collections import Counter

import pytest

from llm_backend.orchestrator.router import BackendRouter
from llm_backend.orchestrator.statistics import StatisticsRegistry
from llm_backend.schemas.llm import SelectionStrategy


def names(backends):
    return [b.name for b in backends]


@pytest.fixture
def three_backends(scripted_backend):
    return [
        scripted_backend("A", priority=2),
        scripted_backend("B", priority=1),
        scripted_backend("C", priority=3),
    ]


class TestFailover:
    def test_orders_by_priority(self, three_backends):
        router = BackendRouter(three_backends, StatisticsRegistry())
        assert names(router.select()) == ["B", "A", "C"]

    def test_ties_broken_by_name(self, scripted_backend):
        backends = [scripted_backend("zeta", priority=1), scripted_backend("Alpha", priority=1)]
        router = BackendRouter(backends, StatisticsRegistry())
        assert names(router.select()) == ["Alpha", "zeta"]

    def test_disabled_excluded(self, scripted_backend):
        backends = [scripted_backend("A", priority=1, enabled=False), scripted_backend("B", priority=2)]
        router = BackendRouter(backends, StatisticsRegistry())
        assert names(router.select()) == ["B"]

    def test_no_enabled_backends(self, scripted_backend):
        router = BackendRouter([scripted_backend("A", enabled=False)], StatisticsRegistry())
        assert router.select() == []


class TestRoundRobin:
    def test_first_candidate_cycles_with_period_three(self, three_backends):
        router = BackendRouter(three_backends, StatisticsRegistry(), SelectionStrategy.ROUND_ROBIN)
        firsts = [router.select()[0].name for _ in range(6)]
        assert firsts == ["A", "B", "C", "A", "B", "C"]

    def test_rotation_keeps_all_candidates(self, three_backends):
        router = BackendRouter(three_backends, StatisticsRegistry(), SelectionStrategy.ROUND_ROBIN)
        router.select()
        assert names(router.select()) == ["B", "C", "A"]

    def test_override_does_not_advance_index(self, three_backends):
        router = BackendRouter(three_backends, StatisticsRegistry(), SelectionStrategy.ROUND_ROBIN)
        router.select()
        router.select(preferred_backend="C")
        assert router.select()[0].name == "B"


class TestLowestLatency:
    def test_fastest_first(self, scripted_backend):
        stats = StatisticsRegistry()
        stats.record_success("A", 50)
        stats.record_success("B", 200)
        backends = [scripted_backend("B"), scripted_backend("A")]
        router = BackendRouter(backends, stats, SelectionStrategy.LOWEST_LATENCY)
        assert names(router.select()) == ["A", "B"]

    def test_unmeasured_backends_sort_last(self, scripted_backend):
        stats = StatisticsRegistry()
        stats.record_success("B", 900)
        backends = [scripted_backend("A"), scripted_backend("B")]
        router = BackendRouter(backends, stats, SelectionStrategy.LOWEST_LATENCY)
        assert names(router.select()) == ["B", "A"]


class TestRandom:
    def test_every_enabled_backend_present(self, three_backends):
        router = BackendRouter(three_backends, StatisticsRegistry(), SelectionStrategy.RANDOM, rng=random.Random(7))
        for _ in range(20):
            assert sorted(names(router.select())) == ["A", "B", "C"]

    def test_roughly_uniform_first_choice(self, three_backends):
        router = BackendRouter(three_backends, StatisticsRegistry(), SelectionStrategy.RANDOM, rng=random.Random(42))
        counts = Counter(router.select()[0].name for _ in range(3000))
        assert set(counts) == {"A", "B", "C"}
        assert all(800 < c < 1200 for c in counts.values())


class TestNamedSelection:
    def test_override_is_case_insensitive(self, three_backends):
        router = BackendRouter(three_backends, StatisticsRegistry())
        assert names(router.select(preferred_backend="c")) == ["C"]

    def test_override_unknown(self, three_backends):
        router = BackendRouter(three_backends, StatisticsRegistry())
        assert router.select(preferred_backend="missing") == []

    def test_override_disabled(self, scripted_backend):
        router = BackendRouter([scripted_backend("A", enabled=False)], StatisticsRegistry())
        assert router.select(preferred_backend="A") == []

    def test_specific_strategy(self, three_backends):
        router = BackendRouter(
            three_backends, StatisticsRegistry(), SelectionStrategy.SPECIFIC, specific_backend="A"
        )
        assert names(router.select()) == ["A"]

    def test_specific_strategy_without_name(self, three_backends):
        router = BackendRouter(three_backends, StatisticsRegistry(), SelectionStrategy.SPECIFIC)
        assert router.select() == []

    def test_find(self, three_backends):
        router = BackendRouter(three_backends, StatisticsRegistry())
        assert router.find("b").name == "B"
        assert router.find("nope") is None
