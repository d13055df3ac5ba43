"""
Evaluation utilities for the response cache.

This module replays labelled query pairs against a cache to measure how
well token-overlap matching separates paraphrases from unrelated prompts,
and to pick a similarity threshold.
"""

import logging
import time
from dataclasses import dataclass, field

import numpy as np

from response_cache.config import CacheConfig
from response_cache.services import CacheService

logger = logging.getLogger(__name__)

METRICS = ("f1_score", "precision", "recall", "hit_rate")


def _answer_for(cached_query: str) -> str:
    return f"Response for: {cached_query}"


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


@dataclass
class EvalResult:
    """Confusion counts and lookup latencies for one threshold.

    A lookup is positive when the cache served something. It is a true
    positive only if the pair expected a match and the served payload is
    the one stored for that pair.
    """

    threshold: float
    true_positives: int = 0
    false_positives: int = 0
    true_negatives: int = 0
    false_negatives: int = 0
    lookup_times_ms: list[float] = field(default_factory=list)

    def record(self, served: bool, correct: bool, elapsed_ms: float) -> None:
        """Count one lookup outcome."""
        self.lookup_times_ms.append(elapsed_ms)
        if served:
            if correct:
                self.true_positives += 1
            else:
                self.false_positives += 1
        elif correct:
            self.true_negatives += 1
        else:
            self.false_negatives += 1

    @property
    def total_queries(self) -> int:
        return (
            self.true_positives + self.false_positives + self.true_negatives + self.false_negatives
        )

    @property
    def cache_hits(self) -> int:
        return self.true_positives + self.false_positives

    @property
    def cache_misses(self) -> int:
        return self.true_negatives + self.false_negatives

    @property
    def hit_rate(self) -> float:
        return _ratio(self.cache_hits, self.total_queries)

    @property
    def precision(self) -> float:
        return _ratio(self.true_positives, self.cache_hits)

    @property
    def recall(self) -> float:
        return _ratio(self.true_positives, self.true_positives + self.false_negatives)

    @property
    def f1_score(self) -> float:
        """Harmonic mean of precision and recall."""
        total = self.precision + self.recall
        if total == 0:
            return 0.0
        return 2 * self.precision * self.recall / total

    @property
    def avg_lookup_time_ms(self) -> float:
        if not self.lookup_times_ms:
            return 0.0
        return float(np.mean(self.lookup_times_ms))

    @property
    def p95_lookup_time_ms(self) -> float:
        if not self.lookup_times_ms:
            return 0.0
        return float(np.percentile(self.lookup_times_ms, 95))

    def to_dict(self) -> dict[str, float]:
        data = {"threshold": self.threshold}
        data.update({metric: getattr(self, metric) for metric in METRICS})
        data.update(
            total_queries=self.total_queries,
            cache_hits=self.cache_hits,
            cache_misses=self.cache_misses,
            avg_lookup_time_ms=self.avg_lookup_time_ms,
            p95_lookup_time_ms=self.p95_lookup_time_ms,
        )
        return data


@dataclass
class QueryPair:
    """A pair of queries with their expected match relationship."""

    query: str
    cached_query: str
    should_match: bool  # True if the cached answer is acceptable for query


class ThresholdEvaluator:
    """Evaluator for semantic-match thresholds.

    Each evaluation runs against a fresh, memory-only CacheService so
    results never leak between thresholds or into durable storage.
    """

    def __init__(self, config: CacheConfig | None = None) -> None:
        """
        Initialize the evaluator.

        Args:
            config: Base options for the caches under test. Durable
                persistence is disabled and semantic matching enabled
                regardless of what is passed.
        """
        base = config or CacheConfig()
        self._config = CacheConfig(
            max_memory_items=base.max_memory_items,
            ttl=base.ttl,
            sweep_interval=base.sweep_interval,
            enable_durable_persistence=False,
            enable_semantic_matching=True,
            similarity_threshold=base.similarity_threshold,
        )
        self.results: list[EvalResult] = []

    def evaluate_threshold(
        self,
        threshold: float,
        test_queries: list[QueryPair],
    ) -> EvalResult:
        """Replay test_queries against a fresh cache at one threshold.

        Every cached_query is stored first (payload derived from its text),
        then every query is looked up with the threshold as a per-call
        override.
        """
        result = EvalResult(threshold=threshold)

        with CacheService(self._config) as cache:
            for pair in test_queries:
                cache.set(pair.cached_query, None, _answer_for(pair.cached_query))

            for pair in test_queries:
                started = time.perf_counter()
                hit = cache.get(pair.query, similarity_threshold=threshold)
                elapsed_ms = (time.perf_counter() - started) * 1000

                if hit is None:
                    result.record(served=False, correct=not pair.should_match, elapsed_ms=elapsed_ms)
                else:
                    correct = pair.should_match and hit.payload == _answer_for(pair.cached_query)
                    result.record(served=True, correct=correct, elapsed_ms=elapsed_ms)

        self.results.append(result)
        return result

    def sweep_thresholds(
        self,
        test_queries: list[QueryPair],
        min_threshold: float = 0.5,
        max_threshold: float = 1.0,
        steps: int = 6,
    ) -> list[EvalResult]:
        """Evaluate `steps` evenly spaced thresholds, replacing earlier results."""
        if not 0 <= min_threshold <= max_threshold <= 1:
            raise ValueError("Thresholds must satisfy 0 <= min_threshold <= max_threshold <= 1")

        self.results = []
        for threshold in np.linspace(min_threshold, max_threshold, steps):
            result = self.evaluate_threshold(float(threshold), test_queries)
            logger.info(
                "Threshold %.3f: hit rate %.2f%%, precision %.2f%%, F1 %.2f%%",
                result.threshold,
                result.hit_rate * 100,
                result.precision * 100,
                result.f1_score * 100,
            )
        return self.results

    def find_optimal_threshold(self, metric: str = "f1_score") -> tuple[float, EvalResult]:
        """Return the threshold that maximizes `metric` among the stored results.

        Ties go to the stricter (higher) threshold.

        Raises:
            ValueError: If metric is unknown or nothing has been evaluated yet.
        """
        if metric not in METRICS:
            raise ValueError(f"Unknown metric {metric!r}, expected one of {list(METRICS)}")
        if not self.results:
            raise ValueError("No evaluation results available. Run sweep_thresholds first.")

        best = max(self.results, key=lambda r: (getattr(r, metric), r.threshold))
        return best.threshold, best

    def format_summary(self) -> str:
        """Render the stored results as a plain-text table."""
        if not self.results:
            return "No evaluation results available."

        columns = ("threshold",) + METRICS + ("avg_lookup_time_ms",)
        header = " ".join(f"{name:>18}" for name in columns)
        rule = "-" * len(header)

        lines = ["Threshold Evaluation Summary", rule, header, rule]
        for result in self.results:
            row = result.to_dict()
            lines.append(" ".join(f"{row[name]:>18.4f}" for name in columns))
        lines.append(rule)

        for metric in METRICS:
            threshold, result = self.find_optimal_threshold(metric)
            lines.append(f"Best {metric}: {threshold:.3f} ({getattr(result, metric):.2%})")
        return "\n".join(lines)
