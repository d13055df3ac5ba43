"""
Tests for the threshold evaluator.
"""

import pytest

from response_cache.evaluator import EvalResult, QueryPair, ThresholdEvaluator

PAIRS = [
    QueryPair("algorithm explain quicksort", "explain the quicksort algorithm", True),
    QueryPair("python list comprehension examples", "examples of list comprehension in python", True),
    QueryPair("explain the bubblesort algorithm", "explain the mergesort algorithm", False),
]


def test_strict_threshold_has_perfect_precision():
    evaluator = ThresholdEvaluator()

    result = evaluator.evaluate_threshold(1.0, PAIRS)

    assert result.total_queries == 3
    assert result.true_positives == 2
    assert result.false_positives == 0
    assert result.true_negatives == 1
    assert result.precision == 1.0
    assert result.recall == 1.0


def test_loose_threshold_admits_false_positives():
    evaluator = ThresholdEvaluator()

    result = evaluator.evaluate_threshold(0.5, PAIRS)

    assert result.false_positives == 1
    assert result.hit_rate == 1.0


def test_sweep_and_find_optimal():
    evaluator = ThresholdEvaluator()

    results = evaluator.sweep_thresholds(PAIRS, min_threshold=0.5, max_threshold=1.0, steps=3)
    threshold, best = evaluator.find_optimal_threshold("f1_score")

    assert [r.threshold for r in results] == [0.5, 0.75, 1.0]
    assert threshold == 1.0
    assert best.f1_score == 1.0
    assert "Threshold Evaluation Summary" in evaluator.format_summary()


def test_find_optimal_requires_results():
    with pytest.raises(ValueError):
        ThresholdEvaluator().find_optimal_threshold()


def test_unknown_metric_rejected():
    evaluator = ThresholdEvaluator()
    evaluator.results = [EvalResult(threshold=0.5)]

    with pytest.raises(ValueError):
        evaluator.find_optimal_threshold("accuracy")


def test_empty_result_metrics():
    result = EvalResult(threshold=0.9)

    assert result.hit_rate == 0.0
    assert result.f1_score == 0.0
    assert result.avg_lookup_time_ms == 0.0
