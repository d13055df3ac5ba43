#!/usr/bin/env python3
"""
Demo script for the response cache.

This script demonstrates exact and approximate-match lookups, the
statistics and health report, and threshold tuning with sample prompts.
It uses a throwaway cache directory, so no Redis instance is required.
"""

import tempfile
import time

from response_cache import CacheConfig, CacheService
from response_cache.config import configure_logging
from response_cache.evaluator import QueryPair, ThresholdEvaluator


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def demo_basic_cache(cache: CacheService) -> None:
    """Demonstrate basic cache operations."""
    print_section("Basic Cache Operations")

    qa_pairs = [
        (
            "Explain the quicksort algorithm",
            "Quicksort picks a pivot, partitions the list around it and sorts both halves recursively.",
        ),
        (
            "How does garbage collection work in Python?",
            "CPython frees objects by reference counting and runs a cyclic collector for reference cycles.",
        ),
        (
            "What are the benefits of response caching?",
            "Caching avoids paying for the same generation twice and answers repeated prompts instantly.",
        ),
    ]

    print("\n📝 Warming cache with sample Q&A pairs...")
    count = cache.warm((prompt, None, {"content": response}) for prompt, response in qa_pairs)
    print(f"  ✓ Stored {count} entries")

    print("\n🔍 Testing lookups:")
    test_queries = [
        "Explain the quicksort algorithm",
        "quicksort algorithm, explain it",
        "Python garbage collection: how does it work?",
        "What is machine learning?",
    ]

    for query in test_queries:
        start = time.time()
        result = cache.get(query)
        duration = (time.time() - start) * 1000
        print(f"\n  Query: {query}")
        if result is not None:
            print(f"  ✓ HIT ({result.served_by.value}) in {duration:.2f}ms")
            print(f"  Similarity: {result.similarity:.2%}")
            print(f"  Response: {result.payload['content'][:80]}...")
        else:
            print(f"  ✗ Cache miss in {duration:.2f}ms")


def demo_context(cache: CacheService) -> None:
    """Demonstrate that the context is part of an entry's identity."""
    print_section("Context-Scoped Entries")

    prompt = "Summarize the release notes"
    cache.set(prompt, "v1.0", {"content": "Initial release."})
    cache.set(prompt, "v2.0", {"content": "Adds durable storage."})

    for context in ("v1.0", "v2.0"):
        result = cache.get(prompt, context)
        print(f"\n  Context {context}: {result.payload['content'] if result else 'miss'}")

    removed = cache.invalidate(prompt, "v1.0")
    print(f"\n  Invalidated v1.0 entry: {removed}")


def demo_statistics(cache: CacheService) -> None:
    """Show statistics and the health report."""
    print_section("Statistics & Health")

    stats = cache.stats()
    print("\n📊 Statistics:")
    for name in ("memory_hits", "durable_hits", "semantic_hits", "misses", "writes", "hit_rate"):
        print(f"  {name:<15} {stats[name]}")

    report = cache.health()
    print(f"\n🩺 Healthy: {report.healthy}")
    print(f"  Memory: {report.memory_current}/{report.memory_max} ({report.memory_ratio:.1%})")
    for recommendation in report.recommendations:
        print(f"  ⚠ {recommendation.message}: {recommendation.suggestion}")


def demo_threshold_tuning() -> None:
    """Demonstrate threshold tuning."""
    print_section("Threshold Tuning")

    test_queries = [
        # Should match (same words, different order or punctuation)
        QueryPair("algorithm quicksort explain", "Explain the quicksort algorithm", should_match=True),
        QueryPair("python list comprehension examples", "examples of list comprehension in python", should_match=True),
        # Should not match (different meaning)
        QueryPair("Explain the mergesort algorithm", "Explain the heapsort algorithm", should_match=False),
        QueryPair("deploy python service", "python service logging", should_match=False),
    ]

    print(f"\n📋 Test query pairs: {len(test_queries)}")

    evaluator = ThresholdEvaluator()
    evaluator.sweep_thresholds(test_queries, min_threshold=0.4, max_threshold=1.0, steps=7)
    print(evaluator.format_summary())

    threshold, result = evaluator.find_optimal_threshold("f1_score")
    print(f"\n🎯 Best threshold by F1: {threshold:.2f} (F1 {result.f1_score:.2%})")


def main() -> None:
    """Run all demos."""
    configure_logging("WARNING")

    print("\n🚀 Response Cache Demo")
    print("=" * 70)

    with tempfile.TemporaryDirectory() as cache_dir:
        config = CacheConfig(cache_dir=cache_dir, similarity_threshold=0.75)
        with CacheService(config) as cache:
            demo_basic_cache(cache)
            demo_context(cache)
            demo_statistics(cache)

    demo_threshold_tuning()

    print("\n" + "=" * 70)
    print("✅ Demo completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()
