"""Token-overlap matching over cached prompts.

An inverted index maps signature tokens to the fingerprints of prompts
containing them. Postings for evicted or expired fingerprints are not
pruned; candidates are re-validated against the tiers at read time.
"""

import logging
import threading
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from response_cache.entities import CacheEntry
from response_cache.tokens import signature

logger = logging.getLogger(__name__)

EntryLookup = Callable[[str], CacheEntry | None]


@dataclass(frozen=True)
class SemanticMatch:
    """Best approximate match for a prompt."""

    entry: CacheEntry
    similarity: float


class SemanticMatcher:
    """Inverted index from lexical tokens to fingerprints.

    Posting lists are only read under the index lock and copied out
    before any tier is consulted, so concurrent indexing never disturbs
    an in-flight search.
    """

    def __init__(self) -> None:
        self._postings: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def index(self, prompt: str, key: str) -> None:
        """Add `key` to the posting list of every token in the prompt's signature."""
        tokens = signature(prompt)
        with self._lock:
            for token in tokens:
                self._postings.setdefault(token, set()).add(key)

    def rebuild(self, entries: Iterable[tuple[str, str]]) -> None:
        """Replace the whole index from (prompt, key) pairs."""
        postings: dict[str, set[str]] = {}
        for prompt, key in entries:
            for token in signature(prompt):
                postings.setdefault(token, set()).add(key)
        with self._lock:
            self._postings = postings

    def clear(self) -> None:
        with self._lock:
            self._postings = {}

    def _overlap_counts(self, tokens: list[str]) -> Counter[str]:
        counts: Counter[str] = Counter()
        with self._lock:
            for token in tokens:
                counts.update(self._postings.get(token, ()))
        return counts

    def find_best_match(
        self,
        prompt: str,
        tiers: Sequence[EntryLookup],
        threshold: float,
        is_expired: Callable[[CacheEntry], bool],
    ) -> SemanticMatch | None:
        """Find the cached entry whose prompt best overlaps `prompt`.

        Similarity is the number of shared signature tokens divided by the
        size of the query's signature. Candidates below `threshold`, absent
        from every tier, or expired are skipped. Among equally similar
        candidates, the most recently accessed entry wins.

        Args:
            prompt: The query prompt
            tiers: Lookups consulted in order for each candidate key
            threshold: Minimum similarity in [0, 1]
            is_expired: Predicate rejecting expired entries

        Returns:
            The winning entry and its similarity, or None
        """
        tokens = signature(prompt)
        if not tokens:
            return None

        counts = self._overlap_counts(tokens)
        qualifying = [
            (count / len(tokens), key)
            for key, count in counts.items()
            if count / len(tokens) >= threshold
        ]
        # Highest similarity first; only candidates tied with the best
        # live one need to be fetched.
        qualifying.sort(reverse=True)

        best: SemanticMatch | None = None
        for similarity, key in qualifying:
            if best is not None and similarity < best.similarity:
                break
            entry = self._fetch(key, tiers)
            if entry is None or is_expired(entry):
                continue
            if best is None or entry.accessed_at > best.entry.accessed_at:
                best = SemanticMatch(entry=entry, similarity=similarity)
        return best

    @staticmethod
    def _fetch(key: str, tiers: Sequence[EntryLookup]) -> CacheEntry | None:
        for lookup in tiers:
            entry = lookup(key)
            if entry is not None:
                return entry
        return None

    @property
    def token_count(self) -> int:
        """Number of distinct tokens in the index."""
        with self._lock:
            return len(self._postings)

    @property
    def posting_count(self) -> int:
        """Total number of (token, key) postings, including stale ones."""
        with self._lock:
            return sum(len(keys) for keys in self._postings.values())
