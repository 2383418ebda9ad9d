"""
Word frequency analysis.
Turns a lazy stream of normalized words into a frequency-ranked list,
stopping early when the shared cancellation token is triggered.
"""

import threading
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from config import ANALYSIS_CONFIG, OUTPUT_CONFIG


class WordCount(NamedTuple):
    """A word and how often it was seen."""

    text: str
    frequency: int


class CancellationToken:
    """Cooperative cancellation flag shared by the stages of one run."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


def aggregate_frequencies(
    tokens: Iterable[str],
    cancellation: Optional[CancellationToken] = None,
    exact_counts: bool = False,
) -> List[WordCount]:
    """
    Count words and rank them by frequency.

    The first occurrence of a word stores 0 and every repeat adds 1, so a
    word seen n times reports n - 1. Pass exact_counts=True to report n.

    Args:
        tokens: Lazy sequence of already filtered and normalized words
        cancellation: Checked once per consumed word
        exact_counts: Report raw occurrence counts

    Returns:
        WordCount list sorted by frequency descending (ties keep first-seen order)
    """
    if cancellation is not None and cancellation.is_cancelled:
        return []

    baseline = 1 if exact_counts else 0
    counts: Dict[str, int] = {}

    for word in tokens:
        if word in counts:
            counts[word] += 1
        else:
            counts[word] = baseline

        if cancellation is not None and cancellation.is_cancelled:
            break

    return rank_counts(counts)


def rank_counts(counts: Dict[str, int]) -> List[WordCount]:
    """Convert a word -> count mapping into the ranked WordCount list."""
    ranked = [WordCount(word, count) for word, count in counts.items()]
    ranked.sort(key=lambda w: w.frequency, reverse=True)
    return ranked


class WordFrequencyAggregator:
    """Frequency counting stage of a rendering run."""

    def __init__(
        self,
        cancellation: Optional[CancellationToken] = None,
        exact_counts: Optional[bool] = None,
    ):
        """
        Initialize the aggregator.

        Args:
            cancellation: Token shared with the rest of the run
            exact_counts: Override for ANALYSIS_CONFIG["exact_counts"]
        """
        self.cancellation = cancellation or CancellationToken()
        if exact_counts is None:
            exact_counts = ANALYSIS_CONFIG["exact_counts"]
        self.exact_counts = exact_counts

    def aggregate(self, tokens: Iterable[str]) -> List[WordCount]:
        words = aggregate_frequencies(tokens, self.cancellation, self.exact_counts)

        if OUTPUT_CONFIG["verbose"]:
            unique, total = self.summary(words)
            state = " (cancelled)" if self.cancellation.is_cancelled else ""
            print(f"Counted {unique} unique words, {total} in total{state}.")

        return words

    def summary(self, words: List[WordCount]) -> Tuple[int, int]:
        """Return (unique words, total occurrences) for a ranked list."""
        offset = 0 if self.exact_counts else 1
        return len(words), sum(w.frequency + offset for w in words)
