"""Split long text into overlapping, sentence-aware windows."""

from collections.abc import Iterator
from typing import Optional

from novelgraph.analysis.config import AnalysisConfig, default_config


class TextSegmenter:
    """Segment a document into windows for the extraction oracle.

    Each window aims for ``window_size`` characters and is snapped back to the
    nearest sentence end or paragraph break when one lies in the last part of
    the window. Consecutive windows share ``overlap_size`` characters so that
    relationships crossing a boundary are seen by at least one window.
    """

    def __init__(
        self,
        window_size: Optional[int] = None,
        overlap_size: Optional[int] = None,
        break_ratio: Optional[float] = None,
    ):
        """Initialize the segmenter.

        Args:
            window_size: Target window length in characters.
            overlap_size: Characters shared between consecutive windows.
            break_ratio: Earliest snap position as a fraction of the window.
        """
        self.window_size = window_size or default_config.window_size
        self.overlap_size = (
            overlap_size if overlap_size is not None else default_config.overlap_size
        )
        self.break_ratio = (
            break_ratio if break_ratio is not None else default_config.break_ratio
        )

        if not 0 <= self.overlap_size < self.window_size:
            raise ValueError("overlap_size must be in [0, window_size)")

    @classmethod
    def from_config(cls, config: AnalysisConfig) -> "TextSegmenter":
        return cls(config.window_size, config.overlap_size, config.break_ratio)

    def iter_spans(self, text: str) -> Iterator[tuple[int, int]]:
        """Yield ``(start, end)`` offsets of each window in order."""
        length = len(text)
        start = 0

        while start < length:
            end = start + self.window_size

            if end < length:
                end = self._snap_to_break(text, start, end)

            yield start, min(end, length)

            if end >= length:
                break
            start = end - self.overlap_size

    def iter_windows(self, text: str) -> Iterator[str]:
        """Yield window texts in order."""
        for start, end in self.iter_spans(text):
            yield text[start:end]

    def split(self, text: str) -> list[str]:
        """Split text into a list of windows."""
        return list(self.iter_windows(text))

    def _snap_to_break(self, text: str, start: int, end: int) -> int:
        """Move a window end back to just after a sentence or paragraph break.

        Returns the original end when no break lies late enough in the window.
        """
        last_sentence = text.rfind(".", start, end + 1)
        last_paragraph = text.rfind("\n\n", start, end + 2)
        break_point = max(last_sentence, last_paragraph)

        earliest = start + self.window_size * self.break_ratio
        snapped = break_point + 1

        # The snapped window must still advance past the overlap
        if break_point >= earliest and snapped - self.overlap_size > start:
            return snapped
        return end


def split_into_windows(text: str, config: Optional[AnalysisConfig] = None) -> list[str]:
    """Split text using the given (or default) analysis configuration."""
    return TextSegmenter.from_config(config or default_config).split(text)
