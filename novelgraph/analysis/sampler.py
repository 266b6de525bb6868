"""Representative text samples for character discovery."""

from typing import Optional

from novelgraph.analysis.config import default_config


def sample_windows(
    text: str,
    sample_count: Optional[int] = None,
    sample_size: Optional[int] = None,
) -> list[str]:
    """Draw start, evenly spaced interior, and end samples from a text.

    Args:
        text: Full document text.
        sample_count: Number of samples to return (at least 2).
        sample_size: Characters per sample.

    Returns:
        ``sample_count`` windows: the opening, ``sample_count - 2`` interior
        windows at offsets ``k * len(text) / sample_count``, and the ending.
    """
    count = sample_count if sample_count is not None else default_config.sample_count
    size = sample_size or default_config.sample_size

    if count < 2:
        raise ValueError("sample_count must be at least 2")

    samples = [text[:size]]

    for k in range(1, count - 1):
        start = (len(text) * k) // count
        samples.append(text[start : start + size])

    samples.append(text[max(0, len(text) - size) :])
    return samples
