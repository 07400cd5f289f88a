from typing import List

from booksum.config import DEFAULT_LOOKBACK, DEFAULT_MAX_CHUNK_SIZE
from booksum.models import Segment

SENTENCE_TERMINATOR = "."


def find_cut_point(text: str, start: int, max_chunk_size: int, lookback: int = DEFAULT_LOOKBACK) -> int:
    """
    Picks the end offset (exclusive) of the segment that begins at `start`.

    The naive boundary is `start + max_chunk_size`. When it falls inside the text, the first
    terminator found scanning forward from `boundary - lookback` and lying before
    `boundary + lookback` moves the cut to just after that terminator. The scan never starts
    before `start`, so the segment is never empty.

    Args:
        text: Full document text.
        start: Offset where the segment begins.
        max_chunk_size: Naive segment length.
        lookback: Width of the terminator window on either side of the naive boundary.

    Returns:
        int: Offset of the cut, always greater than `start`.
    """
    boundary = start + max_chunk_size
    if boundary >= len(text):
        return len(text)

    window_start = max(start, boundary - lookback)
    period = text.find(SENTENCE_TERMINATOR, window_start, boundary + lookback)
    if period != -1:
        return period + 1
    return boundary


def split_text(
    text: str, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE, lookback: int = DEFAULT_LOOKBACK
) -> List[Segment]:
    """
    Splits text into ordered, contiguous segments that prefer sentence boundaries.

    Concatenating the returned segments in order reproduces `text` exactly.
    Empty text yields an empty list.

    Args:
        text: The input text to split.
        max_chunk_size: Targeted size of each segment in characters.
        lookback: Terminator search window around each naive boundary.

    Returns:
        List[Segment]: Segments with contiguous indices 0..n-1.
    """
    if max_chunk_size <= 0:
        raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
    if not text:
        return []

    spans = []
    cursor = 0
    while cursor < len(text):
        cut = find_cut_point(text, cursor, max_chunk_size, lookback)
        spans.append((cursor, cut))
        cursor = cut

    total = len(spans)
    return [
        Segment(text=text[start:end], index=i, total_segments=total, start_char=start)
        for i, (start, end) in enumerate(spans)
    ]
