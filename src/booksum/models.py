from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Document:
    key: str
    text: str

    @property
    def length(self) -> int:
        return len(self.text)


@dataclass(frozen=True)
class Segment:
    """A contiguous slice of a document. `index` is zero-based."""

    text: str
    index: int
    total_segments: int
    start_char: int = 0

    @property
    def end_char(self) -> int:
        return self.start_char + len(self.text)

    @property
    def position(self) -> int:
        return self.index + 1


@dataclass(frozen=True)
class SegmentSummary:
    index: int
    text: str


@dataclass
class RetryState:
    """Bookkeeping for one inference call; lives only as long as that call."""

    attempt_count: int = 0
    last_error: Optional[str] = None


@dataclass(frozen=True)
class PipelineResult:
    final_summary: str
    detailed_summary: str
    segment_summaries: List[SegmentSummary]
