"""
Two-stage summarization: every segment is summarized on its own (map), then the ordered
segment summaries are combined in one final call (reduce).

Key Design Decisions:
- Process segments SEQUENTIALLY, one request in flight at a time, to respect the
  downstream rate limit
- Pace successive requests with a fixed delay, independent of retry backoff
- Retry only throttled calls, with a linearly growing wait; everything else aborts the run
- Never fall back to a made-up summary: failures propagate to the caller
"""

import logging
import time
from collections import deque
from typing import Callable, Iterable, List, Optional, TypeVar

from booksum.config import PipelineConfig
from booksum.exceptions import FatalError, PipelineError, ThrottledError
from booksum.llm_adapter import LLMAdapter
from booksum.models import RetryState, Segment, SegmentSummary
from booksum.prompts import REDUCE_PROMPT, SEGMENT_PROMPT, build_reduce_prompt, build_segment_prompt

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], None]


def backoff_delay(attempt_number: int, base_delay: float = 5.0) -> float:
    """
    Wait before retry number `attempt_number` (1 for the first retry): 5s, 10s, 15s, ...
    """
    if attempt_number < 1:
        raise ValueError(f"attempt_number starts at 1, got {attempt_number}")
    return base_delay * attempt_number


def call_with_retry(
    fn: Callable[[], T],
    sleep: Sleeper = time.sleep,
    max_retries: int = 3,
    base_delay: float = 5.0,
    stage: Optional[str] = None,
    segment_index: Optional[int] = None,
) -> T:
    """
    Runs `fn` until it succeeds, retrying only on ThrottledError.

    Args:
        fn: Zero-argument callable performing one inference request.
        sleep: Blocking wait function, in seconds.
        max_retries: Retries allowed after the first attempt.
        base_delay: Backoff unit, see `backoff_delay`.
        stage: Stage name attached to any raised error.
        segment_index: Segment index attached to any raised error.

    Returns:
        Whatever `fn` returns.

    Raises:
        ThrottledError: The last throttling error once retries are exhausted.
        PipelineError: Any non-throttling pipeline error, unchanged apart from its context.
        FatalError: Wrapping any other exception raised by `fn`.
    """
    state = RetryState()
    while True:
        state.attempt_count += 1
        try:
            return fn()
        except ThrottledError as e:
            state.last_error = e.kind
            if state.attempt_count > max_retries:
                raise _with_context(e, stage, segment_index, state)
            delay = backoff_delay(state.attempt_count, base_delay)
            logger.warning(
                "Rate limit hit (%s), retry %d/%d in %.1fs",
                _label(stage, segment_index),
                state.attempt_count,
                max_retries,
                delay,
            )
            sleep(delay)
        except PipelineError as e:
            state.last_error = e.kind
            raise _with_context(e, stage, segment_index, state)
        except Exception as e:
            state.last_error = FatalError.kind
            error = FatalError(f"{type(e).__name__}: {e}")
            raise _with_context(error, stage, segment_index, state) from e


def _with_context(
    error: PipelineError, stage: Optional[str], segment_index: Optional[int], state: RetryState
) -> PipelineError:
    if error.stage is None:
        error.stage = stage
    if error.segment_index is None:
        error.segment_index = segment_index
    error.attempts = state.attempt_count
    return error


def _label(stage: Optional[str], segment_index: Optional[int]) -> str:
    if segment_index is None:
        return stage or "call"
    return f"{stage} segment {segment_index + 1}"


class RetryingSummarizer:
    """Summarizes one segment with throttling-aware retries."""

    def __init__(
        self,
        llm: LLMAdapter,
        config: Optional[PipelineConfig] = None,
        template: str = SEGMENT_PROMPT,
        sleep: Sleeper = time.sleep,
    ):
        self.llm = llm
        self.config = config or PipelineConfig()
        self.template = template
        self.sleep = sleep

    def generate(self, prompt: str, stage: str, segment_index: Optional[int] = None) -> str:
        cfg = self.config
        return call_with_retry(
            lambda: self.llm.generate(
                prompt, max_tokens=cfg.max_tokens, temperature=cfg.temperature, top_p=cfg.top_p, top_k=cfg.top_k
            ),
            sleep=self.sleep,
            max_retries=cfg.max_retries,
            base_delay=cfg.retry_base_delay,
            stage=stage,
            segment_index=segment_index,
        )

    def summarize(self, segment: Segment) -> SegmentSummary:
        prompt = build_segment_prompt(segment, self.template)
        text = self.generate(prompt, stage="map", segment_index=segment.index)
        return SegmentSummary(index=segment.index, text=text)


class SequentialOrchestrator:
    """
    Feeds segments through a RetryingSummarizer strictly in index order.

    A single worker drains an ordered queue of segments; the first failure aborts the run
    and leaves the remaining segments untouched.
    """

    def __init__(self, summarizer: RetryingSummarizer, pacing_delay: float = 3.0, sleep: Sleeper = time.sleep):
        self.summarizer = summarizer
        self.pacing_delay = pacing_delay
        self.sleep = sleep

    def process_all(self, segments: Iterable[Segment]) -> List[SegmentSummary]:
        pending = deque(sorted(segments, key=lambda s: s.index))
        summaries: List[SegmentSummary] = []

        while pending:
            segment = pending.popleft()
            logger.info("Processing segment %d/%d", segment.position, segment.total_segments)
            summaries.append(self.summarizer.summarize(segment))

            if pending:
                logger.info("Waiting %.1fs before processing next segment", self.pacing_delay)
                self.sleep(self.pacing_delay)

        return summaries


class Reducer:
    """Combines ordered segment summaries into the final summary with one inference call."""

    def __init__(self, summarizer: RetryingSummarizer, template: str = REDUCE_PROMPT):
        self.summarizer = summarizer
        self.template = template

    def reduce(self, summaries: List[SegmentSummary]) -> str:
        if not summaries:
            raise FatalError("Nothing to reduce: no segment summaries", stage="reduce")
        prompt = build_reduce_prompt(summaries, self.template)
        logger.info("Generating final summary from %d segment summaries", len(summaries))
        return self.summarizer.generate(prompt, stage="reduce")
