import time

import pytest

from booksum.config import PipelineConfig
from booksum.exceptions import FatalError, ThrottledError
from booksum.llm_adapter import LLMAdapter
from booksum.models import Segment, SegmentSummary
from booksum.prompts import REDUCE_DELIMITER
from booksum.summarize import (
    Reducer,
    RetryingSummarizer,
    SequentialOrchestrator,
    backoff_delay,
    call_with_retry,
)


class ScriptedLLM(LLMAdapter):
    """Replays a script of responses; exception instances are raised instead of returned."""

    def __init__(self, script):
        self.script = list(script)
        self.prompts = []
        self.params = []

    def generate(self, prompt, max_tokens, temperature=0.0, top_p=1.0, top_k=0):
        self.prompts.append(prompt)
        self.params.append((max_tokens, temperature, top_p, top_k))
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item


class SegmentEchoLLM(LLMAdapter):
    """Answers with the marker found in the segment text, after a per-marker delay."""

    def __init__(self, delays=None, failing=None):
        self.delays = delays or {}
        self.failing = failing
        self.seen = []

    def generate(self, prompt, max_tokens, temperature=0.0, top_p=1.0, top_k=0):
        marker = next(m for m in ("AAA", "BBB", "CCC") if m in prompt)
        self.seen.append(marker)
        if marker == self.failing:
            raise ThrottledError("Too many requests")
        time.sleep(self.delays.get(marker, 0))
        return f"summary of {marker}"


class RecordingSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


def _segments(*texts):
    return [Segment(text=t, index=i, total_segments=len(texts)) for i, t in enumerate(texts)]


def test_backoff_schedule():
    assert [backoff_delay(n) for n in (1, 2, 3)] == [5.0, 10.0, 15.0]
    assert backoff_delay(2, base_delay=0.5) == 1.0
    with pytest.raises(ValueError):
        backoff_delay(0)


def test_retry_exhaustion():
    llm = ScriptedLLM([ThrottledError("Too many requests")])
    sleep = RecordingSleep()
    summarizer = RetryingSummarizer(llm, sleep=sleep)

    with pytest.raises(ThrottledError) as exc_info:
        summarizer.summarize(_segments("some text")[0])

    assert len(llm.prompts) == 4
    assert sleep.calls == [5.0, 10.0, 15.0]
    assert exc_info.value.attempts == 4
    assert exc_info.value.stage == "map"
    assert exc_info.value.segment_index == 0


def test_fatal_short_circuit():
    llm = ScriptedLLM([FatalError("HTTP 400")])
    sleep = RecordingSleep()
    summarizer = RetryingSummarizer(llm, sleep=sleep)

    with pytest.raises(FatalError) as exc_info:
        summarizer.summarize(_segments("some text")[0])

    assert len(llm.prompts) == 1
    assert sleep.calls == []
    assert exc_info.value.attempts == 1


def test_recovers_after_throttling():
    llm = ScriptedLLM([ThrottledError("overloaded"), ThrottledError("overloaded"), "done"])
    sleep = RecordingSleep()

    result = RetryingSummarizer(llm, sleep=sleep).summarize(_segments("a", "b")[1])

    assert result == SegmentSummary(index=1, text="done")
    assert sleep.calls == [5.0, 10.0]


def test_unexpected_exception_becomes_fatal():
    cause = KeyError("content")

    def boom():
        raise cause

    with pytest.raises(FatalError) as exc_info:
        call_with_retry(boom, sleep=RecordingSleep(), stage="reduce")

    assert exc_info.value.__cause__ is cause
    assert exc_info.value.stage == "reduce"


def test_segment_prompt_and_sampling():
    llm = ScriptedLLM(["ok"])
    summarizer = RetryingSummarizer(llm, sleep=RecordingSleep())

    summarizer.summarize(_segments("first", "SECOND PART TEXT", "third")[1])

    assert "part 2 of 3" in llm.prompts[0]
    assert "SECOND PART TEXT" in llm.prompts[0]
    assert llm.params[0] == (4000, 0.7, 0.9, 250)


def test_orchestrator_preserves_order():
    llm = SegmentEchoLLM(delays={"AAA": 0.03, "BBB": 0.0, "CCC": 0.01})
    sleep = RecordingSleep()
    orchestrator = SequentialOrchestrator(RetryingSummarizer(llm, sleep=sleep), pacing_delay=3.0, sleep=sleep)

    segments = _segments("AAA", "BBB", "CCC")
    summaries = orchestrator.process_all(reversed(segments))

    assert [s.text for s in summaries] == ["summary of AAA", "summary of BBB", "summary of CCC"]
    assert [s.index for s in summaries] == [0, 1, 2]
    assert llm.seen == ["AAA", "BBB", "CCC"]
    assert sleep.calls == [3.0, 3.0]


def test_orchestrator_aborts_on_failure():
    llm = SegmentEchoLLM(failing="BBB")
    sleep = RecordingSleep()
    orchestrator = SequentialOrchestrator(RetryingSummarizer(llm, sleep=sleep), sleep=sleep)

    with pytest.raises(ThrottledError) as exc_info:
        orchestrator.process_all(_segments("AAA", "BBB", "CCC"))

    assert "CCC" not in llm.seen
    assert llm.seen.count("BBB") == 4
    assert exc_info.value.segment_index == 1
    assert sleep.calls == [3.0, 5.0, 10.0, 15.0]


def test_orchestrator_empty():
    orchestrator = SequentialOrchestrator(RetryingSummarizer(ScriptedLLM(["x"])), sleep=RecordingSleep())
    assert orchestrator.process_all([]) == []


def test_reducer_joins_in_index_order():
    llm = ScriptedLLM(["final"])
    reducer = Reducer(RetryingSummarizer(llm, sleep=RecordingSleep()))

    result = reducer.reduce([SegmentSummary(1, "second"), SegmentSummary(0, "first")])

    assert result == "final"
    assert len(llm.prompts) == 1
    assert "first" + REDUCE_DELIMITER + "second" in llm.prompts[0]


def test_reducer_retries_with_same_schedule():
    llm = ScriptedLLM([ThrottledError("Too many requests")])
    sleep = RecordingSleep()
    reducer = Reducer(RetryingSummarizer(llm, sleep=sleep))

    with pytest.raises(ThrottledError) as exc_info:
        reducer.reduce([SegmentSummary(0, "only")])

    assert sleep.calls == [5.0, 10.0, 15.0]
    assert exc_info.value.stage == "reduce"
    assert exc_info.value.segment_index is None


def test_reducer_requires_summaries():
    reducer = Reducer(RetryingSummarizer(ScriptedLLM(["x"]), sleep=RecordingSleep()))
    with pytest.raises(FatalError):
        reducer.reduce([])


def test_custom_retry_settings():
    llm = ScriptedLLM([ThrottledError("Too many requests")])
    sleep = RecordingSleep()
    config = PipelineConfig(max_retries=1, retry_base_delay=0.5)

    with pytest.raises(ThrottledError):
        RetryingSummarizer(llm, config=config, sleep=sleep).summarize(_segments("x")[0])

    assert len(llm.prompts) == 2
    assert sleep.calls == [0.5]
