from typing import Optional


class PipelineError(Exception):
    """
    Base class for every failure raised by the summarization pipeline.

    Args:
        message: Human-readable description.
        stage: Pipeline stage that failed ("extract", "chunk", "map", "reduce", "store").
        segment_index: Zero-based segment index when the failure belongs to one segment.
    """

    kind = "pipeline"

    def __init__(self, message: str, stage: Optional[str] = None, segment_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.segment_index = segment_index
        self.attempts = 0

    def describe(self) -> str:
        parts = [self.message]
        if self.stage:
            parts.append(f"stage={self.stage}")
        if self.segment_index is not None:
            parts.append(f"segment={self.segment_index + 1}")
        if self.attempts:
            parts.append(f"attempts={self.attempts}")
        return " | ".join(parts)


class ThrottledError(PipelineError):
    """The inference service rejected the request because of rate limiting or overload."""

    kind = "throttled"


class FatalError(PipelineError):
    """Any failure that is not retried."""

    kind = "fatal"


class EmptyDocumentError(PipelineError):
    """The source document has no extractable text."""

    kind = "empty_document"
