from booksum.chunk import split_text
from booksum.config import PipelineConfig
from booksum.exceptions import EmptyDocumentError, FatalError, PipelineError, ThrottledError
from booksum.exporter import LocalArtifactSink, derive_summary_keys, export_summaries
from booksum.ingest import LocalDocumentSource, extract_text
from booksum.llm_adapter import CloudAdapter, LLMAdapter, LocalTransformersAdapter
from booksum.models import Document, PipelineResult, Segment, SegmentSummary
from booksum.pipeline import SECTION_DELIMITER, SummarizationPipeline, format_detailed_summary
from booksum.service import Outcome, process_document
from booksum.summarize import Reducer, RetryingSummarizer, SequentialOrchestrator, backoff_delay, call_with_retry

__all__ = [
    "split_text",
    "PipelineConfig",
    "EmptyDocumentError",
    "FatalError",
    "PipelineError",
    "ThrottledError",
    "LocalArtifactSink",
    "derive_summary_keys",
    "export_summaries",
    "LocalDocumentSource",
    "extract_text",
    "CloudAdapter",
    "LLMAdapter",
    "LocalTransformersAdapter",
    "Document",
    "PipelineResult",
    "Segment",
    "SegmentSummary",
    "SECTION_DELIMITER",
    "SummarizationPipeline",
    "format_detailed_summary",
    "Outcome",
    "process_document",
    "Reducer",
    "RetryingSummarizer",
    "SequentialOrchestrator",
    "backoff_delay",
    "call_with_retry",
]
