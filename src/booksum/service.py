import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from booksum.config import PipelineConfig
from booksum.exceptions import PipelineError
from booksum.exporter import ArtifactSink, export_summaries
from booksum.ingest import DocumentSource
from booksum.llm_adapter import LLMAdapter
from booksum.pipeline import SummarizationPipeline
from booksum.summarize import Sleeper

logger = logging.getLogger(__name__)


@dataclass
class Outcome:
    status_code: int
    message: str
    summary_key: Optional[str] = None
    detailed_summary_key: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None
    stage: Optional[str] = None
    segment_index: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def process_document(
    key: str,
    source: DocumentSource,
    sink: ArtifactSink,
    llm: LLMAdapter,
    config: Optional[PipelineConfig] = None,
    sleep: Sleeper = time.sleep,
) -> Outcome:
    """
    Summarizes the document stored under `key` and stores both summaries.

    Artifacts are written only after every stage succeeded, so a failed run leaves
    nothing behind.

    Args:
        key: Document identifier understood by `source`.
        source: Where the document text comes from.
        sink: Where the two artifacts go.
        llm: Inference client shared by every call of the run.
        config: Pipeline settings (defaults when omitted).
        sleep: Blocking wait used for pacing and backoff.

    Returns:
        Outcome: 200 with both artifact keys, or 500 with the error description.
    """
    try:
        document = source.fetch(key)
        result = SummarizationPipeline(llm, config, sleep=sleep).run(document)
        summary_key, detailed_key = export_summaries(sink, key, result.final_summary, result.detailed_summary)
    except PipelineError as e:
        logger.error("Failed to process %s: %s", key, e.describe(), exc_info=True)
        return Outcome(
            status_code=500,
            message="Failed to process document",
            error=e.kind,
            details=e.describe(),
            stage=e.stage,
            segment_index=e.segment_index,
        )
    except Exception as e:
        logger.error("Failed to process %s: %s", key, e, exc_info=True)
        return Outcome(status_code=500, message="Failed to process document", error="fatal", details=str(e))

    return Outcome(
        status_code=200,
        message="Document successfully processed and summaries created",
        summary_key=summary_key,
        detailed_summary_key=detailed_key,
    )
