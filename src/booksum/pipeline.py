import logging
import time
from typing import List, Optional

from booksum.chunk import split_text
from booksum.config import PipelineConfig
from booksum.exceptions import EmptyDocumentError
from booksum.llm_adapter import LLMAdapter
from booksum.models import Document, PipelineResult, SegmentSummary
from booksum.prompts import REDUCE_PROMPT, SEGMENT_PROMPT
from booksum.summarize import Reducer, RetryingSummarizer, SequentialOrchestrator, Sleeper

logger = logging.getLogger(__name__)

SECTION_DELIMITER = "\n\n=== NEW SECTION ===\n\n"


def format_detailed_summary(summaries: List[SegmentSummary], delimiter: str = SECTION_DELIMITER) -> str:
    """Joins segment summaries in index order with a fixed section marker."""
    return delimiter.join(s.text for s in sorted(summaries, key=lambda s: s.index))


class SummarizationPipeline:
    """
    Chunk -> summarize each segment in order -> pause -> reduce.

    Errors from any stage propagate unchanged; they already carry the stage name and,
    for the map stage, the segment index.
    """

    def __init__(
        self,
        llm: LLMAdapter,
        config: Optional[PipelineConfig] = None,
        segment_template: str = SEGMENT_PROMPT,
        reduce_template: str = REDUCE_PROMPT,
        sleep: Sleeper = time.sleep,
    ):
        self.config = config or PipelineConfig()
        self.sleep = sleep
        self.summarizer = RetryingSummarizer(llm, self.config, template=segment_template, sleep=sleep)
        self.orchestrator = SequentialOrchestrator(self.summarizer, pacing_delay=self.config.pacing_delay, sleep=sleep)
        self.reducer = Reducer(self.summarizer, template=reduce_template)

    def run(self, document: Document) -> PipelineResult:
        logger.info("Full text length: %d", document.length)
        if not document.text.strip():
            raise EmptyDocumentError(f"No extractable text in {document.key}", stage="chunk")

        segments = split_text(document.text, self.config.max_chunk_size, self.config.lookback)
        logger.info("Text split into %d segments", len(segments))

        summaries = self.orchestrator.process_all(segments)
        logger.info("All segment summaries generated")

        self.sleep(self.config.pacing_delay)
        final_summary = self.reducer.reduce(summaries)

        return PipelineResult(
            final_summary=final_summary,
            detailed_summary=format_detailed_summary(summaries),
            segment_summaries=summaries,
        )
