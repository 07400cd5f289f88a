"""
Example script: Programmatic PDF summarization using pipeline components.
This script demonstrates how to chain the components manually instead of using the CLI.
"""

import logging
import os

from booksum.chunk import split_text
from booksum.config import PipelineConfig
from booksum.exporter import LocalArtifactSink, export_summaries
from booksum.ingest import LocalDocumentSource
from booksum.llm_adapter import CloudAdapter
from booksum.pipeline import SummarizationPipeline


def run_example(pdf_path: str):
    print(f"--- Processing {pdf_path} ---")
    config = PipelineConfig.from_env()

    # 1. Ingest
    root, key = os.path.split(os.path.abspath(pdf_path))
    document = LocalDocumentSource(root).fetch(key)

    # 2. Preview the segmentation
    segments = split_text(document.text, config.max_chunk_size, config.lookback)
    print(f"Text split into {len(segments)} segments")

    # 3. Map each segment, then reduce
    llm = CloudAdapter(api_url=config.api_url, model_name=config.model_name)
    result = SummarizationPipeline(llm, config).run(document)

    # 4. Store both artifacts next to the input
    summary_key, detailed_key = export_summaries(
        LocalArtifactSink(root), key, result.final_summary, result.detailed_summary
    )

    print("\n--- Summary Result ---\n")
    print(result.final_summary)
    print(f"\nSaved {summary_key} and {detailed_key} under {root}")


if __name__ == "__main__":
    # Needs CLOUD_LLM_API_KEY and a real PDF.
    import sys

    logging.basicConfig(level=logging.INFO)
    path = sys.argv[1] if len(sys.argv) > 1 else "sample.pdf"
    try:
        run_example(path)
    except Exception as e:
        print(f"Note: Could not run example automatically: {e}")
        print("Usage: python examples/summarize_pdf.py path/to/your.pdf")
