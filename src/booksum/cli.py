import logging
import os
import sys
from dataclasses import replace

import click

from booksum.config import PipelineConfig
from booksum.exceptions import PipelineError


def _build_llm(llm: str, model, config: PipelineConfig):
    from booksum.llm_adapter import CloudAdapter, LocalTransformersAdapter

    if llm == "cloud":
        adapter = CloudAdapter(api_url=config.api_url, model_name=model or config.model_name)
        if adapter.api_key == "PLACEHOLDER_KEY":
            click.echo("Warning: CLOUD_LLM_API_KEY not set. Requests will likely be rejected.", err=True)
        return adapter
    return LocalTransformersAdapter(model_name=model or "facebook/bart-large-cnn")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose):
    """BookSum: hierarchical summarization of long documents."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.command()
@click.option("--input", "-i", required=True, type=click.Path(exists=True), help="Path to input file.")
@click.option("--max-chunk-size", type=int, help="Segment size in characters.")
def chunk(input, max_chunk_size):
    """Show how a document would be split into segments."""
    from booksum.chunk import split_text
    from booksum.ingest import extract_text

    try:
        config = PipelineConfig.from_env()
        size = max_chunk_size if max_chunk_size is not None else config.max_chunk_size
        segments = split_text(extract_text(input), size, config.lookback)
        for s in segments:
            click.echo(f"{s.position}/{s.total_segments}\t[{s.start_char}, {s.end_char})\t{len(s.text)} chars")
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.command()
@click.option("--input", "-i", required=True, type=click.Path(exists=True), help="Path to input file.")
@click.option("--out", "-o", type=click.Path(file_okay=False), help="Output directory for the summaries.")
@click.option("--llm", type=click.Choice(["local", "cloud"]), default="cloud", help="LLM type for summarization.")
@click.option("--model", help="Specific LLM model name.")
@click.option("--max-chunk-size", type=int, help="Segment size in characters.")
@click.option("--no-save", is_flag=True, help="Print the summaries instead of saving them.")
def summarize(input, out, llm, model, max_chunk_size, no_save):
    """Summarize a document segment by segment, then as a whole."""
    from booksum.exporter import LocalArtifactSink
    from booksum.ingest import LocalDocumentSource
    from booksum.pipeline import SummarizationPipeline
    from booksum.service import process_document

    try:
        config = PipelineConfig.from_env()
        if max_chunk_size is not None:
            config = replace(config, max_chunk_size=max_chunk_size)
        adapter = _build_llm(llm, model, config)

        root, key = os.path.split(os.path.abspath(input))
        source = LocalDocumentSource(root)

        if no_save:
            document = source.fetch(key)
            result = SummarizationPipeline(adapter, config).run(document)
            click.echo(result.final_summary)
            click.echo("\n" + "=" * 40 + "\n")
            click.echo(result.detailed_summary)
            return

        outcome = process_document(key, source, LocalArtifactSink(out or root), adapter, config)
    except PipelineError as e:
        click.echo(f"Error: {e.describe()}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not outcome.ok:
        click.echo(f"Error: {outcome.details}", err=True)
        sys.exit(1)
    click.echo(f"Summary exported to {outcome.summary_key}")
    click.echo(f"Detailed summary exported to {outcome.detailed_summary_key}")


cli.add_command(chunk)
cli.add_command(summarize)


def main():
    cli()


if __name__ == "__main__":
    main()
