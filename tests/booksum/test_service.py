from booksum.config import PipelineConfig
from booksum.exceptions import FatalError, ThrottledError
from booksum.exporter import ArtifactSink
from booksum.ingest import DocumentSource
from booksum.llm_adapter import LLMAdapter
from booksum.models import Document
from booksum.service import process_document


class MemorySource(DocumentSource):
    def __init__(self, documents):
        self.documents = documents

    def fetch(self, key):
        if key not in self.documents:
            raise FatalError(f"No such key: {key}", stage="extract")
        return Document(key=key, text=self.documents[key])


class MemorySink(ArtifactSink):
    def __init__(self):
        self.items = {}

    def put_text(self, key, content):
        self.items[key] = content
        return key

    def delete(self, key):
        self.items.pop(key, None)


class DetailedWriteFailsSink(MemorySink):
    def put_text(self, key, content):
        if "detailed_" in key:
            raise FatalError("disk full", stage="store")
        return super().put_text(key, content)


class FixedLLM(LLMAdapter):
    def __init__(self, error=None):
        self.error = error
        self.calls = 0

    def generate(self, prompt, max_tokens, temperature=0.0, top_p=1.0, top_k=0):
        self.calls += 1
        if self.error:
            raise self.error
        return "final" if "Part summaries:" in prompt else "segment"


def _no_sleep(seconds):
    pass


def test_process_document_success():
    sink = MemorySink()
    source = MemorySource({"pdfs/book.pdf": "A short book. It ends here."})

    outcome = process_document("pdfs/book.pdf", source, sink, FixedLLM(), sleep=_no_sleep)

    assert outcome.ok
    assert outcome.summary_key == "summaries/book.txt"
    assert outcome.detailed_summary_key == "summaries/detailed_book.txt"
    assert sink.items == {"summaries/book.txt": "final", "summaries/detailed_book.txt": "segment"}
    assert outcome.to_dict() == {
        "status_code": 200,
        "message": "Document successfully processed and summaries created",
        "summary_key": "summaries/book.txt",
        "detailed_summary_key": "summaries/detailed_book.txt",
    }


def test_process_document_inference_failure_writes_nothing():
    sink = MemorySink()
    source = MemorySource({"pdfs/book.pdf": "Text. " * 10})
    llm = FixedLLM(error=ThrottledError("Too many requests"))
    config = PipelineConfig(max_chunk_size=12)

    outcome = process_document("pdfs/book.pdf", source, sink, llm, config=config, sleep=_no_sleep)

    assert outcome.status_code == 500
    assert outcome.error == "throttled"
    assert outcome.stage == "map"
    assert outcome.segment_index == 0
    assert "attempts=4" in outcome.details
    assert llm.calls == 4
    assert sink.items == {}


def test_process_document_empty():
    sink = MemorySink()
    llm = FixedLLM()

    outcome = process_document("pdfs/blank.pdf", MemorySource({"pdfs/blank.pdf": "  "}), sink, llm, sleep=_no_sleep)

    assert outcome.status_code == 500
    assert outcome.error == "empty_document"
    assert llm.calls == 0
    assert sink.items == {}


def test_process_document_missing_source():
    outcome = process_document("pdfs/missing.pdf", MemorySource({}), MemorySink(), FixedLLM(), sleep=_no_sleep)

    assert outcome.status_code == 500
    assert outcome.stage == "extract"
    assert "summary_key" not in outcome.to_dict()


def test_process_document_failed_second_write_leaves_nothing():
    sink = DetailedWriteFailsSink()
    source = MemorySource({"pdfs/b.pdf": "Some text to summarize."})

    outcome = process_document("pdfs/b.pdf", source, sink, FixedLLM(), sleep=_no_sleep)

    assert outcome.status_code == 500
    assert outcome.stage == "store"
    assert sink.items == {}
