import logging
import os
import re
from abc import ABC, abstractmethod
from typing import List

from booksum.exceptions import FatalError
from booksum.models import Document

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")


def extract_text_from_pdf(path: str) -> List[str]:
    """
    Extracts text from each page of a PDF file using pdfplumber.

    Args:
        path (str): Path to the PDF file.

    Returns:
        List[str]: Cleaned text of every page, in page order (empty string for blank pages).
    """
    import pdfplumber

    pages = []
    with pdfplumber.open(path) as pdf:
        for page in pdf.pages:
            pages.append(_clean_extracted_text(page.extract_text() or ""))
    return pages


def _clean_extracted_text(text: str) -> str:
    """
    Clean extracted text by removing page-number artifacts and runs of blank lines.
    """
    if not text:
        return ""

    cleaned_lines = []
    for line in text.split("\n"):
        stripped = line.strip()
        if re.match(r"^(page\s*\d+|\d+)$", stripped, re.IGNORECASE):
            continue
        cleaned_lines.append(re.sub(r"[ \t]+", " ", stripped))

    result = "\n".join(cleaned_lines)
    result = re.sub(r"\n{3,}", "\n\n", result)
    return result.strip()


def extract_text_from_docx(path: str) -> List[str]:
    """
    Extracts text from a DOCX file using python-docx.
    Treats the entire document as a single page.
    """
    from docx import Document as DocxDocument

    doc = DocxDocument(path)
    return ["\n".join(para.text for para in doc.paragraphs)]


def extract_text_from_txt(path: str) -> List[str]:
    with open(path, "r", encoding="utf-8") as f:
        return [f.read()]


def extract_text(path: str) -> str:
    """
    Detects the format of `path` and returns its full text.

    Args:
        path (str): Path to the file.

    Returns:
        str: Page texts joined with newlines.

    Raises:
        FatalError: Missing file, unsupported format or extraction failure (stage "extract").
    """
    if not os.path.exists(path):
        raise FatalError(f"File not found: {path}", stage="extract")

    ext = os.path.splitext(path)[1].lower()
    extractors = {
        ".pdf": extract_text_from_pdf,
        ".docx": extract_text_from_docx,
        ".txt": extract_text_from_txt,
    }
    if ext not in extractors:
        raise FatalError(f"Unsupported file format: {ext}", stage="extract")

    try:
        pages = extractors[ext](path)
    except Exception as e:
        raise FatalError(f"Failed to extract text from {path}: {e}", stage="extract") from e

    return "\n".join(pages)


class DocumentSource(ABC):
    """Supplies document text for an opaque key."""

    @abstractmethod
    def fetch(self, key: str) -> Document:
        pass


class LocalDocumentSource(DocumentSource):
    """Resolves keys as paths relative to a root directory (the local stand-in for a bucket)."""

    def __init__(self, root: str = "."):
        self.root = root

    def path_for(self, key: str) -> str:
        return os.path.join(self.root, key)

    def fetch(self, key: str) -> Document:
        path = self.path_for(key)
        text = extract_text(path)
        logger.info("Extracted %d characters from %s", len(text), path)
        return Document(key=key, text=text)
