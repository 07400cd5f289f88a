import logging
import os
from abc import ABC, abstractmethod
from typing import Tuple

from booksum.exceptions import FatalError, PipelineError

logger = logging.getLogger(__name__)

SOURCE_PREFIX = "pdfs/"
SUMMARY_PREFIX = "summaries/"
DETAILED_PREFIX = "summaries/detailed_"
SOURCE_EXTENSION = ".pdf"
SUMMARY_EXTENSION = ".txt"


def derive_summary_keys(key: str) -> Tuple[str, str]:
    """
    Maps a source key onto the keys of its two artifacts.

    `pdfs/book.pdf` becomes (`summaries/book.txt`, `summaries/detailed_book.txt`).
    Keys without the `pdfs/` prefix get the summaries prefix prepended; keys without
    `.pdf` have their extension replaced by `.txt`.

    Args:
        key: Source document key.

    Returns:
        Tuple[str, str]: (final summary key, detailed summary key).
    """
    if SOURCE_PREFIX in key:
        summary_key = key.replace(SOURCE_PREFIX, SUMMARY_PREFIX, 1)
        detailed_key = key.replace(SOURCE_PREFIX, DETAILED_PREFIX, 1)
    else:
        summary_key = SUMMARY_PREFIX + key
        detailed_key = DETAILED_PREFIX + key

    return _as_text_key(summary_key), _as_text_key(detailed_key)


def _as_text_key(key: str) -> str:
    if SOURCE_EXTENSION in key:
        return key.replace(SOURCE_EXTENSION, SUMMARY_EXTENSION, 1)
    return os.path.splitext(key)[0] + SUMMARY_EXTENSION


class ArtifactSink(ABC):
    """Stores named plain-text artifacts."""

    @abstractmethod
    def put_text(self, key: str, content: str) -> str:
        """Stores `content` under `key` and returns the stored location."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class LocalArtifactSink(ArtifactSink):
    """Writes artifacts as UTF-8 files below a root directory."""

    def __init__(self, root: str = "."):
        self.root = root

    def put_text(self, key: str, content: str) -> str:
        path = os.path.join(self.root, key)
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise FatalError(f"Failed to write {path}: {e}", stage="store") from e
        logger.info("Wrote %d characters to %s", len(content), path)
        return path

    def delete(self, key: str) -> None:
        path = os.path.join(self.root, key)
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise FatalError(f"Failed to remove {path}: {e}", stage="store") from e
        logger.info("Removed %s", path)


def export_summaries(sink: ArtifactSink, key: str, final_summary: str, detailed_summary: str) -> Tuple[str, str]:
    """
    Writes both artifacts for the document stored under `key`.

    If the second write fails the first artifact is removed again before the error propagates,
    so the sink never holds only one of the pair.

    Returns:
        Tuple[str, str]: (final summary key, detailed summary key).
    """
    summary_key, detailed_key = derive_summary_keys(key)
    sink.put_text(summary_key, final_summary)
    try:
        sink.put_text(detailed_key, detailed_summary)
    except Exception:
        try:
            sink.delete(summary_key)
        except PipelineError as cleanup_error:
            logger.error("Could not remove %s after a failed write: %s", summary_key, cleanup_error.describe())
        raise
    return summary_key, detailed_key
