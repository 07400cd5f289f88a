"""
Prompt templates for segment and final summarization.

Templates are plain `str.format` strings; callers may pass their own as long as they use the
same placeholders.
"""

from typing import List

from booksum.models import Segment, SegmentSummary

# Placeholders: {position}, {total_segments}, {text}
SEGMENT_PROMPT = """You are an assistant that summarizes books. The text below is part {position} of {total_segments} of the book.
Please write a summary of this part.

Pay attention to:
- The main themes and topics in this part
- Important events and arguments
- Key ideas and concepts

Text:
{text}

Note: this is an intermediate summary. Do not try to connect it with the other parts; focus only on the information in this part."""

# Placeholders: {summaries}
REDUCE_PROMPT = """You are an assistant that summarizes books. Below are summaries of the different parts of the book.
Using these summaries, write an overall summary of the book.

Part summaries:
{summaries}

Please:
1. Give an overall summary of the book
2. List the main themes and topics
3. Summarize the important arguments and messages
4. If present, state the author's core positions and conclusions"""

REDUCE_DELIMITER = "\n\n--- New Section ---\n\n"


def build_segment_prompt(segment: Segment, template: str = SEGMENT_PROMPT) -> str:
    return template.format(position=segment.position, total_segments=segment.total_segments, text=segment.text)


def build_reduce_prompt(summaries: List[SegmentSummary], template: str = REDUCE_PROMPT) -> str:
    ordered = sorted(summaries, key=lambda s: s.index)
    return template.format(summaries=REDUCE_DELIMITER.join(s.text for s in ordered))
