"""
vidbrief — transcript extraction and Video Intelligence Briefs.

Usage:
    from vidbrief import brief, fetch_transcript, analyze

    # Transcript only
    result = fetch_transcript("https://www.youtube.com/watch?v=abc123")
    if result.available:
        print(result.text)

    # Brief from a transcript you already have
    out = analyze(result.text, video_url=result.url)
    print(out.method, out.text)

    # Both in one call
    data = brief("https://youtu.be/abc123")
    print(data["briefText"])
"""

from .errors import InvalidLocator, MissingTranscript
from .service import analyze, brief, brief_batch, fetch_transcript
from .summarizer import validate_brief_format

__all__ = [
    "analyze",
    "brief",
    "brief_batch",
    "fetch_transcript",
    "validate_brief_format",
    "InvalidLocator",
    "MissingTranscript",
]
