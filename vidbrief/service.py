"""vidbrief service — the entry point.

Callers use fetch_transcript(url) and analyze(transcript, ...) separately, or
brief(url) to run both. Nothing is cached: every call is a fresh, independent
request.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from . import config
from .extractors.video import TranscriptResult, acquire_transcript
from .schemas import BriefRequest, BriefResult
from .summarizer import generate_brief

logger = logging.getLogger(__name__)

NO_CAPTIONS_NOTICE = (
    "No captions available. Provide a conceptual intelligence brief "
    "based on title and general context."
)


def fetch_transcript(url: str) -> TranscriptResult:
    """Acquire a transcript. Raises InvalidLocator, otherwise never fails."""
    return acquire_transcript(url)


def analyze(transcript: str | None, video_url: str = "", video_title: str = "") -> BriefResult:
    """Generate a brief. Raises MissingTranscript, otherwise never fails."""
    request = BriefRequest(
        transcript=transcript,
        video_url=video_url or "",
        video_title=video_title or "",
    )
    return generate_brief(request)


def is_usable(result: TranscriptResult) -> bool:
    return result.available and result.length >= config.MIN_TRANSCRIPT_CHARS


def brief(url: str, video_title: str = "") -> dict[str, Any]:
    """Transcript → brief for one video URL.

    A missing or too-short transcript is replaced with a fixed notice so the
    brief pipeline still answers.

    Returns a dict with videoId, briefText, analysisMethod, transcriptSource,
    transcriptLength and diagnostics.
    """
    transcript = fetch_transcript(url)
    if is_usable(transcript):
        text = transcript.text
    else:
        logger.info(
            "Transcript for %s unusable (%s, %d chars), briefing from notice",
            transcript.video_id, transcript.source, transcript.length,
        )
        text = NO_CAPTIONS_NOTICE

    result = analyze(text, transcript.url, video_title or transcript.title or "")
    return {
        "videoId": transcript.video_id,
        "briefText": result.text,
        "analysisMethod": result.method,
        "transcriptSource": transcript.source,
        "transcriptLength": transcript.length,
        "diagnostics": transcript.diagnostics,
    }


def brief_batch(urls: list[str], video_title: str = "") -> list[dict[str, Any] | str]:
    """Brief several URLs in parallel. Preserves input order.

    A URL that cannot be briefed yields an "error: ..." string.
    """
    if not urls:
        return []
    results: dict[int, dict[str, Any] | str] = {}
    with ThreadPoolExecutor(max_workers=min(8, len(urls))) as executor:
        future_to_index = {
            executor.submit(brief, url, video_title): i
            for i, url in enumerate(urls)
        }
        for future in as_completed(future_to_index):
            i = future_to_index[future]
            try:
                results[i] = future.result()
            except Exception as exc:
                results[i] = f"error: {exc}"
    return [results[i] for i in range(len(urls))]
