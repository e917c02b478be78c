"""vidbrief schemas — brief pipeline records and HTTP payloads."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class BriefRequest(BaseModel):
    transcript: Optional[str] = None
    video_url: str = ""
    video_title: str = ""


class BriefResult(BaseModel):
    text: str
    method: str
    truncated: bool = False
    transcript_chars: int = 0


# ── HTTP payloads (camelCase, as the browser extension sends them) ──

class TranscriptPayload(BaseModel):
    url: Optional[str] = None


class TranscriptResponse(BaseModel):
    transcript: str
    videoId: str
    source: str
    length: int


class AnalyzePayload(BaseModel):
    transcript: Optional[str] = None
    videoUrl: Optional[str] = None
    videoTitle: Optional[str] = None
    url: Optional[str] = None  # wrong-format guard: transcript requests carry url


class AnalyzeResponse(BaseModel):
    briefText: str
    analysisMethod: str
    truncated: bool = False


class BriefPayload(BaseModel):
    url: Optional[str] = None
    videoTitle: Optional[str] = None


class VideoBriefResponse(BaseModel):
    videoId: str
    briefText: str
    analysisMethod: str
    transcriptSource: str
    transcriptLength: int
    diagnostics: dict[str, Any] = Field(default_factory=dict)
