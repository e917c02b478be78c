"""vidbrief HTTP API — FastAPI backend for the browser extension.

Usage:
    uvicorn vidbrief.api:app --port 3000
    vidbrief-api            # host/port from VIDBRIEF_HOST / VIDBRIEF_PORT

/api/transcript and /api/yt/transcript (likewise analyze) are the same handler
under two routes.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .errors import InvalidLocator, MissingTranscript
from .schemas import (
    AnalyzePayload,
    AnalyzeResponse,
    BriefPayload,
    TranscriptPayload,
    TranscriptResponse,
    VideoBriefResponse,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="vidbrief", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
)


@app.exception_handler(InvalidLocator)
def invalid_locator_handler(request: Request, exc: InvalidLocator) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": f"Invalid video URL: {exc}"})


@app.exception_handler(MissingTranscript)
def missing_transcript_handler(request: Request, exc: MissingTranscript) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Transcript is missing or empty"})


@app.get("/health")
def health():
    api_key, _, _ = config.llm_settings()
    return {"status": "ok", "llm": bool(api_key)}


@app.post("/api/transcript", response_model=TranscriptResponse)
@app.post("/api/yt/transcript", response_model=TranscriptResponse)
def transcript(payload: TranscriptPayload):
    from .service import fetch_transcript

    if not payload.url:
        return JSONResponse(status_code=400, content={"error": "Missing url"})

    result = fetch_transcript(payload.url)
    if not result.available:
        return JSONResponse(status_code=404, content=result.diagnostics)

    return TranscriptResponse(
        transcript=result.text,
        videoId=result.video_id,
        source=result.source,
        length=result.length,
    )


@app.post("/api/analyze", response_model=AnalyzeResponse)
@app.post("/api/yt/analyze", response_model=AnalyzeResponse)
def analyze(payload: AnalyzePayload):
    from .service import analyze as run_analysis

    received = sorted(payload.model_dump(exclude_none=True))
    if config.debug_enabled():
        logger.debug(
            "Analyze request: keys=%s transcript_chars=%d",
            received, len(payload.transcript or ""),
        )

    # Transcript-request payload sent to the analyze route
    if payload.url and not payload.transcript:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request format: received 'url' instead of 'transcript'",
                "hint": "POST {url} to /api/transcript first, then send {transcript, videoUrl, videoTitle} here",
                "received": received,
            },
        )

    result = run_analysis(payload.transcript, payload.videoUrl or "", payload.videoTitle or "")
    return AnalyzeResponse(
        briefText=result.text,
        analysisMethod=result.method,
        truncated=result.truncated,
    )


@app.post("/api/brief", response_model=VideoBriefResponse)
def video_brief(payload: BriefPayload):
    from .service import brief

    if not payload.url:
        return JSONResponse(status_code=400, content={"error": "Missing url"})
    return VideoBriefResponse(**brief(payload.url, payload.videoTitle or ""))


def main() -> None:
    import uvicorn

    config.setup_logging()
    host = config.get("VIDBRIEF_HOST", "127.0.0.1")
    port = config.get_int("VIDBRIEF_PORT", 3000)
    logger.info("Backend running on http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
