"""Brief summarizer — turns a transcript into a Video Intelligence Brief.

Works with ANY LLM that exposes an OpenAI-compatible API.

Config is read from a .env file (drop it in your project root) or env vars.

Setup — pick ONE provider:

  # OpenRouter (one key, every model)
  VIDBRIEF_LLM_API_KEY=sk-or-v1-your-key-here
  VIDBRIEF_LLM_BASE_URL=https://openrouter.ai/api/v1
  VIDBRIEF_LLM_MODEL=google/gemma-3-12b-it:free

  # OpenAI (direct)
  OPENAI_API_KEY=sk-...

  # Ollama (local, free)
  VIDBRIEF_LLM_BASE_URL=http://localhost:11434/v1
  VIDBRIEF_LLM_MODEL=llama3
  VIDBRIEF_LLM_API_KEY=ollama

Whatever the model returns must pass validate_brief_format(). Anything else,
including every upstream failure, is replaced with FALLBACK_BRIEF, so callers
always get a contract-valid brief back.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from . import config
from .errors import ContractViolation, GenerationFailure, MissingTranscript
from .schemas import BriefRequest, BriefResult

logger = logging.getLogger(__name__)

METHOD_PRIMARY = "primary"
METHOD_FALLBACK_FORMAT = "fallback_format"
METHOD_FALLBACK = "fallback"
METHOD_BASIC = "basic"

BRIEF_TITLE = "Video Intelligence Brief"
SECTION_HEADINGS = (
    "1. Central Theme",
    "2. Core Argument Flow",
    "3. Key Conceptual Sections",
    "4. Primary Insights",
    "5. Intended Viewer Impact",
)
REQUIRED_HEADINGS = (BRIEF_TITLE, *SECTION_HEADINGS)

FALLBACK_THEME = "Conceptual focus and intended value."

FALLBACK_BRIEF = "\n".join([
    BRIEF_TITLE,
    "",
    SECTION_HEADINGS[0],
    FALLBACK_THEME,
    "",
    SECTION_HEADINGS[1],
    "- The video establishes context before introducing its main idea.",
    "- The idea is developed through supporting explanation and examples.",
    "- It closes by connecting the idea to practical use.",
    "",
    SECTION_HEADINGS[2],
    "- Context and motivation",
    "- Core concept and reasoning",
    "- Application and takeaways",
    "",
    SECTION_HEADINGS[3],
    "- The central idea is presented as useful beyond the immediate example.",
    "- Understanding the reasoning matters more than memorizing details.",
    "",
    SECTION_HEADINGS[4],
    "- The viewer should leave with a clearer mental model of the topic and a sense of how to apply it.",
])

SYSTEM_PROMPT = (
    "You write Video Intelligence Briefs: short conceptual analyses of a video. "
    "Never reproduce the source text, verbatim or paraphrased line by line. "
    "Never include timestamps, quotations, quotation marks, or speaker labels "
    "such as a name followed by a colon. "
    "Respond in plain text using exactly this skeleton and these headings:\n\n"
    + "\n".join(REQUIRED_HEADINGS)
    + "\n\nUnder each numbered heading write one to four short lines of your own analysis."
)

USER_PROMPT = (
    "Video title: {title}\n"
    "Video URL: {url}\n\n"
    "Source material (for analysis only, do not copy it):\n\n{transcript}"
)

# Brief Contract: transcript-leak heuristics
_QUOTED_RE = re.compile(r"“.*?”|\".*?\"", re.DOTALL)
_TIMESTAMP_RE = re.compile(r"\b\d{1,2}:\d{2}(:\d{2})?\b")
_SPEAKER_RE = re.compile(r"^[A-Z][a-zA-Z]+:", re.MULTILINE)
_TIMESTAMP_MIN_LENGTH = 220


def looks_like_transcript(text: str) -> bool:
    if not text or not isinstance(text, str):
        return False
    quoted = bool(_QUOTED_RE.search(text))
    timestampy = bool(_TIMESTAMP_RE.search(text)) and len(text) > _TIMESTAMP_MIN_LENGTH
    speaker = bool(_SPEAKER_RE.search(text))
    return quoted or timestampy or speaker


def validate_brief_format(text: str) -> bool:
    """True iff text has every required heading and no transcript leakage."""
    if not text or not isinstance(text, str):
        return False
    s = text.strip()
    if any(heading not in s for heading in REQUIRED_HEADINGS):
        return False
    return not looks_like_transcript(s)


def _check_contract(text: str) -> str:
    s = text.strip()
    missing = [h for h in REQUIRED_HEADINGS if h not in s]
    if missing:
        raise ContractViolation(f"missing headings: {', '.join(missing)}")
    if looks_like_transcript(s):
        raise ContractViolation("output looks like a transcript")
    return s


def _truncate(text: str, max_chars: int) -> tuple[str, bool]:
    """Truncate at the nearest word boundary, never mid-word."""
    if len(text) <= max_chars:
        return text, False
    prefix = text[:max(0, max_chars - 3)]
    parts = prefix.rsplit(None, 1)
    cut = parts[0] if parts else prefix
    return cut + "...", True


def _strip_fences(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.split("\n", 1)[-1].rsplit("```", 1)[0].strip()
    return raw


def _complete(api_key: str, base_url: str | None, model: str, user_content: str) -> str:
    """One chat completion. Raises GenerationFailure on any upstream problem."""
    try:
        from openai import OpenAI, OpenAIError
    except ImportError as exc:
        raise GenerationFailure("openai package not installed") from exc

    client_kwargs: dict[str, Any] = {
        "api_key": api_key,
        "timeout": config.get_int("VIDBRIEF_LLM_TIMEOUT", config.DEFAULT_LLM_TIMEOUT),
        "max_retries": 0,
    }
    if base_url:
        client_kwargs["base_url"] = base_url
    max_tokens = config.get_int("VIDBRIEF_MAX_TOKENS", config.DEFAULT_MAX_TOKENS)

    try:
        client = OpenAI(**client_kwargs)
        logger.info("Calling LLM: model=%s", model)

        # Some free models reject system prompts; retry as a single user message
        try:
            response = client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_content},
                ],
                temperature=0.2,
                max_tokens=max_tokens,
            )
        except OpenAIError as sys_err:
            if "400" in str(sys_err) or "system" in str(sys_err).lower():
                logger.info("System prompt not supported, retrying as user message")
                response = client.chat.completions.create(
                    model=model,
                    messages=[
                        {"role": "user", "content": f"{SYSTEM_PROMPT}\n\n{user_content}"},
                    ],
                    temperature=0.2,
                    max_tokens=max_tokens,
                )
            else:
                raise
    except Exception as exc:
        raise GenerationFailure(f"{type(exc).__name__}: {exc}") from exc

    if not response.choices:
        raise GenerationFailure("completion returned no choices")
    raw = _strip_fences(response.choices[0].message.content or "")
    if not raw:
        raise GenerationFailure("completion was empty")
    return raw


def generate_brief(request: BriefRequest) -> BriefResult:
    """Produce a contract-valid brief for a transcript.

    Raises MissingTranscript for an empty transcript. Everything after that
    degrades to FALLBACK_BRIEF with the method tag saying why.
    """
    transcript = (request.transcript or "").strip()
    if not transcript:
        raise MissingTranscript("transcript is missing or empty")

    preview_chars = config.get_int("VIDBRIEF_PREVIEW_CHARS", config.DEFAULT_PREVIEW_CHARS)
    preview, truncated = _truncate(transcript, preview_chars)
    if truncated:
        logger.info("Transcript truncated from %d to %d chars", len(transcript), len(preview))

    def result(text: str, method: str) -> BriefResult:
        return BriefResult(
            text=text,
            method=method,
            truncated=truncated,
            transcript_chars=len(transcript),
        )

    api_key, base_url, model = config.llm_settings()
    if not api_key:
        logger.debug("No LLM API key configured. Set VIDBRIEF_LLM_API_KEY or OPENAI_API_KEY.")
        return result(FALLBACK_BRIEF, METHOD_BASIC)

    user_content = USER_PROMPT.format(
        title=request.video_title or "Unknown",
        url=request.video_url or "unknown",
        transcript=preview,
    )

    try:
        candidate = _complete(api_key, base_url, model, user_content)
    except GenerationFailure as exc:
        logger.warning("LLM brief failed (%s): %s", model, exc)
        return result(FALLBACK_BRIEF, METHOD_FALLBACK)

    try:
        text = _check_contract(candidate)
    except ContractViolation as exc:
        logger.warning("LLM brief rejected: %s", exc)
        if config.debug_enabled():
            logger.debug("Rejected brief:\n%s", candidate[:1000])
        return result(FALLBACK_BRIEF, METHOD_FALLBACK_FORMAT)

    logger.info("LLM brief accepted (%d chars)", len(text))
    return result(text, METHOD_PRIMARY)
