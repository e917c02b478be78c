"""Tests for brief generation, the format contract and fallbacks."""

import httpx
import openai
import pytest

from vidbrief.errors import MissingTranscript
from vidbrief.schemas import BriefRequest
from vidbrief.summarizer import (
    FALLBACK_BRIEF,
    FALLBACK_THEME,
    REQUIRED_HEADINGS,
    _truncate,
    generate_brief,
    looks_like_transcript,
    validate_brief_format,
)

TRANSCRIPT = "Today we look at how habits form and why small changes compound over time. " * 5

VALID_BRIEF = """Video Intelligence Brief

1. Central Theme
How small, consistent habits compound into lasting change.

2. Core Argument Flow
- Everyday friction is framed as the real obstacle.
- A simple system is proposed to remove it.

3. Key Conceptual Sections
- Friction and defaults
- Habit stacking
- Measuring progress

4. Primary Insights
- Environment design beats willpower.

5. Intended Viewer Impact
- Viewers should redesign one routine this week.
"""


def _request(transcript=TRANSCRIPT) -> BriefRequest:
    return BriefRequest(
        transcript=transcript,
        video_url="https://www.youtube.com/watch?v=abc123",
        video_title="Habits",
    )


# ── Brief Contract ───────────────────────────────────────────

def test_valid_brief_passes() -> None:
    assert validate_brief_format(VALID_BRIEF)


def test_fallback_brief_is_contract_valid() -> None:
    assert validate_brief_format(FALLBACK_BRIEF)
    assert FALLBACK_THEME in FALLBACK_BRIEF


@pytest.mark.parametrize("heading", REQUIRED_HEADINGS)
def test_each_heading_is_required(heading: str) -> None:
    assert not validate_brief_format(VALID_BRIEF.replace(heading, "Something else"))


def test_quoted_span_is_transcript_like() -> None:
    assert looks_like_transcript('He said "this changes everything" twice.')
    assert looks_like_transcript("He said “this changes everything” twice.")
    assert not validate_brief_format(VALID_BRIEF + '\nAs the host put it, "start small".')


def test_timestamp_only_counts_on_long_text() -> None:
    assert not looks_like_transcript("At 1:23 the topic shifts.")
    long_text = "At 01:02:03 the topic shifts. " + "x" * 220
    assert looks_like_transcript(long_text)
    assert not validate_brief_format(VALID_BRIEF + "\n- At 12:45 the tone changes.")


def test_speaker_labels_are_transcript_like() -> None:
    assert looks_like_transcript("Intro\nJohn: welcome back to the show")
    assert not looks_like_transcript("Intro\n- john: lowercase bullet")


def test_validate_rejects_non_text() -> None:
    assert not validate_brief_format("")
    assert not validate_brief_format(None)


# ── generate_brief ───────────────────────────────────────────

def test_missing_transcript_is_rejected() -> None:
    with pytest.raises(MissingTranscript):
        generate_brief(_request(transcript=None))
    with pytest.raises(MissingTranscript):
        generate_brief(_request(transcript="   "))


def test_no_credential_returns_basic_fallback() -> None:
    result = generate_brief(_request())
    assert result.method == "basic"
    assert result.text == FALLBACK_BRIEF


def test_valid_completion_is_accepted(fake_llm) -> None:
    client = fake_llm(reply="```\n" + VALID_BRIEF + "\n```")

    result = generate_brief(_request())

    assert result.method == "primary"
    assert result.text == VALID_BRIEF.strip()
    call = client.calls[0]
    assert call["temperature"] <= 0.3
    assert call["max_tokens"] == 900
    assert call["messages"][0]["role"] == "system"
    assert "1. Central Theme" in call["messages"][0]["content"]
    assert "Habits" in call["messages"][1]["content"]
    assert client.client_kwargs[0]["max_retries"] == 0


def test_missing_heading_falls_back_with_format_tag(fake_llm) -> None:
    fake_llm(reply=VALID_BRIEF.replace("4. Primary Insights", "4. Takeaways"))

    result = generate_brief(_request())

    assert result.method == "fallback_format"
    assert "Conceptual focus and intended value." in result.text
    assert validate_brief_format(result.text)


def test_transcript_leak_falls_back(fake_llm) -> None:
    leaked = VALID_BRIEF + "\n" + "00:01:15 and then we move on to the next point " * 6
    assert len(leaked) > 220
    fake_llm(reply=leaked)

    result = generate_brief(_request())

    assert result.method == "fallback_format"
    assert result.text == FALLBACK_BRIEF


def test_service_error_falls_back(fake_llm) -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    fake_llm(error=openai.APITimeoutError(request=request))

    result = generate_brief(_request())

    assert result.method == "fallback"
    assert result.text == FALLBACK_BRIEF


def test_unexpected_error_falls_back(fake_llm) -> None:
    fake_llm(error=RuntimeError("boom"))
    assert generate_brief(_request()).method == "fallback"


def test_empty_completion_falls_back(fake_llm) -> None:
    fake_llm(reply=None)
    assert generate_brief(_request()).method == "fallback"


def test_long_transcript_is_truncated(fake_llm, monkeypatch) -> None:
    monkeypatch.setenv("VIDBRIEF_PREVIEW_CHARS", "200")
    client = fake_llm(reply=VALID_BRIEF)
    transcript = "word " * 1000

    result = generate_brief(_request(transcript=transcript))

    assert result.truncated
    assert result.transcript_chars == len(transcript.strip())
    user_message = client.calls[0]["messages"][1]["content"]
    assert user_message.count("word") <= 40


def test_short_transcript_is_not_truncated(fake_llm) -> None:
    fake_llm(reply=VALID_BRIEF)
    assert not generate_brief(_request()).truncated


def test_truncate_with_tiny_limit() -> None:
    assert _truncate("abcdef ghij", 3) == ("...", True)
    assert _truncate("abcdef ghij", 5) == ("ab...", True)
    assert _truncate("abcdef ghij", 10) == ("abcdef...", True)


def test_tiny_preview_limit_still_returns_a_brief(monkeypatch) -> None:
    monkeypatch.setenv("VIDBRIEF_PREVIEW_CHARS", "2")

    result = generate_brief(_request())

    assert result.method == "basic"
    assert result.truncated
    assert validate_brief_format(result.text)


@pytest.mark.parametrize("reply", [
    VALID_BRIEF,
    "just some text",
    'Host: "hello" at 0:01',
    VALID_BRIEF.replace("2. Core Argument Flow", ""),
])
def test_every_brief_leaving_the_pipeline_is_valid(fake_llm, reply: str) -> None:
    fake_llm(reply=reply)
    assert validate_brief_format(generate_brief(_request()).text)
