"""Video extractor — acquire a plain-text transcript for a video URL via yt-dlp.

Fallback chain: caption strategies (in priority order) → title + description
metadata → tagged "unavailable" result with diagnostics.
Caption files are written to the temp dir as sub_{videoId}.{lang}.{ext} and
purged as soon as their text has been read.
"""

from __future__ import annotations

import html
import importlib.util
import json
import logging
import re
import shutil
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .. import config
from ..errors import ExtractionFailure
from . import VideoLocator

logger = logging.getLogger(__name__)

SOURCE_CAPTIONS = "captions"
SOURCE_DESCRIPTION = "description_fallback"
SOURCE_UNAVAILABLE = "unavailable"


# ── Data classes ──────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class ExtractionStrategy:
    name: str
    source: str  # "auto" | "manual" | "any"
    language: str  # "en" | "any"
    sub_format: str

    def flags(self) -> list[str]:
        flags: list[str] = []
        if self.source in ("manual", "any"):
            flags.append("--write-subs")
        if self.source in ("auto", "any"):
            flags.append("--write-auto-subs")
        if self.language != "en":
            langs = "all"
        elif self.source == "auto":
            langs = "en"
        else:
            langs = "en.*"
        return flags + ["--sub-langs", langs, "--sub-format", self.sub_format]


STRATEGIES: tuple[ExtractionStrategy, ...] = (
    ExtractionStrategy("auto_en_vtt", "auto", "en", "vtt"),
    ExtractionStrategy("auto_any_vtt", "auto", "any", "vtt"),
    ExtractionStrategy("manual_en_vtt", "manual", "en", "vtt"),
    ExtractionStrategy("manual_any_vtt", "manual", "any", "vtt"),
    ExtractionStrategy("any_srt", "any", "any", "srt/best"),
)


@dataclass(slots=True)
class TranscriptResult:
    video_id: str
    url: str
    text: str = ""
    source: str = SOURCE_UNAVAILABLE
    strategy: str | None = None
    language: str | None = None
    title: str | None = None
    diagnostics: dict[str, Any] = field(default_factory=dict)

    @property
    def available(self) -> bool:
        return self.source != SOURCE_UNAVAILABLE and bool(self.text.strip())

    @property
    def length(self) -> int:
        return len(self.text.strip())


# ── Caption markup parsing ───────────────────────────────────

_CUE_TIMING_RE = re.compile(r"^\d{1,2}:\d{2}(?::\d{2})?[.,]\d{1,3}\s*-->")
_TAG_RE = re.compile(r"<[^>]*>")
_OVERRIDE_RE = re.compile(r"\{\\[^}]*\}")
_NOISE_RE = re.compile(r"^(\[[^\]]*\]|[♪♫\s]+)$")
_HEADER_PREFIXES = ("webvtt", "kind:", "language:")
_BLOCK_HEADERS = ("NOTE", "STYLE", "REGION")


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def parse_markup(raw_text: str) -> str:
    """Reduce WebVTT/SRT-style caption markup to plain text in file order."""
    fragments: list[str] = []
    previous = ""
    in_block = False
    at_block_start = True

    for original in raw_text.splitlines():
        stripped = original.strip()
        if not stripped:
            in_block = False
            at_block_start = True
            continue
        if in_block:
            continue
        starts_block, at_block_start = at_block_start, False
        lowered = stripped.lower()
        if lowered.startswith(_HEADER_PREFIXES):
            continue
        # a NOTE/STYLE/REGION header opens its own block; inside a cue it is text
        if starts_block and stripped.split(" ", 1)[0] in _BLOCK_HEADERS:
            in_block = True
            continue
        if stripped.isdigit() or _CUE_TIMING_RE.match(stripped):
            continue

        line = _collapse(_OVERRIDE_RE.sub("", _TAG_RE.sub("", html.unescape(stripped))))
        if not line or _NOISE_RE.match(line):
            continue
        # rolling auto-captions repeat the previous line
        if line == previous:
            continue
        fragments.append(line)
        previous = line

    return _collapse(" ".join(fragments))


def parse_json3(raw_text: str) -> str:
    """Concatenate the text segments of a json3 event list in array order."""
    data = json.loads(raw_text)
    if not isinstance(data, dict):
        raise ValueError(f"json3 payload is a {type(data).__name__}, not an object")
    parts: list[str] = []
    for event in data.get("events") or []:
        text = "".join(seg.get("utf8", "") for seg in event.get("segs") or [])
        text = text.strip()
        if text:
            parts.append(text)
    return _collapse(" ".join(parts))


def parse_artifact(path: Path) -> str:
    raw = path.read_text(encoding="utf-8", errors="replace")
    if path.suffix.lower() == ".json3":
        return parse_json3(raw)
    return parse_markup(raw)


# ── yt-dlp plumbing ──────────────────────────────────────────

def _yt_dlp_command() -> list[str] | None:
    path = shutil.which("yt-dlp")
    if path:
        return [path]
    if importlib.util.find_spec("yt_dlp") is not None:
        return [sys.executable, "-m", "yt_dlp"]
    return None


def _tail(text: str, limit: int = 600) -> str:
    text = (text or "").strip()
    return text[-limit:]


def _artifacts(video_id: str) -> list[Path]:
    return sorted(config.temp_dir().glob(f"sub_{video_id}.*"))


def _purge_artifacts(video_id: str) -> None:
    for path in _artifacts(video_id):
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not delete caption artifact %s: %s", path, exc)


def _language_of(path: Path, video_id: str) -> str:
    # sub_{id}.{lang}.{ext}
    middle = path.name[len(f"sub_{video_id}."):]
    return middle.rsplit(".", 1)[0] if "." in middle else ""


def _preferred(paths: list[Path], video_id: str) -> list[Path]:
    def rank(path: Path) -> tuple[int, str]:
        lang = _language_of(path, video_id)
        if lang.endswith("-orig"):
            return 0, path.name
        if lang == "en" or lang.startswith("en-"):
            return 1, path.name
        return 2, path.name

    return sorted(paths, key=rank)


def _probe_tracks(tool: list[str], locator: VideoLocator) -> dict[str, list[str]] | None:
    """List caption tracks. Best effort: any failure just means less detail."""
    cmd = [*tool, "--list-subs", "--skip-download", "--no-warnings", "--no-playlist", locator.url]
    timeout = config.get_int("VIDBRIEF_PROBE_TIMEOUT", config.DEFAULT_PROBE_TIMEOUT)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=False)
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("Caption probe failed for %s: %s", locator.video_id, exc)
        return None
    if result.returncode != 0:
        logger.debug("Caption probe exited %d: %s", result.returncode, _tail(result.stderr, 200))
        return None
    return parse_track_listing(result.stdout)


def parse_track_listing(output: str) -> dict[str, list[str]]:
    tracks: dict[str, list[str]] = {"automatic": [], "manual": []}
    section: str | None = None
    for line in output.splitlines():
        lowered = line.lower()
        if "available automatic captions" in lowered:
            section = "automatic"
            continue
        if "available subtitles" in lowered:
            section = "manual"
            continue
        if section is None or not line.strip() or lowered.startswith(("language", "[")):
            continue
        code = line.split()[0]
        if re.fullmatch(r"[A-Za-z]{2,3}(?:[-_][A-Za-z0-9]+)*", code):
            tracks[section].append(code)
    return tracks


def _run_strategy(
    tool: list[str],
    locator: VideoLocator,
    strategy: ExtractionStrategy,
) -> tuple[str, str]:
    """Run one strategy once. Returns (text, language) or raises ExtractionFailure."""
    output_template = str(config.temp_dir() / f"sub_{locator.video_id}.%(ext)s")
    cmd = [
        *tool, "--skip-download", "--no-warnings", "--no-playlist",
        *strategy.flags(),
        "-o", output_template,
        locator.url,
    ]
    timeout = config.get_int("VIDBRIEF_STRATEGY_TIMEOUT", config.DEFAULT_STRATEGY_TIMEOUT)
    if config.debug_enabled():
        logger.debug("Strategy %s: %s", strategy.name, " ".join(cmd))

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=False)
        # yt-dlp exits 1 if any requested track fails, even when others were written
        for path in _preferred(_artifacts(locator.video_id), locator.video_id):
            text = parse_artifact(path)
            if text:
                if result.returncode != 0:
                    logger.debug("%s exited %d but wrote %s", strategy.name, result.returncode, path.name)
                return text, _language_of(path, locator.video_id)
        if result.returncode != 0:
            raise ExtractionFailure(
                f"{strategy.name}: yt-dlp exited {result.returncode}",
                {"stderr": _tail(result.stderr)},
            )
        raise ExtractionFailure(f"{strategy.name}: no caption file produced", {"stderr": _tail(result.stderr)})
    except subprocess.TimeoutExpired:
        raise ExtractionFailure(f"{strategy.name}: timed out after {timeout}s") from None
    except (OSError, subprocess.SubprocessError, ValueError) as exc:
        raise ExtractionFailure(f"{strategy.name}: {exc}") from exc
    finally:
        _purge_artifacts(locator.video_id)


def _extract_captions(tool: list[str] | None, locator: VideoLocator) -> TranscriptResult:
    if tool is None:
        raise ExtractionFailure("yt-dlp is not installed", {"stderr": ""})

    last: ExtractionFailure | None = None
    for strategy in STRATEGIES:
        try:
            text, language = _run_strategy(tool, locator, strategy)
        except ExtractionFailure as exc:
            logger.info("Caption strategy failed: %s", exc)
            last = exc
            continue
        logger.info("Captions via %s (%s, %d chars)", strategy.name, language or "?", len(text))
        return TranscriptResult(
            video_id=locator.video_id,
            url=locator.url,
            text=text,
            source=SOURCE_CAPTIONS,
            strategy=strategy.name,
            language=language or None,
        )

    raise ExtractionFailure(
        "all caption strategies failed",
        {"detail": str(last) if last else "", "stderr": last.diagnostics.get("stderr", "") if last else ""},
    )


def _metadata_fallback(tool: list[str] | None, locator: VideoLocator) -> TranscriptResult | None:
    """Synthesize a transcript from title + description when captions are gone."""
    if tool is None:
        return None

    cmd = [*tool, "--dump-json", "--skip-download", "--no-warnings", "--no-playlist", locator.url]
    timeout = config.get_int("VIDBRIEF_PROBE_TIMEOUT", config.DEFAULT_PROBE_TIMEOUT)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=False)
        if result.returncode != 0 or not result.stdout.strip():
            logger.debug("Metadata fetch failed: %s", _tail(result.stderr, 200))
            return None
        info = json.loads(result.stdout.strip().splitlines()[0])
        if not isinstance(info, dict):
            raise ValueError(f"metadata is a {type(info).__name__}, not an object")
    except (OSError, subprocess.SubprocessError, ValueError) as exc:
        logger.debug("Metadata fallback failed: %s", exc)
        return None

    title = (info.get("title") or "").strip()
    description = (info.get("description") or "").strip()
    if len(description) <= config.MIN_TRANSCRIPT_CHARS:
        logger.info("Description too short for fallback (%d chars)", len(description))
        return None

    logger.info("Metadata fallback: title=%s (%d chars)", title[:50], len(description))
    return TranscriptResult(
        video_id=locator.video_id,
        url=locator.url,
        text=f"{title}. {description}",
        source=SOURCE_DESCRIPTION,
        title=title or None,
    )


def _unavailable(
    locator: VideoLocator,
    failure: ExtractionFailure,
    tool_found: bool,
    tracks: dict[str, list[str]] | None,
) -> TranscriptResult:
    troubleshooting = [
        "Check that the video has captions (look for the CC button on YouTube)",
        "Try a different video that has captions or subtitles",
        "Update yt-dlp: python -m pip install -U yt-dlp",
    ]
    hint = "This video may not have captions/subtitles enabled."
    if not tool_found:
        hint = "yt-dlp was not found. Install it with: python -m pip install yt-dlp"
    diagnostics: dict[str, Any] = {
        "error": "No transcript available for this video",
        "detail": failure.diagnostics.get("stderr") or failure.diagnostics.get("detail") or str(failure),
        "hint": hint,
        "troubleshooting": troubleshooting,
        "videoId": locator.video_id,
    }
    if tracks is not None:
        diagnostics["availableCaptions"] = tracks
    return TranscriptResult(
        video_id=locator.video_id,
        url=locator.url,
        source=SOURCE_UNAVAILABLE,
        diagnostics=diagnostics,
    )


# ── Entry point ──────────────────────────────────────────────

def acquire_transcript(url: str) -> TranscriptResult:
    """Acquire a transcript for a video URL.

    Raises InvalidLocator for URLs without a video id. Every other failure
    comes back as an unavailable result carrying diagnostics.
    """
    locator = VideoLocator.from_url(url)
    tool = _yt_dlp_command()
    _purge_artifacts(locator.video_id)

    tracks = _probe_tracks(tool, locator) if tool else None
    if tracks is not None:
        logger.debug("Caption tracks for %s: %s", locator.video_id, tracks)

    # 1. Caption strategies
    try:
        return _extract_captions(tool, locator)
    except ExtractionFailure as exc:
        failure = exc

    # 2. Title + description
    result = _metadata_fallback(tool, locator)
    if result:
        return result

    logger.warning("No transcript extracted for %s: %s", locator.video_id, failure)
    return _unavailable(locator, failure, tool is not None, tracks)
