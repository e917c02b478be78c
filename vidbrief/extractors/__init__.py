"""Video locator — turns arbitrary video URLs into one canonical watch URL."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

from ..errors import InvalidLocator

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
SHORT_HOSTS = {"youtu.be", "www.youtu.be"}
PATH_PREFIXES = ("shorts", "embed", "live", "v")

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True, slots=True)
class VideoLocator:
    video_id: str
    url: str

    @classmethod
    def from_url(cls, raw: str) -> "VideoLocator":
        video_id = extract_video_id(raw)
        return cls(video_id=video_id, url=WATCH_URL.format(video_id=video_id))


def _valid(candidate: str | None) -> str | None:
    if candidate and _VIDEO_ID_RE.match(candidate):
        return candidate
    return None


def extract_video_id(raw: str) -> str:
    """Pull the video id out of a URL, ignoring every other parameter."""
    if not raw or not isinstance(raw, str):
        raise InvalidLocator("missing url")

    text = raw.strip()
    parsed = urlparse(text if "://" in text else f"https://{text}")

    # ?v= wins regardless of host or path
    values = parse_qs(parsed.query).get("v")
    if values:
        video_id = _valid(values[0].strip())
        if video_id:
            return video_id
        raise InvalidLocator(f"malformed video id in {raw!r}")

    host = (parsed.hostname or "").lower()
    parts = [p for p in parsed.path.split("/") if p]
    if host in SHORT_HOSTS and parts:
        video_id = _valid(parts[0])
        if video_id:
            return video_id
    if len(parts) >= 2 and parts[0] in PATH_PREFIXES:
        video_id = _valid(parts[1])
        if video_id:
            return video_id

    raise InvalidLocator(f"no video id found in {raw!r}")


def canonicalize(raw: str) -> str:
    """Return the canonical watch URL for any supported video URL."""
    return VideoLocator.from_url(raw).url
