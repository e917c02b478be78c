"""Shared fixtures: isolated config, a fake yt-dlp and a fake OpenAI client."""

import json
import subprocess
from pathlib import Path
from types import SimpleNamespace

import pytest

from vidbrief.extractors.video import STRATEGIES

TRACK_LISTING = """[youtube] Extracting URL: https://www.youtube.com/watch?v=abc123
[info] Available automatic captions for abc123:
Language Name                Formats
en       English             vtt, ttml, srv3, json3
fr       French              vtt, json3
[info] Available subtitles for abc123:
Language Name    Formats
de       German  vtt, srt
"""


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path) -> Path:
    monkeypatch.setattr("vidbrief.config._loaded", True)
    for key in ("VIDBRIEF_LLM_API_KEY", "OPENAI_API_KEY", "VIDBRIEF_LLM_BASE_URL",
                "VIDBRIEF_LLM_MODEL", "VIDBRIEF_DEBUG", "VIDBRIEF_PREVIEW_CHARS"):
        monkeypatch.delenv(key, raising=False)
    subs_dir = tmp_path / "subs"
    monkeypatch.setenv("VIDBRIEF_TEMP_DIR", str(subs_dir))
    return subs_dir


def _strategy_of(command: list[str]) -> str | None:
    for strategy in STRATEGIES:
        flags = strategy.flags()
        for i in range(len(command) - len(flags) + 1):
            if command[i:i + len(flags)] == flags:
                return strategy.name
    return None


class FakeYtDlp:
    """Stands in for subprocess.run when the command is a yt-dlp call."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.captions: dict[str, tuple[str, str, str]] = {}  # strategy -> (lang, ext, body)
        self.metadata: dict | None = None
        self.timeouts: set[str] = set()
        self.failures: dict[str, str] = {}  # strategy -> stderr, exit code 1 after any writes
        self.listing: str | None = TRACK_LISTING
        self.seen_files: list[Path] = []

    @property
    def strategies_run(self) -> list[str]:
        return [name for name in map(_strategy_of, self.calls) if name]

    def __call__(self, command, *, capture_output=False, text=False, timeout=None, check=False):
        self.calls.append(command)
        if "--list-subs" in command:
            if self.listing is None:
                return subprocess.CompletedProcess(command, 1, "", "ERROR: listing failed")
            return subprocess.CompletedProcess(command, 0, self.listing, "")
        if "--dump-json" in command:
            if self.metadata is None:
                return subprocess.CompletedProcess(command, 1, "", "ERROR: Video unavailable")
            return subprocess.CompletedProcess(command, 0, json.dumps(self.metadata) + "\n", "")

        name = _strategy_of(command)
        if name in self.timeouts:
            raise subprocess.TimeoutExpired(command, timeout)
        returncode, stderr = (1, self.failures[name]) if name in self.failures else (0, "")
        if name not in self.captions:
            return subprocess.CompletedProcess(command, returncode, "", stderr)

        lang, ext, body = self.captions[name]
        template = command[command.index("-o") + 1]
        path = Path(template.replace("%(ext)s", f"{lang}.{ext}"))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")
        self.seen_files.append(path)
        return subprocess.CompletedProcess(command, returncode, "", stderr)


@pytest.fixture
def fake_yt_dlp(monkeypatch) -> FakeYtDlp:
    fake = FakeYtDlp()
    monkeypatch.setattr("vidbrief.extractors.video._yt_dlp_command", lambda: ["/usr/bin/yt-dlp"])
    monkeypatch.setattr("vidbrief.extractors.video.subprocess.run", fake)
    return fake


class FakeOpenAI:
    """Minimal stand-in for openai.OpenAI used by the summarizer."""

    calls: list[dict] = []
    client_kwargs: list[dict] = []
    reply: str | None = ""
    error: Exception | None = None

    def __init__(self, **kwargs) -> None:
        FakeOpenAI.client_kwargs.append(kwargs)
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        FakeOpenAI.calls.append(kwargs)
        if FakeOpenAI.error is not None:
            raise FakeOpenAI.error
        message = SimpleNamespace(content=FakeOpenAI.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_llm(monkeypatch):
    """Configure a credential and route completions to FakeOpenAI.

    Call the fixture with reply=... or error=... to set the response.
    """
    monkeypatch.setenv("VIDBRIEF_LLM_API_KEY", "test-key")
    monkeypatch.setattr("openai.OpenAI", FakeOpenAI)
    FakeOpenAI.calls = []
    FakeOpenAI.client_kwargs = []
    FakeOpenAI.reply = ""
    FakeOpenAI.error = None

    def configure(reply: str | None = None, error: Exception | None = None):
        FakeOpenAI.reply = reply
        FakeOpenAI.error = error
        return FakeOpenAI

    return configure
