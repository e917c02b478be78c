"""vidbrief CLI — simple command-line interface.

Usage:
    vidbrief --url "https://youtube.com/watch?v=abc"
    vidbrief --url "https://youtu.be/abc" --transcript-only
    vidbrief --batch "https://youtu.be/abc" --batch "https://youtu.be/def" --raw
"""

from __future__ import annotations

import json
import sys

import typer

from . import config

app = typer.Typer(add_completion=False, pretty_exceptions_enable=False)


@app.command()
def main(
    url: str = typer.Option(None, help="Video URL to brief"),
    batch: list[str] = typer.Option(None, help="Multiple video URLs to brief in parallel"),
    title: str = typer.Option("", help="Video title to pass to the model"),
    transcript_only: bool = typer.Option(False, "--transcript-only", help="Print the transcript, skip the brief"),
    raw: bool = typer.Option(False, "--raw", help="Output raw JSON instead of text"),
) -> None:
    """Video transcripts and intelligence briefs."""
    sys.stdout.reconfigure(encoding="utf-8")
    config.setup_logging()

    from .errors import InvalidLocator
    from .service import brief, brief_batch, fetch_transcript

    # ── Batch mode ────────────────────────────────────────────────
    if batch:
        typer.echo(f"Briefing {len(batch)} videos...\n", err=True)
        results = brief_batch(batch, video_title=title)
        if raw:
            typer.echo(json.dumps(dict(zip(batch, results)), indent=2, ensure_ascii=False))
            raise typer.Exit()
        for i, (item_url, result) in enumerate(zip(batch, results), 1):
            typer.echo(f"{'─' * 50}")
            typer.echo(f"[{i}/{len(batch)}] {item_url}")
            typer.echo(f"{'─' * 50}")
            typer.echo(result if isinstance(result, str) else result["briefText"])
            typer.echo()
        raise typer.Exit()

    # ── Single URL mode ───────────────────────────────────────────
    if not url:
        typer.echo("Error: --url or --batch is required.\n"
                   "  vidbrief --url 'https://www.youtube.com/watch?v=abc123'\n"
                   "  vidbrief --batch 'https://youtu.be/abc' --batch 'https://youtu.be/def'")
        raise typer.Exit(1)

    try:
        if transcript_only:
            result = fetch_transcript(url)
            if not result.available:
                typer.echo(json.dumps(result.diagnostics, indent=2, ensure_ascii=False), err=True)
                raise typer.Exit(1)
            if raw:
                typer.echo(json.dumps({
                    "transcript": result.text,
                    "videoId": result.video_id,
                    "source": result.source,
                    "length": result.length,
                }, indent=2, ensure_ascii=False))
            else:
                typer.echo(result.text)
            raise typer.Exit()

        data = brief(url, video_title=title)
    except InvalidLocator as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(2)

    if raw:
        typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
    else:
        typer.echo(data["briefText"])
        typer.echo(f"\n[{data['analysisMethod']} · transcript: {data['transcriptSource']}]", err=True)


if __name__ == "__main__":
    app()
