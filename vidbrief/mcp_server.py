"""vidbrief MCP Server — expose transcripts and briefs as tools for any MCP-capable agent.

Run:
    python -m vidbrief.mcp_server

Or add to your MCP config (e.g., Claude Desktop, Cursor):
    {
      "mcpServers": {
        "vidbrief": {
          "command": "python",
          "args": ["-m", "vidbrief.mcp_server"],
          "env": {
            "VIDBRIEF_LLM_API_KEY": "sk-or-v1-your-key",
            "VIDBRIEF_LLM_BASE_URL": "https://openrouter.ai/api/v1"
          }
        }
      }
    }
"""

import json

from mcp.server.fastmcp import FastMCP

from .errors import InvalidLocator

mcp = FastMCP("vidbrief")


@mcp.tool()
def fetch_video_transcript(url: str) -> str:
    """Get the plain-text transcript of a video.

    Tries English and any-language captions, then falls back to the video
    description. If nothing is available, returns the diagnostics as JSON.

    Args:
        url: Video URL (watch, youtu.be, shorts or embed link)
    """
    from .service import fetch_transcript

    try:
        result = fetch_transcript(url)
    except InvalidLocator as exc:
        return f"invalid video url: {exc}"
    if not result.available:
        return "no transcript\n\n" + json.dumps(result.diagnostics, indent=2)
    return f"transcript ({result.source}, {result.length} chars)\n\n{result.text}"


@mcp.tool()
def brief_video(url: str, title: str = "") -> str:
    """Produce a Video Intelligence Brief for a video.

    The brief always has the same five sections (central theme, argument flow,
    key conceptual sections, primary insights, intended viewer impact).

    Args:
        url: Video URL
        title: Optional video title to give the model more context
    """
    from .service import brief

    try:
        data = brief(url, video_title=title)
    except InvalidLocator as exc:
        return f"invalid video url: {exc}"
    return f"{data['briefText']}\n\n[{data['analysisMethod']}]"


@mcp.tool()
def validate_brief(text: str) -> bool:
    """Check a brief against the Video Intelligence Brief format."""
    from .summarizer import validate_brief_format

    return validate_brief_format(text)


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
