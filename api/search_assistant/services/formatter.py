"""
Markdown/HTML formatter for model answers.

Applies a fixed sequence of heuristic rewrites to loosely structured model
text, expands ``[n]`` markers into citation tooltips, renders the result
with markdown-it and prefixes the citation stylesheet.

Model and grounding text are injected as raw HTML without escaping.
"""

import logging
import re

from markdown_it import MarkdownIt

from search_assistant.models.search import Source

logger = logging.getLogger(__name__)

_SECTION_HEADING = re.compile(r"^([A-Za-z][A-Za-z\s]+):(\s*)", re.MULTILINE)
_SUB_HEADING = re.compile(r"^([A-Za-z][A-Za-z\s]+):(?!\d)", re.MULTILINE)
_BULLET = re.compile(r"^[•●○]\s*", re.MULTILINE)
_FENCED_CODE = re.compile(r"```(\w+)?\n([\s\S]+?)```", re.ASCII)
_INLINE_CODE = re.compile(r"`([^`]+)`")
_REFERENCE = re.compile(r"\[([0-9]+)\]")

_REFERENCE_MARKER = 'class="reference-container"'
_UNWRAPPED_PREFIXES = ("#", "*", "-", "<")

_markdown = MarkdownIt("gfm-like", {"html": True, "breaks": True})

CITATION_STYLESHEET = """\
<style>
  .reference-container {
    display: inline-flex;
    position: relative;
    font-size: 0.85em;
    margin: 0 2px;
    vertical-align: super;
    z-index: 10;
  }
  .reference-link {
    color: #0366d6;
    text-decoration: none;
    padding: 2px 6px;
    border-radius: 4px;
    background: rgba(3, 102, 214, 0.08);
    transition: all 0.2s ease;
    font-weight: 500;
    white-space: nowrap;
  }
  .reference-link:hover {
    background: rgba(3, 102, 214, 0.15);
  }
  .reference-tooltip {
    visibility: hidden;
    position: absolute;
    left: 50%;
    bottom: 100%;
    transform: translateX(-50%) translateY(-8px);
    background: #ffffff;
    border: 1px solid #e1e4e8;
    border-radius: 8px;
    padding: 16px;
    width: 320px;
    height: fit-content;
    max-height: none;
    box-shadow: 0 4px 16px rgba(0,0,0,0.1);
    z-index: 1000;
    margin-bottom: 8px;
    opacity: 0;
    transition: all 0.2s ease;
    pointer-events: none;
  }
  .reference-container:hover .reference-tooltip {
    visibility: visible;
    opacity: 1;
    transform: translateX(-50%) translateY(0);
    pointer-events: auto;
  }
  .reference-title {
    font-weight: 600;
    margin-bottom: 10px;
    font-size: 14px;
    color: #24292e;
    line-height: 1.4;
  }
  .reference-snippet {
    font-size: 13px;
    color: #586069;
    margin-bottom: 10px;
    line-height: 1.5;
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
  }
  .reference-url {
    font-size: 12px;
    color: #0366d6;
    word-break: break-all;
    padding-top: 8px;
    border-top: 1px solid #eaecef;
  }
  .reference-tooltip::before,
  .reference-tooltip::after {
    content: '';
    position: absolute;
    left: 50%;
    bottom: -8px;
    transform: translateX(-50%);
    border-left: 8px solid transparent;
    border-right: 8px solid transparent;
    pointer-events: none;
  }
  .reference-tooltip::before {
    border-top: 8px solid #e1e4e8;
    bottom: -8px;
  }
  .reference-tooltip::after {
    border-top: 7px solid #ffffff;
    bottom: -7px;
  }
  @media (max-width: 640px) {
    .reference-tooltip {
      width: 280px;
      left: auto;
      right: 0;
      transform: translateY(-8px);
    }
    .reference-container:hover .reference-tooltip {
      transform: translateY(0);
    }
    .reference-tooltip::before,
    .reference-tooltip::after {
      left: auto;
      right: 16px;
    }
  }
  /* Dark mode support */
  @media (prefers-color-scheme: dark) {
    .reference-link {
      color: #58a6ff;
      background: rgba(88, 166, 255, 0.1);
    }
    .reference-link:hover {
      background: rgba(88, 166, 255, 0.2);
    }
    .reference-tooltip {
      background: #0d1117;
      border-color: #30363d;
    }
    .reference-title {
      color: #c9d1d9;
    }
    .reference-snippet {
      color: #8b949e;
    }
    .reference-url {
      color: #58a6ff;
      border-top-color: #30363d;
    }
    .reference-tooltip::before {
      border-top-color: #30363d;
    }
    .reference-tooltip::after {
      border-top-color: #0d1117;
    }
  }
</style>
"""


def format_response(
    text: str,
    sources: list[Source],
    promote_headings: bool = True,
) -> str:
    """
    Convert a citation-annotated model answer into styled HTML.

    Args:
        text: Model text with ``[n]`` reference markers.
        sources: Sources ordered by index; ``[n]`` refers to ``sources[n - 1]``.
        promote_headings: Turn ``Label:`` lines into headings.

    Returns:
        The citation stylesheet followed by the rendered HTML.
    """
    processed = text.replace("\r\n", "\n")

    if promote_headings:
        processed = _SECTION_HEADING.sub(r"## \1\2", processed)
        processed = _SUB_HEADING.sub(r"### \1", processed)

    processed = _BULLET.sub("* ", processed)
    processed = _FENCED_CODE.sub(_render_code_block, processed)
    processed = _INLINE_CODE.sub(r"<code>\1</code>", processed)
    processed = _REFERENCE.sub(lambda m: _render_reference(m, sources), processed)

    paragraphs = [p for p in processed.split("\n\n") if p]
    assembled = "\n\n".join(_wrap_paragraph(p) for p in paragraphs)

    return CITATION_STYLESHEET + _render_markdown(assembled)


def _render_code_block(match: re.Match) -> str:
    lang = match.group(1) or "text"
    return f'<pre><code class="language-{lang}">{match.group(2)}</code></pre>'


def _render_reference(match: re.Match, sources: list[Source]) -> str:
    """Expand ``[n]`` into a link with a hover tooltip; leave unknown numbers as-is."""
    number = int(match.group(1))
    if not 1 <= number <= len(sources):
        return match.group(0)

    source = sources[number - 1]
    # Kept on one line so markdown treats it as inline HTML
    return (
        f'<span {_REFERENCE_MARKER}>'
        f'<a href="{source.url}" target="_blank" rel="noopener noreferrer" '
        f'class="reference-link">[{number}]</a>'
        f'<div class="reference-tooltip">'
        f'<div class="reference-title">{source.title}</div>'
        f'<div class="reference-snippet">{source.snippet}</div>'
        f'<div class="reference-url">{source.url}</div>'
        f"</div></span>"
    )


def _wrap_paragraph(paragraph: str) -> str:
    if paragraph.startswith(_UNWRAPPED_PREFIXES) or _REFERENCE_MARKER in paragraph:
        return paragraph
    return f"<p>{paragraph}</p>"


def _render_markdown(text: str) -> str:
    try:
        return _markdown.render(text)
    except Exception:
        logger.exception("Markdown rendering failed; returning unrendered text")
        return text
