"""Rich renderables for match highlights."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from rich.style import Style
from rich.text import Text

from snipfinder.errors import ContentLoadError
from snipfinder.models import ContentMatch, FuzzyMatch, Snippet
from snipfinder.utils.text import Span, clip_spans, excerpt_window, first_line


class HighlightStyle(Enum):
    LIGHT = "light"
    DARK = "dark"


_HIGHLIGHTS = {
    HighlightStyle.LIGHT: Style(color="blue", bold=True, underline=True),
    HighlightStyle.DARK: Style(color="bright_yellow", bold=True),
}
_BASE = {
    HighlightStyle.LIGHT: Style(color="black"),
    HighlightStyle.DARK: Style(color="white"),
}


def highlight_style(style: HighlightStyle) -> Style:
    return _HIGHLIGHTS[style]


def _highlighted(plain: str, spans: Iterable[Span], style: HighlightStyle) -> Text:
    text = Text(plain, style=_BASE[style])
    for start, end in spans:
        text.stylize(_HIGHLIGHTS[style], start, end)
    return text


def render_name(match: FuzzyMatch, style: HighlightStyle = HighlightStyle.LIGHT) -> Text:
    """Snippet ``folder/name`` with the fuzzy-matched characters highlighted."""
    return _highlighted(match.snippet.fuzzy_index, match.spans, style)


def render_content(
    match: ContentMatch, style: HighlightStyle = HighlightStyle.LIGHT, *, width: int = 80
) -> Text:
    """One-line excerpt of the content around its first match."""
    span = match.first_span
    if span is None or not match.content:
        return Text("")
    window = excerpt_window(match.content, span, width=width)
    excerpt = match.content[window[0] : window[1]]
    return _highlighted(excerpt, clip_spans(match.spans, window), style)


def render_preview(snippet: Snippet, *, width: int = 80) -> str:
    """First line of a snippet body, or an empty string when it cannot be read."""
    try:
        line = first_line(snippet.searchable_content)
    except ContentLoadError:
        return ""
    return line if len(line) <= width else line[: width - 1] + "…"
