"""Text helpers for case folding and excerpting."""

from __future__ import annotations

from typing import Iterable, Tuple

Span = Tuple[int, int]

SEPARATORS = frozenset("/ _-.")


def fold_case(text: str) -> str:
    """Lower-case ``text`` one character at a time.

    Characters whose lower-case form is longer than one code point are kept
    as-is so offsets into the result line up with the original string.
    """
    folded = []
    for char in text:
        lower = char.lower()
        folded.append(lower if len(lower) == 1 else char)
    return "".join(folded)


def line_bounds(text: str, offset: int) -> Span:
    """Return the ``(start, end)`` of the line containing ``offset``."""
    start = text.rfind("\n", 0, offset) + 1
    end = text.find("\n", offset)
    if end == -1:
        end = len(text)
    return start, end


def excerpt_window(text: str, span: Span, *, width: int = 80) -> Span:
    """Pick a window of at most ``width`` characters on the line of ``span``.

    The window is centred on the span where possible and never crosses a
    line break.
    """
    line_start, line_end = line_bounds(text, span[0])
    if line_end - line_start <= width:
        return line_start, line_end

    match_len = span[1] - span[0]
    lead = max((width - match_len) // 2, 0)
    start = max(line_start, span[0] - lead)
    end = min(line_end, start + width)
    start = max(line_start, end - width)
    return start, end


def clip_spans(spans: Iterable[Span], window: Span) -> list[Span]:
    """Intersect ``spans`` with ``window`` and rebase them onto its start."""
    clipped = []
    for start, end in spans:
        lo = max(start, window[0])
        hi = min(end, window[1])
        if lo < hi:
            clipped.append((lo - window[0], hi - window[0]))
    return clipped


def first_line(text: str) -> str:
    return text.split("\n", 1)[0].strip()

