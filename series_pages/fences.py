r"""Split document bodies around fenced code and stash rendered blocks.

Fenced code must survive rendering untouched, so it never reaches directive
resolution or Python-Markdown. :func:`split_fences` cuts a body into text and
fence segments; the renderer swaps each fence for a token line, and
:class:`CodeStashExtension` replaces those tokens with pre-rendered HTML via
Markdown's raw HTML stash.

Fences may sit inside blockquotes (``> ```yaml``); the ``>`` markers are
removed from the fence content and put back in front of the token line so the
block stays inside its quote.

Example
-------
>>> from series_pages.fences import FenceSegment, split_fences
>>> segments = split_fences("Intro\n```python\nprint('hi')\n```\nOutro\n")
>>> [type(segment).__name__ for segment in segments]
['TextSegment', 'FenceSegment', 'TextSegment']
>>> segments[1].content
"print('hi')\n"
>>> split_fences("> ```sh\n> ls\n> ```\n")[0].content
'ls\n'
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any

QUOTE_PREFIX_PATTERN = re.compile(r"^(?:[ \t]{0,3}>[ \t]?)*")
QUOTE_MARKER_PATTERN = re.compile(r"[ \t]{0,3}>[ \t]?")
FENCE_OPEN_PATTERN = re.compile(
    r"^(?P<indent>[ \t]*)(?P<fence>`{3,}|~{3,})(?P<info>.*)$"
)
FENCE_CLOSE_PATTERN = re.compile(r"^[ \t]*(?P<fence>`{3,}|~{3,})[ \t]*$")
LIST_ITEM_PATTERN = re.compile(r"^[ \t]*(?:[-*+]|\d+[.)])[ \t]")
LANGUAGE_PATTERN = re.compile(r"[A-Za-z0-9_+#.-]+")
TOKEN_LINE_PATTERN = re.compile(
    r"^(?P<prefix>(?:[ \t]*>[ \t]?)*[ \t]*)(?P<token>\S+)[ \t]*$"
)


@dc.dataclass(frozen=True, slots=True)
class TextSegment:
    """Body text outside any fence, starting on ``first_line`` (1-based)."""

    text: str
    first_line: int


@dc.dataclass(frozen=True, slots=True)
class FenceSegment:
    """A fenced code block; ``content`` excludes the fence lines themselves.

    ``quote`` holds the blockquote markers in front of the opening fence and
    ``nested`` records whether the fence is indented under a list item.
    """

    indent: str
    info: str
    content: str
    first_line: int
    quote: str = ""
    nested: bool = False

    @property
    def language(self) -> str | None:
        """Return the first word of the info string, if it names a language."""
        match = LANGUAGE_PATTERN.match(self.info.strip())
        return match.group(0) if match else None

    @property
    def container_prefix(self) -> str:
        """Return the text placed before a replacement line for this block.

        Indentation is only kept under list items; elsewhere four spaces
        would turn the replacement line into an indented code block.
        """
        return self.quote + (self.indent if self.nested else "")


Segment = TextSegment | FenceSegment


@dc.dataclass(frozen=True, slots=True)
class _Opener:
    quote: str
    indent: str
    fence: str
    info: str

    @property
    def depth(self) -> int:
        return self.quote.count(">")


def split_fences(body: str, *, first_line: int = 1) -> list[Segment]:
    """Cut ``body`` into alternating text and fenced-code segments.

    A fence opens with three or more backticks or tildes at any indentation,
    optionally behind blockquote markers, and closes on a line holding only
    the same character repeated at least as many times. An unclosed fence
    runs to the end of the body, or to the first line that leaves its
    blockquote.

    Parameters
    ----------
    body : str
        Markdown text.
    first_line : int, optional
        Line number of the first body line, used for segment positions.
    """
    lines = body.splitlines(keepends=True)
    segments: list[Segment] = []
    text_lines: list[str] = []
    text_start = 0
    idx = 0
    while idx < len(lines):
        opener = _match_opener(lines[idx])
        if opener is None:
            text_lines.append(lines[idx])
            idx += 1
            continue
        if text_lines:
            segments.append(TextSegment("".join(text_lines), first_line + text_start))
            text_lines = []
        content, resume = _read_fence(lines, idx + 1, opener)
        segments.append(
            FenceSegment(
                indent=opener.indent,
                info=opener.info,
                content="".join(content),
                first_line=first_line + idx,
                quote=opener.quote,
                nested=_under_list_item(lines, idx, opener),
            )
        )
        idx = resume
        text_start = idx
    if text_lines:
        segments.append(TextSegment("".join(text_lines), first_line + text_start))
    return segments


def _match_opener(line: str) -> _Opener | None:
    text = line.rstrip("\r\n")
    quote = QUOTE_PREFIX_PATTERN.match(text).group(0)
    match = FENCE_OPEN_PATTERN.match(text[len(quote) :])
    if not match:
        return None
    fence = match.group("fence")
    info = match.group("info")
    if fence[0] == "`" and "`" in info:
        return None
    return _Opener(quote, match.group("indent"), fence, info)


def _strip_quote(line: str, depth: int) -> str | None:
    """Remove ``depth`` blockquote markers from ``line``; ``None`` if absent."""
    rest = line
    for _ in range(depth):
        match = QUOTE_MARKER_PATTERN.match(rest)
        if not match:
            return None
        rest = rest[match.end() :]
    return rest


def _read_fence(
    lines: cabc.Sequence[str], start: int, opener: _Opener
) -> tuple[list[str], int]:
    """Return the fence's content lines and the index to resume scanning at."""
    content: list[str] = []
    for idx in range(start, len(lines)):
        rest = _strip_quote(lines[idx], opener.depth)
        if rest is None:
            return content, idx
        match = FENCE_CLOSE_PATTERN.match(rest.rstrip("\r\n"))
        if match:
            candidate = match.group("fence")
            if candidate[0] == opener.fence[0] and len(candidate) >= len(
                opener.fence
            ):
                return content, idx + 1
        content.append(rest)
    return content, len(lines)


def _indent_width(text: str) -> int:
    return len(text.expandtabs(4)) - len(text.expandtabs(4).lstrip(" "))


def _under_list_item(
    lines: cabc.Sequence[str], idx: int, opener: _Opener
) -> bool:
    """Return whether an indented fence continues an earlier list item."""
    width = _indent_width(opener.indent)
    if width == 0:
        return False
    for previous in reversed(lines[:idx]):
        rest = _strip_quote(previous, opener.depth)
        if rest is None:
            return False
        if not rest.strip():
            continue
        if LIST_ITEM_PATTERN.match(rest) and _indent_width(rest) < width:
            return True
        if _indent_width(rest) == 0:
            return False
    return False


class CodeStashExtension(Extension):
    """Swap token lines for pre-rendered code HTML during Markdown conversion.

    ``blocks`` maps each token to the HTML that replaces it. Tokens must sit
    alone on their line; blockquote markers and indentation in front of them
    are kept so blocks stay inside their quote or list item.
    """

    def __init__(self, blocks: cabc.Mapping[str, str]) -> None:
        super().__init__()
        self.blocks = dict(blocks)

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the stash preprocessor ahead of raw HTML handling."""
        md.preprocessors.register(
            CodeStashPreprocessor(md, self.blocks), "series_pages_code_stash", 25
        )


class CodeStashPreprocessor(Preprocessor):
    """Replace code tokens with Markdown HTML stash placeholders."""

    def __init__(self, md: Markdown, blocks: cabc.Mapping[str, str]) -> None:
        super().__init__(md)
        self.blocks = blocks

    def run(self, lines: list[str]) -> list[str]:
        output: list[str] = []
        for line in lines:
            match = TOKEN_LINE_PATTERN.match(line)
            html = self.blocks.get(match.group("token")) if match else None
            if html is None:
                output.append(line)
                continue
            prefix = match.group("prefix")
            output.append(f"{prefix}{self.md.htmlStash.store(html)}")
        return output


__all__ = [
    "CodeStashExtension",
    "FenceSegment",
    "Segment",
    "TextSegment",
    "split_fences",
]
