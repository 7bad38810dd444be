"""Render document bodies into HTML fragments.

Rendering is a pure function of a body and a
:class:`~series_pages.config.DirectiveConfig`: the same inputs always produce
the same HTML and the same warnings. Fenced code is cut out before anything
else touches the body and comes back HTML-escaped but otherwise unchanged, so
samples such as Dockerfiles or CI workflows containing ``${{ }}`` expressions
are neither resolved nor reported.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from html import escape

from markdown import Markdown
from pygments import highlight
from pygments.formatters.html import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .directives import DirectiveResolver
from .fences import CodeStashExtension, FenceSegment, TextSegment, split_fences

if typ.TYPE_CHECKING:
    from .config import DirectiveConfig
    from .errors import UnresolvedDirective

CODE_TOKEN_BASE = "SERIESPAGESCODEBLOCK"


@dc.dataclass(frozen=True, slots=True)
class RenderResult:
    """HTML for one body plus the directives it left unresolved."""

    html: str
    warnings: tuple[UnresolvedDirective, ...] = ()


class HtmlContentRenderer:
    """Render Markdown bodies and fenced code with consistent markup."""

    def __init__(
        self, *, highlight_code: bool = False, pygments_style: str = "default"
    ) -> None:
        """Initialize a renderer.

        Parameters
        ----------
        highlight_code : bool, optional
            Syntax-highlight fenced code with Pygments instead of emitting plain
            escaped ``<pre><code>`` blocks. Defaults to ``False``.
        pygments_style : str, optional
            Name of the Pygments style used for highlighting and the
            stylesheet. Defaults to ``"default"``.
        """
        self.highlight_code = highlight_code
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._formatter.get_style_defs(".codehilite")

    def render(
        self,
        body: str,
        config: DirectiveConfig,
        *,
        identity: str = "<body>",
        first_line: int = 1,
    ) -> RenderResult:
        """Convert ``body`` into HTML, resolving directives against ``config``.

        Parameters
        ----------
        body : str
            Markdown text of a document, front matter already removed.
        config : DirectiveConfig
            Values for ``site.*`` directives and asset URL filters.
        identity : str, optional
            Document identity used when reporting unresolved directives.
        first_line : int, optional
            Source line number of the first body line; warnings report lines
            counted from it.

        Returns
        -------
        RenderResult
            The HTML fragment and any unresolved-directive warnings in body
            order.
        """
        resolver = DirectiveResolver(config, identity)
        blocks: dict[str, str] = {}
        parts: list[str] = []
        token_base = _token_base(body)
        for segment in split_fences(body, first_line=first_line):
            match segment:
                case TextSegment(text=text, first_line=start):
                    parts.append(resolver.resolve(text, first_line=start))
                case FenceSegment():
                    token = f"{token_base}{len(blocks)}"
                    blocks[token] = self.code_block(segment.content, segment.language)
                    parts.append(f"\n{segment.container_prefix}{token}\n\n")
        source = "".join(parts)
        if not source.strip():
            return RenderResult("", tuple(resolver.warnings))
        md = Markdown(
            extensions=["tables", "sane_lists", CodeStashExtension(blocks)],
            output_format="html",
        )
        return RenderResult(md.convert(source), tuple(resolver.warnings))

    def code_block(self, code: str, language: str | None = None) -> str:
        """Render ``code`` into a ``codehilite`` block tagged with its language.

        Parameters
        ----------
        code : str
            Source snippet, reproduced as the element's text content.
        language : str, optional
            Info-string language; ``"text"`` when not provided.

        Returns
        -------
        str
            HTML with a ``data-language`` attribute on the wrapping ``div``.
        """
        lang = language or "text"
        safe_lang = escape(lang, quote=True)
        if not self.highlight_code:
            return (
                f'<div class="codehilite" data-language="{safe_lang}">'
                f'<pre><code class="language-{safe_lang}">'
                f"{escape(code, quote=False)}</code></pre></div>"
            )
        try:
            lexer = get_lexer_by_name(lang, stripnl=False, ensurenl=False)
        except ClassNotFound:
            lexer = get_lexer_by_name("text", stripnl=False, ensurenl=False)
        formatter = HtmlFormatter(style=self.pygments_style, cssclass="codehilite")
        html = highlight(code, lexer, formatter)
        return html.replace(
            '<div class="codehilite">',
            f'<div class="codehilite" data-language="{safe_lang}">',
            1,
        )


def _token_base(body: str) -> str:
    """Return a token stem that does not occur anywhere in ``body``."""
    base = CODE_TOKEN_BASE
    while base in body:
        base += "X"
    return base


def render_document(body: str, config: DirectiveConfig) -> RenderResult:
    """Render ``body`` with a default, non-highlighting renderer."""
    return HtmlContentRenderer().render(body, config)


__all__ = [
    "CODE_TOKEN_BASE",
    "HtmlContentRenderer",
    "RenderResult",
    "render_document",
]
