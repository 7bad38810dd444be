"""Resolve site directives embedded in document bodies.

Bodies may carry Liquid-style placeholders inherited from static-site
authoring: ``{{ site.baseurl }}`` and ``{{ site.url }}``, the asset filters
``{{ "/img/a.png" | relative_url }}`` and ``{{ "/img/a.png" | absolute_url }}``,
and ``{% raw %}``/``{% endraw %}`` markers that protect literal braces. Those
are resolved by textual substitution against a
:class:`~series_pages.config.DirectiveConfig`. Anything else in ``{{ }}`` or
``{% %}`` is left exactly as written and reported.

Example
-------
>>> from series_pages.config import DirectiveConfig
>>> from series_pages.directives import DirectiveResolver
>>> resolver = DirectiveResolver(DirectiveConfig(baseurl="/blog"), "posts/a")
>>> resolver.resolve('<img src="{{ site.baseurl }}/a.png">')
'<img src="/blog/a.png">'
>>> resolver.resolve("{% raw %}{{ secrets.TOKEN }}{% endraw %}")
'{{ secrets.TOKEN }}'
"""

from __future__ import annotations

import re
import typing as typ

from .errors import UnresolvedDirective

if typ.TYPE_CHECKING:
    from .config import DirectiveConfig

DIRECTIVE_PATTERN = re.compile(
    r"\{%-?\s*(?P<marker>raw|endraw)\s*-?%\}|\{\{.*?\}\}|\{%.*?%\}"
)
SITE_VARIABLE_PATTERN = re.compile(r"^\{\{-?\s*site\.(?P<key>\w+)\s*-?\}\}$")
URL_FILTER_PATTERN = re.compile(
    r"""^\{\{-?\s*(?P<quote>["'])(?P<path>.*?)(?P=quote)\s*\|\s*"""
    r"""(?P<filter>relative_url|absolute_url)\s*-?\}\}$"""
)


class DirectiveResolver:
    """Substitute known directives in the text segments of one document.

    The resolver is stateful across calls so that a ``{% raw %}`` block may
    open in one text segment and close in a later one, with fenced code in
    between. Create one resolver per document render.
    """

    def __init__(self, config: DirectiveConfig, identity: str) -> None:
        self.config = config
        self.identity = identity
        self.in_raw = False
        self.warnings: list[UnresolvedDirective] = []

    def resolve(self, text: str, *, first_line: int = 1) -> str:
        """Return ``text`` with known directives substituted.

        Parameters
        ----------
        text : str
            A run of body text containing no fenced code.
        first_line : int, optional
            1-based source line number on which ``text`` starts; used when
            reporting unresolved directives.
        """
        pieces: list[str] = []
        cursor = 0
        for match in DIRECTIVE_PATTERN.finditer(text):
            pieces.append(text[cursor : match.start()])
            cursor = match.end()
            marker = match.group("marker")
            directive = match.group(0)
            if self.in_raw:
                if marker == "endraw":
                    self.in_raw = False
                else:
                    pieces.append(directive)
                continue
            if marker == "raw":
                self.in_raw = True
                continue
            replacement = self._substitute(directive)
            if replacement is None:
                line = first_line + text.count("\n", 0, match.start())
                self.warnings.append(
                    UnresolvedDirective(self.identity, directive, line)
                )
                replacement = directive
            pieces.append(replacement)
        pieces.append(text[cursor:])
        return "".join(pieces)

    def _substitute(self, directive: str) -> str | None:
        """Return the replacement for a recognized directive, else ``None``."""
        if match := SITE_VARIABLE_PATTERN.match(directive):
            return self.config.lookup(match.group("key"))
        if match := URL_FILTER_PATTERN.match(directive):
            path = match.group("path")
            if match.group("filter") == "relative_url":
                return self.config.relative_url(path)
            return self.config.absolute_url(path)
        return None


__all__ = ["DIRECTIVE_PATTERN", "DirectiveResolver"]
