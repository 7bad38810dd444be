"""Typed dataclasses describing series_pages site configuration."""

from __future__ import annotations

import dataclasses as dc
import enum


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


class DuplicatePolicy(enum.StrEnum):
    """How near-duplicate documents (same collection and title) are handled."""

    KEEP = "keep"
    FIRST = "first"


@dc.dataclass(frozen=True, slots=True)
class DirectiveConfig:
    """Values substituted for site directives while rendering bodies.

    Attributes
    ----------
    url : str
        Absolute site origin, for example ``https://example.github.io``.
    baseurl : str
        Path prefix the site is served under; empty or ``/``-prefixed with no
        trailing slash.
    """

    url: str = ""
    baseurl: str = ""

    def lookup(self, key: str) -> str | None:
        """Return the value for a ``site.<key>`` directive, or ``None``."""
        match key:
            case "url":
                return self.url
            case "baseurl":
                return self.baseurl
            case _:
                return None

    def relative_url(self, path: str) -> str:
        """Prefix ``path`` with ``baseurl`` the way asset filters expect."""
        if not path:
            return self.baseurl or "/"
        if "://" in path or path.startswith("//"):
            return path
        normalized = path if path.startswith("/") else f"/{path}"
        return f"{self.baseurl}{normalized}"

    def absolute_url(self, path: str) -> str:
        """Return ``path`` rooted at ``url`` and ``baseurl``."""
        relative = self.relative_url(path)
        if "://" in relative or relative.startswith("//"):
            return relative
        return f"{self.url.rstrip('/')}{relative}"


@dc.dataclass(slots=True)
class SiteConfig:
    """Build-wide settings loaded from ``_config.yml``."""

    url: str = ""
    baseurl: str = ""
    title: str = "Posts"
    description: str = ""
    exclude: list[str] = dc.field(default_factory=lambda: ["README.md", "index.md"])
    static_dirs: list[str] = dc.field(default_factory=lambda: ["assets"])
    duplicates: DuplicatePolicy = DuplicatePolicy.KEEP
    highlight: bool = False
    pygments_style: str = "default"
    jobs: int = 1

    @property
    def directives(self) -> DirectiveConfig:
        """Return the immutable directive values handed to the renderer."""
        return DirectiveConfig(url=self.url, baseurl=self.baseurl)


__all__ = ["DirectiveConfig", "DuplicatePolicy", "SiteConfig", "SiteConfigError"]
