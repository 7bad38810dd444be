"""Load and validate site configuration YAML for series_pages builds.

This subpackage parses the site's ``_config.yml`` file, applies defaults for
absent keys, and produces a :class:`SiteConfig` that the build pipeline
consumes. The renderer never sees the whole configuration: it receives the
immutable :class:`DirectiveConfig` returned by :attr:`SiteConfig.directives`.

Examples
--------
>>> from series_pages.config import SiteConfig
>>> SiteConfig(url="https://example.org", baseurl="/blog").directives.baseurl
'/blog'
"""

from .loader import load_site_config
from .models import DirectiveConfig, DuplicatePolicy, SiteConfig, SiteConfigError

__all__ = [
    "DirectiveConfig",
    "DuplicatePolicy",
    "SiteConfig",
    "SiteConfigError",
    "load_site_config",
]
