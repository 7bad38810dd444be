"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .helpers import _normalize_baseurl, _normalize_patterns, _optional_str
from .models import DuplicatePolicy, SiteConfig, SiteConfigError

if typ.TYPE_CHECKING:
    from pathlib import Path


def load_site_config(path: Path | None, *, required: bool = True) -> SiteConfig:
    """Load the YAML configuration describing site-wide build settings.

    Parameters
    ----------
    path : Path or None
        Filesystem path to the YAML configuration file (for example,
        ``_config.yml``). ``None`` returns the defaults.
    required : bool, optional
        When ``False``, a missing file yields the defaults instead of raising.

    Returns
    -------
    SiteConfig
        Parsed configuration with defaults applied for absent keys.

    Raises
    ------
    FileNotFoundError
        If ``required`` is set and the file does not exist at ``path``.
    SiteConfigError
        If the YAML cannot be parsed, the top level is not a mapping, or a
        recognized key holds an invalid value.

    Examples
    --------
    >>> from pathlib import Path
    >>> from series_pages.config import load_site_config
    >>> load_site_config(None).baseurl
    ''
    >>> config = load_site_config(Path("_config.yml"))  # doctest: +SKIP
    >>> config.directives.url  # doctest: +SKIP
    'https://example.github.io'
    """
    if path is None:
        return SiteConfig()
    if not path.exists():
        if not required:
            return SiteConfig()
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
    except YAMLError as exc:
        msg = f"Configuration file '{path}' is not valid YAML: {exc}"
        raise SiteConfigError(msg) from exc
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise SiteConfigError(msg)
    return _build_site_config(dict(loaded))


def _build_site_config(raw: typ.Mapping[str, typ.Any]) -> SiteConfig:
    """Build a SiteConfig from a parsed mapping, ignoring unknown keys."""
    defaults = SiteConfig()
    exclude = (
        _normalize_patterns(raw["exclude"], key="exclude")
        if "exclude" in raw
        else defaults.exclude
    )
    static_dirs = (
        _normalize_patterns(raw["static_dirs"], key="static_dirs")
        if "static_dirs" in raw
        else defaults.static_dirs
    )

    duplicates_raw = raw.get("duplicates", defaults.duplicates.value)
    try:
        duplicates = DuplicatePolicy(str(duplicates_raw).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(policy.value for policy in DuplicatePolicy)
        msg = f"'duplicates' must be one of: {allowed} (got {duplicates_raw!r})."
        raise SiteConfigError(msg) from exc

    jobs = raw.get("jobs", defaults.jobs)
    if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
        msg = f"'jobs' must be a positive integer (got {jobs!r})."
        raise SiteConfigError(msg)

    highlight = raw.get("highlight", defaults.highlight)
    if not isinstance(highlight, bool):
        msg = f"'highlight' must be true or false (got {highlight!r})."
        raise SiteConfigError(msg)

    return SiteConfig(
        url=(_optional_str(raw.get("url")) or "").rstrip("/"),
        baseurl=_normalize_baseurl(raw.get("baseurl")),
        title=_optional_str(raw.get("title")) or defaults.title,
        description=_optional_str(raw.get("description")) or "",
        exclude=exclude,
        static_dirs=static_dirs,
        duplicates=duplicates,
        highlight=highlight,
        pygments_style=_optional_str(raw.get("pygments_style"))
        or defaults.pygments_style,
        jobs=jobs,
    )


__all__ = ["load_site_config"]
