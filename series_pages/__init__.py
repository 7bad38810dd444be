"""Build static sites from series of Markdown posts.

This package exposes the CLI entry points used by the ``series-pages``
console script along with the build pipeline it drives: load posts with front
matter, group them into ordered collections, render their Markdown bodies,
and assemble per-post pages, per-collection indexes, and a global index.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.
- ``BuildPipeline``: Programmatic access to a full site build.

Examples
--------
>>> from series_pages import main
>>> main()  # doctest: +SKIP
>>> callable(main)
True
"""

from __future__ import annotations

from .cli import app, main
from .pipeline import BuildPipeline, BuildReport, PipelineState

__all__ = ["BuildPipeline", "BuildReport", "PipelineState", "app", "main"]
