"""Cyclopts CLI entrypoint for building series_pages sites.

The ``series-pages`` console script renders a directory of Markdown posts
into a static HTML site grouped by collection. Every warning is printed to
stderr as it is reported by the build; a fatal error is printed to stderr and
the process exits with status 1.

Examples
--------
Build ``content/`` into ``_site/``:

>>> from series_pages.cli import app
>>> app(["build", "content", "_site"])  # doctest: +SKIP

Render with four worker threads and an explicit configuration file:

>>> app(
...     ["build", "content", "_site", "--config", "site.yml", "--jobs", "4"]
... )  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses as dc
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from ._constants import DEFAULT_CONFIG_FILENAME
from .config import SiteConfigError, load_site_config
from .pipeline import BuildPipeline

app = App(
    name="series-pages",
    config=cyclopts.config.Env("SERIES_PAGES_", command=False),  # type: ignore[unknown-argument]
)


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _fail(message: str) -> typ.NoReturn:
    print(f"error: {message}", file=sys.stderr)
    raise SystemExit(1)


@app.command(help="Build a static site from a directory of Markdown posts.")
def build(
    source: typ.Annotated[
        Path, Parameter(help="Directory containing Markdown sources")
    ] = Path(),
    output: typ.Annotated[
        Path, Parameter(help="Directory replaced by the built site")
    ] = Path("_site"),
    *,
    config: typ.Annotated[
        Path | None,
        Parameter(
            help=f"Path to site config (defaults to SOURCE/{DEFAULT_CONFIG_FILENAME})"
        ),
    ] = None,
    jobs: typ.Annotated[
        int | None, Parameter(help="Worker threads used for rendering")
    ] = None,
) -> None:
    """Build the site under ``source`` into ``output``.

    Parameters
    ----------
    source : Path, optional
        Root directory holding Markdown posts and static asset folders.
    output : Path, optional
        Output directory; replaced wholesale on success and left untouched on
        failure.
    config : Path or None, optional
        Site configuration file. When ``None``, ``SOURCE/_config.yml`` is used
        if it exists.
    jobs : int or None, optional
        Override for the configured number of rendering threads.

    Returns
    -------
    None
        Prints each written path to stdout and each warning to stderr.

    Raises
    ------
    SystemExit
        With status 1 when the configuration is invalid or the build fails.
    """
    try:
        if config is None:
            site_config = load_site_config(
                source / DEFAULT_CONFIG_FILENAME, required=False
            )
        else:
            site_config = load_site_config(config)
    except (FileNotFoundError, SiteConfigError) as exc:
        _fail(str(exc))

    if jobs is not None:
        if jobs < 1:
            _fail("--jobs must be a positive integer.")
        site_config = dc.replace(site_config, jobs=jobs)

    source_root = source.resolve()
    output_root = output.resolve()
    if output_root == source_root or output_root in source_root.parents:
        _fail("The output directory must not contain the source directory.")

    report = BuildPipeline(site_config, source, output).run()
    for warning in report.warnings:
        print(f"warning: {warning.message}", file=sys.stderr)
    if not report.succeeded:
        _fail(str(report.error))
    for path in report.written:
        print(f"wrote {_format_path(path)}")


def main() -> None:
    """Invoke the Cyclopts application that powers the ``series-pages`` command."""
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
