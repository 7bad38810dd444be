"""Shared steps for the site build scenarios."""

from __future__ import annotations

import typing as typ

import pytest
from pytest_bdd import then, when

from series_pages.config import SiteConfig
from series_pages.pipeline import BuildPipeline

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from series_pages.pipeline import BuildReport


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    root = tmp_path / "content"
    root.mkdir()
    return root


@pytest.fixture
def write_post(source_root: Path) -> cabc.Callable[[str, str], Path]:
    """Return a helper that writes ``_posts/<name>`` under ``source_root``."""

    def _write(name: str, text: str) -> Path:
        path = source_root / "_posts" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@when("I build the site")
def when_build(
    tmp_path: Path, source_root: Path, scenario_state: dict[str, object]
) -> None:
    """Run a full build of ``source_root`` into ``tmp_path / "site"``."""
    output = tmp_path / "site"
    config = SiteConfig(url="https://example.github.io", baseurl="/ml-blog")
    scenario_state["output"] = output
    scenario_state["report"] = BuildPipeline(config, source_root, output).run()


@then("the build succeeds without warnings")
def then_build_succeeds(scenario_state: dict[str, object]) -> None:
    report = typ.cast("BuildReport", scenario_state["report"])
    assert report.succeeded, f"build failed: {report.error}"
    assert report.warnings == []
