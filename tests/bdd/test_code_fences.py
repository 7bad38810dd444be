"""Behaviour tests for fenced code blocks in published posts.

``code_fences.feature`` checks that a CI workflow sample full of ``${{ }}``
expressions is published byte for byte, and that a directive the build does
not understand is left in the page and reported once.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from bs4 import BeautifulSoup
from pytest_bdd import given, scenarios, then

from series_pages.errors import UnresolvedDirective

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from series_pages.pipeline import BuildReport

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "code_fences.feature"
scenarios(FEATURE_FILE)

WORKFLOW_SAMPLE = (
    "name: Deploy\n"
    "on:\n"
    "  push:\n"
    "    branches: [main]\n"
    "jobs:\n"
    "  deploy:\n"
    "    runs-on: ubuntu-latest\n"
    "    steps:\n"
    "      - uses: actions/checkout@v4\n"
    "      - run: echo '${{ secrets.GCP_SA_KEY }}' > key.json\n"
    '      - run: gcloud run deploy --image "{{ site.url }}" --flag=a&b<c\n'
)

DIRECTIVE = "{% include youtube.html id=dQw4w9WgXcQ %}"


def _page(scenario_state: dict[str, object]) -> str:
    output = typ.cast("Path", scenario_state["output"])
    return (output / "posts" / "2021-02-01-deploy.html").read_text(encoding="utf-8")


@given("a post containing a fenced workflow sample with template expressions")
def given_workflow_post(write_post: cabc.Callable[[str, str], Path]) -> None:
    write_post(
        "2021-02-01-deploy.md",
        "---\ntitle: Deploying with GitHub Actions\ncollection: Deploy\n---\n"
        "Add this workflow:\n\n"
        f"```yaml\n{WORKFLOW_SAMPLE}```\n\n"
        "Push to `main` to trigger it.\n",
    )


@given("a post containing an include directive outside any fence")
def given_directive_post(write_post: cabc.Callable[[str, str], Path]) -> None:
    write_post(
        "2021-02-01-deploy.md",
        "---\ntitle: Demo video\n---\nWatch the walkthrough:\n\n"
        f"{DIRECTIVE}\n",
    )


@then("the rendered code block text equals the workflow sample")
def then_code_matches(scenario_state: dict[str, object]) -> None:
    soup = BeautifulSoup(_page(scenario_state), "html.parser")
    blocks = soup.select("div.codehilite code")
    assert [block.get_text() for block in blocks] == [WORKFLOW_SAMPLE]
    assert blocks[0].find_parent("div")["data-language"] == "yaml"


@then("the directive text appears unchanged in the rendered page")
def then_directive_kept(scenario_state: dict[str, object]) -> None:
    assert DIRECTIVE in _page(scenario_state)


@then("exactly one unresolved directive warning is reported")
def then_one_warning(scenario_state: dict[str, object]) -> None:
    report = typ.cast("BuildReport", scenario_state["report"])
    assert report.succeeded
    assert report.warnings == [
        UnresolvedDirective("_posts/2021-02-01-deploy", DIRECTIVE, 6)
    ]
