"""Unit tests for site directive resolution."""

from __future__ import annotations

import pytest

from series_pages.config import DirectiveConfig
from series_pages.directives import DirectiveResolver
from series_pages.errors import UnresolvedDirective

CONFIG = DirectiveConfig(url="https://example.github.io", baseurl="/ml-blog")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("{{ site.baseurl }}/assets/img.png", "/ml-blog/assets/img.png"),
        ("{{site.url}}{{ site.baseurl }}/", "https://example.github.io/ml-blog/"),
        ("{{- site.url -}}", "https://example.github.io"),
        ('{{ "/assets/a.png" | relative_url }}', "/ml-blog/assets/a.png"),
        ("{{ 'assets/a.png' | relative_url }}", "/ml-blog/assets/a.png"),
        (
            '{{ "/assets/a.png" | absolute_url }}',
            "https://example.github.io/ml-blog/assets/a.png",
        ),
    ],
)
def test_known_directives_are_substituted(text: str, expected: str) -> None:
    resolver = DirectiveResolver(CONFIG, "post")
    assert resolver.resolve(text) == expected
    assert resolver.warnings == []


def test_unknown_directives_are_kept_and_reported() -> None:
    """Unrecognized directives stay verbatim and carry their line number."""
    resolver = DirectiveResolver(CONFIG, "_posts/2020-01-01-a")
    text = "Intro\n{% include figure.html src=x %}\nMore {{ page.title }}\n"
    assert resolver.resolve(text, first_line=4) == text
    assert resolver.warnings == [
        UnresolvedDirective("_posts/2020-01-01-a", "{% include figure.html src=x %}", 5),
        UnresolvedDirective("_posts/2020-01-01-a", "{{ page.title }}", 6),
    ]


def test_site_keys_outside_the_mapping_are_unresolved() -> None:
    resolver = DirectiveResolver(CONFIG, "post")
    assert resolver.resolve("{{ site.title }}") == "{{ site.title }}"
    assert [warning.directive for warning in resolver.warnings] == ["{{ site.title }}"]


def test_raw_blocks_pass_through_without_markers() -> None:
    resolver = DirectiveResolver(CONFIG, "post")
    text = "{% raw %}token: ${{ secrets.TOKEN }} {% include x %}{% endraw %} {{ site.url }}"
    assert resolver.resolve(text) == (
        "token: ${{ secrets.TOKEN }} {% include x %} https://example.github.io"
    )
    assert resolver.warnings == []


def test_raw_state_spans_calls() -> None:
    """A raw block opened in one segment should stay open into the next."""
    resolver = DirectiveResolver(CONFIG, "post")
    assert resolver.resolve("before {%- raw -%}\n") == "before \n"
    assert resolver.in_raw
    assert resolver.resolve("{{ kept }}\n{% endraw %}after\n") == "{{ kept }}\nafter\n"
    assert not resolver.in_raw
    assert resolver.warnings == []


def test_stray_endraw_is_reported() -> None:
    resolver = DirectiveResolver(CONFIG, "post")
    assert resolver.resolve("{% endraw %}") == "{% endraw %}"
    assert len(resolver.warnings) == 1


def test_absolute_urls_are_left_alone_by_filters() -> None:
    resolver = DirectiveResolver(CONFIG, "post")
    text = '{{ "https://cdn.example.com/x.js" | relative_url }}'
    assert resolver.resolve(text) == "https://cdn.example.com/x.js"
