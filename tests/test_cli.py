from __future__ import annotations

import typing as typ

import pytest

from series_pages import cli

if typ.TYPE_CHECKING:
    from pathlib import Path


def _write_source(root: Path, name: str, text: str) -> None:
    path = root / "_posts" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def content(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    root = tmp_path / "content"
    _write_source(
        root,
        "2021-01-01-intro.md",
        "---\ntitle: Intro\ncollection: Demo\n---\nSee {{ site.baseurl }}/x\n",
    )
    (root / "_config.yml").write_text(
        "title: Demo site\nbaseurl: /blog\n", encoding="utf-8"
    )
    return root


def test_build_prints_written_paths(
    content: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.build(content, tmp_path / "site")

    out, err = capsys.readouterr()
    assert "wrote site/posts/2021-01-01-intro.html" in out.splitlines()
    assert "wrote site/index.html" in out.splitlines()
    assert err == ""
    page = (tmp_path / "site" / "posts" / "2021-01-01-intro.html").read_text(
        encoding="utf-8"
    )
    assert "See /blog/x" in page


def test_build_reports_warnings_on_stderr(
    content: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_source(
        content,
        "2021-01-02-next.md",
        "---\ntitle: Next\ncollection: Demo\n---\n\n{% include video.html %}\n",
    )

    cli.build(content, tmp_path / "site")

    _, err = capsys.readouterr()
    assert err.startswith("warning: _posts/2021-01-02-next:6:")
    assert "{% include video.html %}" in err


def test_malformed_front_matter_exits_with_error(
    content: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_source(content, "2021-01-03-bad.md", "---\ntitle: [broken\n---\n")

    with pytest.raises(SystemExit) as excinfo:
        cli.build(content, tmp_path / "site")

    assert excinfo.value.code == 1
    _, err = capsys.readouterr()
    assert "error: _posts/2021-01-03-bad: malformed front matter" in err
    assert not (tmp_path / "site").exists()


def test_explicit_config_must_exist(
    content: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.build(content, tmp_path / "site", config=tmp_path / "missing.yml")
    assert excinfo.value.code == 1
    assert capsys.readouterr().err.startswith("error: ")


def test_invalid_config_exits_with_error(
    content: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (content / "_config.yml").write_text("duplicates: merge\n", encoding="utf-8")
    with pytest.raises(SystemExit):
        cli.build(content, tmp_path / "site")
    assert "duplicates" in capsys.readouterr().err


def test_jobs_must_be_positive(content: Path, tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        cli.build(content, tmp_path / "site", jobs=0)


@pytest.mark.parametrize("relative", [".", ".."])
def test_output_may_not_contain_source(
    content: Path, relative: str, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit):
        cli.build(content, content / relative)
    assert "must not contain the source" in capsys.readouterr().err
    assert (content / "_posts" / "2021-01-01-intro.md").exists()


def test_jobs_override_is_accepted(
    content: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.build(content, tmp_path / "site", jobs=3)
    assert "wrote site/index.html" in capsys.readouterr().out.splitlines()


def test_undecodable_source_exits_with_error(
    content: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (content / "_posts" / "2021-01-04-binary.md").write_bytes(b"\xff\xfe---\n")

    with pytest.raises(SystemExit) as excinfo:
        cli.build(content, tmp_path / "site")

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "error: _posts/2021-01-04-binary: malformed front matter" in err
    assert "not valid UTF-8" in err
