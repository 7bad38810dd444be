r"""Load Markdown content sources into structured documents.

A content source is a Markdown file whose text opens with a YAML front matter
block delimited by ``---`` lines. The loader parses the block into a
:class:`Document` and keeps everything after the closing delimiter as the
document body, byte-for-byte; fenced code and directives are not interpreted
here.

Example
-------
>>> from series_pages.documents import ContentSource, load_documents
>>> source = ContentSource("posts/2020-05-01-intro", "---\ntitle: Intro\n---\nHi\n")
>>> documents = load_documents([source])
>>> documents["posts/2020-05-01-intro"].published.date().isoformat()
'2020-05-01'
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import enum
import fnmatch
import re
import types
import typing as typ
from pathlib import Path, PurePosixPath

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ._constants import MARKDOWN_SUFFIXES
from .config.helpers import _parse_timestamp
from .errors import DuplicateIdentity, MalformedMetadata

if typ.TYPE_CHECKING:
    import collections.abc as cabc

DATE_PREFIX_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})-(.+)$")
OPENING_DELIMITER = "---"
CLOSING_DELIMITERS = ("---", "...")
RECOGNIZED_KEYS = frozenset({"title", "layout", "collection", "classes", "date"})


class Layout(enum.StrEnum):
    """Closed set of layouts a document may request."""

    POST = "post"
    PAGE = "page"
    DEFAULT = "default"


@dc.dataclass(frozen=True, slots=True)
class ContentSource:
    """Raw text of one content file, keyed by its document identity."""

    identity: str
    text: str


@dc.dataclass(frozen=True, slots=True)
class Document:
    """A parsed content source.

    Attributes
    ----------
    identity : str
        Source path relative to the input root, without its suffix.
    slug : str
        File stem with any ``YYYY-MM-DD-`` prefix removed.
    title : str
        Title declared in the front matter.
    layout : Layout
        Layout requested by the front matter; ``post`` when absent.
    collection : str or None
        Declared collection (series) name.
    classes : str or None
        Extra CSS classes applied to the page body.
    published : datetime or None
        Publish date in UTC, from the ``date`` key or the filename prefix.
    body : str
        Everything after the front matter, unmodified.
    extra : Mapping[str, Any]
        Unrecognized front matter keys.
    body_line : int
        Line number in the source file on which ``body`` starts.
    """

    identity: str
    slug: str
    title: str
    layout: Layout
    collection: str | None
    classes: str | None
    published: dt.datetime | None
    body: str
    extra: cabc.Mapping[str, typ.Any] = dc.field(
        default_factory=lambda: types.MappingProxyType({})
    )
    body_line: int = 1


def discover_sources(
    root: Path,
    *,
    exclude: cabc.Sequence[str] = (),
    static_dirs: cabc.Sequence[str] = (),
) -> list[ContentSource]:
    """Collect Markdown content sources below ``root`` in sorted path order.

    Hidden files and directories are skipped, as are paths (relative to
    ``root``) matching any glob in ``exclude`` and anything below the
    ``static_dirs`` folders, which are published as plain files.

    Raises
    ------
    FileNotFoundError
        If ``root`` is not a directory.
    DuplicateIdentity
        If two files differ only by their Markdown suffix.
    MalformedMetadata
        If a file is not valid UTF-8.
    """
    if not root.is_dir():
        msg = f"Content directory '{root}' not found."
        raise FileNotFoundError(msg)

    sources: list[ContentSource] = []
    seen: set[str] = set()
    static_roots = [PurePosixPath(name.strip("/")) for name in static_dirs]
    for path in sorted(root.rglob("*")):
        if path.suffix.lower() not in MARKDOWN_SUFFIXES or not path.is_file():
            continue
        relative = PurePosixPath(path.relative_to(root).as_posix())
        if any(part.startswith(".") for part in relative.parts):
            continue
        if any(fnmatch.fnmatch(str(relative), pattern) for pattern in exclude):
            continue
        if any(relative.is_relative_to(static) for static in static_roots):
            continue
        identity = str(relative.with_suffix(""))
        if identity in seen:
            raise DuplicateIdentity(identity)
        seen.add(identity)
        try:
            text = path.read_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            reason = f"not valid UTF-8 (byte {exc.start})"
            raise MalformedMetadata(identity, reason) from exc
        sources.append(ContentSource(identity, text))
    return sources


def load_documents(
    sources: cabc.Iterable[ContentSource],
) -> dict[str, Document]:
    """Parse every source into a Document keyed by identity.

    Raises
    ------
    MalformedMetadata
        On the first source whose front matter is missing or invalid.
    DuplicateIdentity
        If two sources share an identity.
    """
    documents: dict[str, Document] = {}
    for source in sources:
        if source.identity in documents:
            raise DuplicateIdentity(source.identity)
        documents[source.identity] = parse_document(source)
    return documents


def parse_document(source: ContentSource) -> Document:
    """Build a Document from one source's front matter and body."""
    metadata, body, body_line = split_front_matter(source)
    stem = PurePosixPath(source.identity).name
    filename_date, slug = _split_date_prefix(stem)

    title = metadata.get("title")
    if not isinstance(title, str) or not title.strip():
        raise MalformedMetadata(source.identity, "'title' must be a non-empty string")

    layout_raw = metadata.get("layout", Layout.POST.value)
    try:
        layout = Layout(str(layout_raw).strip().lower())
    except ValueError:
        allowed = ", ".join(item.value for item in Layout)
        raise MalformedMetadata(
            source.identity, f"unknown layout {layout_raw!r} (expected {allowed})"
        ) from None

    collection = _optional_text(source.identity, metadata, "collection")
    classes = _optional_text(source.identity, metadata, "classes")

    try:
        published = _parse_timestamp(metadata.get("date")) or filename_date
    except ValueError as exc:
        raise MalformedMetadata(
            source.identity, f"unparseable date {metadata.get('date')!r}"
        ) from exc

    extra = {key: value for key, value in metadata.items() if key not in RECOGNIZED_KEYS}
    return Document(
        identity=source.identity,
        slug=slug,
        title=title.strip(),
        layout=layout,
        collection=collection,
        classes=classes,
        published=published,
        body=body,
        extra=types.MappingProxyType(extra),
        body_line=body_line,
    )


def split_front_matter(
    source: ContentSource,
) -> tuple[dict[str, typ.Any], str, int]:
    """Return the front matter mapping, the untouched body and its first line.

    Raises
    ------
    MalformedMetadata
        If the block is absent, unterminated, invalid YAML, or not a mapping.
    """
    text = source.text.removeprefix("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n").rstrip() != OPENING_DELIMITER:
        raise MalformedMetadata(source.identity, "missing front matter block")

    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r\n").rstrip() in CLOSING_DELIMITERS:
            block = "".join(lines[1:idx])
            body = "".join(lines[idx + 1 :])
            return _load_block(source.identity, block), body, idx + 2
    raise MalformedMetadata(source.identity, "unterminated front matter block")


def _load_block(identity: str, block: str) -> dict[str, typ.Any]:
    """Parse a front matter block with the YAML 1.2 safe loader."""
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(block)
    except YAMLError as exc:
        reason = " ".join(str(exc).split())
        raise MalformedMetadata(identity, f"invalid YAML ({reason})") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise MalformedMetadata(
            identity, f"expected a mapping, got {type(loaded).__name__}"
        )
    return {str(key): value for key, value in loaded.items()}


def _optional_text(
    identity: str, metadata: cabc.Mapping[str, typ.Any], key: str
) -> str | None:
    """Return a stripped optional string field, rejecting other types."""
    value = metadata.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedMetadata(identity, f"'{key}' must be a string")
    return value.strip() or None


def _split_date_prefix(stem: str) -> tuple[dt.datetime | None, str]:
    """Split a ``YYYY-MM-DD-slug`` stem into its date and slug."""
    match = DATE_PREFIX_PATTERN.match(stem)
    if not match:
        return None, stem
    year, month, day, slug = match.groups()
    try:
        published = dt.datetime(int(year), int(month), int(day), tzinfo=dt.UTC)
    except ValueError:
        return None, stem
    return published, slug


__all__ = [
    "ContentSource",
    "Document",
    "Layout",
    "discover_sources",
    "load_documents",
    "parse_document",
    "split_front_matter",
]
