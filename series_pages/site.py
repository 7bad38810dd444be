"""Assemble rendered documents into a complete static site.

:class:`SiteAssembler` turns a :class:`~series_pages.indexer.CollectionIndex`
and the rendered body of every document into output units: one page per
document, one index page per collection, and a global index listing every
collection. Previous/next links are checked against the pages produced in the
same pass; a link without a page aborts assembly with
:class:`~series_pages.errors.BrokenCollectionLink`.

:func:`write_site` publishes the units. It writes into a staging directory
beside the output root and swaps it into place only once every file exists,
so the output root is either the complete new site or left as it was.

Example
-------
>>> from series_pages.config import SiteConfig
>>> from series_pages.site import document_output_path
>>> document_output_path("_posts/2020-05-01-intro")
'posts/2020-05-01-intro.html'
>>> assembler = SiteAssembler(SiteConfig())  # doctest: +SKIP
>>> site = assembler.assemble(index, bodies)  # doctest: +SKIP
>>> write_site(site.units, Path("_site"))  # doctest: +SKIP
[PosixPath('_site/posts/2020-05-01-intro.html'), ...]
"""

from __future__ import annotations

import dataclasses as dc
import shutil
import tempfile
import typing as typ
from pathlib import Path, PurePosixPath

from jinja2 import Environment, FileSystemLoader

from ._constants import COLLECTION_PATH_TEMPLATE, INDEX_FILENAME, STYLESHEET_FILENAME
from .errors import BrokenCollectionLink, OutputCollision

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .config import SiteConfig
    from .documents import Document
    from .indexer import Collection, CollectionIndex


@dc.dataclass(frozen=True, slots=True)
class OutputUnit:
    """One file of the built site: a POSIX path relative to the root and text."""

    path: str
    text: str


@dc.dataclass(frozen=True, slots=True)
class PageLink:
    """Target of a previous/next link."""

    identity: str
    title: str
    href: str


@dc.dataclass(frozen=True, slots=True)
class RenderedPage:
    """A document rendered into its final page, with collection links."""

    document: Document
    path: str
    text: str
    previous: PageLink | None
    next: PageLink | None


@dc.dataclass(frozen=True, slots=True)
class AssembledSite:
    """Everything one assembly pass produced."""

    pages: tuple[RenderedPage, ...]
    units: tuple[OutputUnit, ...]


def document_output_path(identity: str) -> str:
    """Return the output path for a document identity.

    Leading underscores are dropped from directory segments so source folders
    such as ``_posts`` publish as ``posts``.
    """
    parts = PurePosixPath(identity).parts
    folders = [part.lstrip("_") or part for part in parts[:-1]]
    return str(PurePosixPath(*folders, f"{parts[-1]}.html"))


class SiteAssembler:
    """Render page templates and collect every output unit of a build."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        templates_dir: Path | None = None,
        stylesheet: str | None = None,
    ) -> None:
        """Initialize the assembler and its Jinja environment.

        Parameters
        ----------
        config : SiteConfig
            Site settings; supplies ``baseurl`` for links plus the title and
            description shown on index pages.
        templates_dir : Path, optional
            Directory containing Jinja templates. Defaults to the package's
            ``templates`` directory.
        stylesheet : str, optional
            CSS emitted as ``highlight.css`` and linked from every page.
        """
        self.config = config
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.stylesheet = stylesheet
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def href(self, path: str) -> str:
        """Return a ``baseurl``-rooted link to an output path."""
        return f"{self.config.baseurl}/{path}"

    def assemble(
        self, index: CollectionIndex, bodies: cabc.Mapping[str, str]
    ) -> AssembledSite:
        """Build every page and output unit for one full rebuild.

        Parameters
        ----------
        index : CollectionIndex
            Ordered collections with sibling lookups.
        bodies : Mapping[str, str]
            Rendered HTML body for each document identity. Documents missing
            from this mapping get no page.

        Returns
        -------
        AssembledSite
            Rendered document pages plus the output units: document pages in
            index order, then collection pages, then the global index (and the
            stylesheet when one is configured).

        Raises
        ------
        BrokenCollectionLink
            If a previous/next link targets a document without a page.
        OutputCollision
            If two units would be written to the same path.
        """
        paths = {
            document.identity: document_output_path(document.identity)
            for document in index.documents()
            if document.identity in bodies
        }
        pages = [
            self._render_page(document, index, paths, bodies[document.identity])
            for document in index.documents()
            if document.identity in paths
        ]
        units = [OutputUnit(page.path, page.text) for page in pages]
        units.extend(
            self._render_collection(collection, paths)
            for collection in index.collections
        )
        units.append(self._render_index(index))
        if self.stylesheet is not None:
            units.append(OutputUnit(STYLESHEET_FILENAME, self.stylesheet))
        _check_unique_paths(units)
        return AssembledSite(tuple(pages), tuple(units))

    def _render_page(
        self,
        document: Document,
        index: CollectionIndex,
        paths: cabc.Mapping[str, str],
        body_html: str,
    ) -> RenderedPage:
        siblings = index.siblings(document.identity)
        previous = self._link(document, siblings.previous, paths, "previous")
        following = self._link(document, siblings.next, paths, "next")
        path = paths[document.identity]
        template = self.env.get_template(f"layouts/{document.layout.value}.jinja")
        context = {
            "title": document.title,
            "classes": document.classes,
            "published": document.published,
            "body_html": body_html,
            "collection_name": siblings.collection.name,
            "collection_href": self.href(_collection_path(siblings.collection)),
            "previous": previous,
            "next": following,
        }
        text = template.render(page=context, **self._shared_context())
        return RenderedPage(document, path, text, previous, following)

    def _link(
        self,
        document: Document,
        target: Document | None,
        paths: cabc.Mapping[str, str],
        relation: str,
    ) -> PageLink | None:
        """Return the link to ``target``, failing if it has no page."""
        if target is None:
            return None
        path = paths.get(target.identity)
        if path is None:
            raise BrokenCollectionLink(document.identity, target.identity, relation)
        return PageLink(target.identity, target.title, self.href(path))

    def _render_collection(
        self, collection: Collection, paths: cabc.Mapping[str, str]
    ) -> OutputUnit:
        entries = [
            {
                "title": member.title,
                "href": self.href(paths[member.identity]),
                "published": member.published,
            }
            for member in collection.members
            if member.identity in paths
        ]
        template = self.env.get_template("collection.jinja")
        text = template.render(
            collection={"name": collection.name, "entries": entries},
            **self._shared_context(),
        )
        return OutputUnit(_collection_path(collection), text)

    def _render_index(self, index: CollectionIndex) -> OutputUnit:
        collections = [
            {
                "name": collection.name,
                "href": self.href(_collection_path(collection)),
                "count": len(collection.members),
            }
            for collection in index.collections
        ]
        template = self.env.get_template("index.jinja")
        text = template.render(collections=collections, **self._shared_context())
        return OutputUnit(INDEX_FILENAME, text)

    def _shared_context(self) -> dict[str, typ.Any]:
        return {
            "site": self.config,
            "home_href": self.href(INDEX_FILENAME),
            "stylesheet_href": (
                self.href(STYLESHEET_FILENAME) if self.stylesheet is not None else None
            ),
        }


def write_site(
    units: cabc.Sequence[OutputUnit],
    output_root: Path,
    *,
    static_dirs: cabc.Sequence[Path] = (),
) -> list[Path]:
    """Publish ``units`` (and copies of ``static_dirs``) as ``output_root``.

    Returns
    -------
    list[Path]
        Written unit paths under ``output_root``, in ``units`` order.

    Notes
    -----
    The previous contents of ``output_root`` are replaced wholesale. On any
    error the staging directory is removed and the previous output restored.
    """
    parent = output_root.parent
    parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{output_root.name}-", dir=parent))
    backup: Path | None = None
    try:
        for static_dir in static_dirs:
            if static_dir.is_dir():
                shutil.copytree(
                    static_dir, staging / static_dir.name, dirs_exist_ok=True
                )
        for unit in units:
            target = staging / unit.path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(unit.text.encode("utf-8"))
        if output_root.exists():
            backup = parent / f"{staging.name}.previous"
            output_root.rename(backup)
        staging.rename(output_root)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        if backup is not None and not output_root.exists():
            backup.rename(output_root)
        raise
    if backup is not None:
        shutil.rmtree(backup)
    return [output_root / unit.path for unit in units]


def _collection_path(collection: Collection) -> str:
    return COLLECTION_PATH_TEMPLATE.format(slug=collection.slug)


def _check_unique_paths(units: cabc.Sequence[OutputUnit]) -> None:
    seen: set[str] = set()
    for unit in units:
        if unit.path in seen:
            raise OutputCollision(unit.path)
        seen.add(unit.path)


__all__ = [
    "AssembledSite",
    "OutputUnit",
    "PageLink",
    "RenderedPage",
    "SiteAssembler",
    "document_output_path",
    "write_site",
]
