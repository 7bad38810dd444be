"""Drive a full site build through its phases.

A build is a linear walk through ``Idle → Loading → Indexing → Rendering →
Assembling → Done``. Any :class:`~series_pages.errors.BuildError` (or an
``OSError`` while reading sources or writing output) moves the pipeline to the
terminal ``Failed`` state and nothing is published. Warnings from every phase
accumulate on the returned :class:`BuildReport`.

Example
-------
>>> from pathlib import Path
>>> from series_pages.config import SiteConfig
>>> from series_pages.pipeline import BuildPipeline
>>> pipeline = BuildPipeline(SiteConfig(), Path("content"), Path("_site"))
>>> report = pipeline.run()  # doctest: +SKIP
>>> report.state  # doctest: +SKIP
<PipelineState.DONE: 'done'>
"""

from __future__ import annotations

import concurrent.futures as cf
import dataclasses as dc
import enum
import typing as typ

from .config import DuplicatePolicy
from .documents import discover_sources, load_documents
from .errors import BuildError, DuplicateDocument
from .indexer import CollectionIndex
from .renderer import HtmlContentRenderer
from .site import SiteAssembler, write_site

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from .config import SiteConfig
    from .documents import ContentSource, Document
    from .errors import BuildWarning
    from .renderer import RenderResult


class PipelineState(enum.StrEnum):
    """Phases of a build; ``DONE`` and ``FAILED`` are terminal."""

    IDLE = "idle"
    LOADING = "loading"
    INDEXING = "indexing"
    RENDERING = "rendering"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"


@dc.dataclass(slots=True)
class BuildReport:
    """Outcome of one build.

    Attributes
    ----------
    state : PipelineState
        ``DONE`` on success, ``FAILED`` otherwise.
    history : list[PipelineState]
        Every state the pipeline entered, in order.
    warnings : list[BuildWarning]
        Non-fatal conditions from all phases.
    error : Exception or None
        The error that moved the pipeline to ``FAILED``.
    written : list[Path]
        Files published under the output root.
    """

    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = dc.field(
        default_factory=lambda: [PipelineState.IDLE]
    )
    warnings: list[BuildWarning] = dc.field(default_factory=list)
    error: Exception | None = None
    written: list[Path] = dc.field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.DONE


class BuildPipeline:
    """Load, index, render and assemble one site in a single full rebuild."""

    def __init__(
        self,
        config: SiteConfig,
        source_root: Path,
        output_root: Path,
        *,
        sources: cabc.Sequence[ContentSource] | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        """Initialize the pipeline.

        Parameters
        ----------
        config : SiteConfig
            Site settings for this build.
        source_root : Path
            Directory holding Markdown sources and static directories.
        output_root : Path
            Directory replaced by the built site.
        sources : Sequence[ContentSource], optional
            Pre-read sources; when given, ``source_root`` is not scanned for
            Markdown (static directories are still copied from it).
        templates_dir : Path, optional
            Override for the Jinja templates directory.
        """
        self.config = config
        self.source_root = source_root
        self.output_root = output_root
        self._sources = sources
        self.renderer = HtmlContentRenderer(
            highlight_code=config.highlight, pygments_style=config.pygments_style
        )
        self.assembler = SiteAssembler(
            config,
            templates_dir=templates_dir,
            stylesheet=self.renderer.stylesheet if config.highlight else None,
        )
        self.report = BuildReport()

    def run(self) -> BuildReport:
        """Execute every phase and return the report.

        The pipeline runs once; calling ``run`` again returns the same report.
        """
        if self.report.state is not PipelineState.IDLE:
            return self.report
        try:
            self._enter(PipelineState.LOADING)
            documents = self._load()
            self._enter(PipelineState.INDEXING)
            index = CollectionIndex.build(documents)
            self.report.warnings.extend(index.warnings)
            self._enter(PipelineState.RENDERING)
            bodies = self._render(index.documents())
            self._enter(PipelineState.ASSEMBLING)
            site = self.assembler.assemble(index, bodies)
            static_dirs = [self.source_root / name for name in self.config.static_dirs]
            self.report.written = write_site(
                site.units, self.output_root, static_dirs=static_dirs
            )
        except (BuildError, OSError) as exc:
            self.report.error = exc
            self._enter(PipelineState.FAILED)
            return self.report
        self._enter(PipelineState.DONE)
        return self.report

    def _enter(self, state: PipelineState) -> None:
        self.report.state = state
        self.report.history.append(state)

    def _load(self) -> dict[str, Document]:
        sources = self._sources
        if sources is None:
            sources = discover_sources(
                self.source_root,
                exclude=self.config.exclude,
                static_dirs=self.config.static_dirs,
            )
        documents = load_documents(sources)
        if self.config.duplicates is DuplicatePolicy.FIRST:
            documents = self._drop_duplicates(documents)
        return documents

    def _drop_duplicates(
        self, documents: cabc.Mapping[str, Document]
    ) -> dict[str, Document]:
        """Keep the first document, by identity, per collection and title."""
        kept: dict[tuple[str | None, str], str] = {}
        result: dict[str, Document] = {}
        for identity in sorted(documents):
            document = documents[identity]
            key = (document.collection, document.title)
            if key in kept:
                self.report.warnings.append(DuplicateDocument(identity, kept[key]))
                continue
            kept[key] = identity
            result[identity] = document
        return result

    def _render(self, documents: cabc.Sequence[Document]) -> dict[str, str]:
        """Render every body, optionally across ``config.jobs`` threads."""
        directives = self.config.directives

        def _render_one(document: Document) -> RenderResult:
            return self.renderer.render(
                document.body,
                directives,
                identity=document.identity,
                first_line=document.body_line,
            )

        if self.config.jobs > 1 and len(documents) > 1:
            with cf.ThreadPoolExecutor(max_workers=self.config.jobs) as pool:
                results = list(pool.map(_render_one, documents))
        else:
            results = [_render_one(document) for document in documents]

        bodies: dict[str, str] = {}
        for document, result in zip(documents, results, strict=True):
            bodies[document.identity] = result.html
            self.report.warnings.extend(result.warnings)
        return bodies


__all__ = ["BuildPipeline", "BuildReport", "PipelineState"]
