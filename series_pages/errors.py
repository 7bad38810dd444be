"""Fatal build errors and non-fatal build warnings.

Fatal conditions derive from :class:`BuildError` and abort the pipeline
before anything is published. Warnings are immutable records accumulated on
the :class:`~series_pages.pipeline.BuildReport`; each exposes a ``message``
suitable for printing to the diagnostic stream.

Examples
--------
>>> from series_pages.errors import MalformedMetadata, UnresolvedDirective
>>> str(MalformedMetadata("posts/a", "missing 'title'"))
"posts/a: malformed front matter: missing 'title'"
>>> UnresolvedDirective("posts/a", "{% include x.html %}", 3).message
"posts/a:3: unresolved directive '{% include x.html %}'"
"""

from __future__ import annotations

import dataclasses as dc


class BuildError(Exception):
    """Base class for conditions that abort a site build."""


class MalformedMetadata(BuildError):
    """Raised when a source's front matter cannot be turned into a Document."""

    def __init__(self, identity: str, reason: str) -> None:
        self.identity = identity
        self.reason = reason
        super().__init__(f"{identity}: malformed front matter: {reason}")


class DuplicateIdentity(BuildError):
    """Raised when two content sources resolve to the same document identity."""

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"{identity}: more than one source maps to this identity")


class BrokenCollectionLink(BuildError):
    """Raised when a previous/next link points at a page that was not produced."""

    def __init__(self, identity: str, target: str, relation: str) -> None:
        self.identity = identity
        self.target = target
        self.relation = relation
        super().__init__(
            f"{identity}: {relation} link targets '{target}', "
            "which has no output page in this build"
        )


class OutputCollision(BuildError):
    """Raised when two output units would be written to the same path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{path}: more than one output unit maps to this path")


@dc.dataclass(frozen=True, slots=True)
class UnresolvedDirective:
    """A template directive left untouched in a rendered document.

    ``line`` is the 1-based line in the source file, front matter included.
    """

    identity: str
    directive: str
    line: int

    @property
    def message(self) -> str:
        return f"{self.identity}:{self.line}: unresolved directive '{self.directive}'"


@dc.dataclass(frozen=True, slots=True)
class DuplicateOrderingKey:
    """Documents in one collection that share both date and title."""

    collection: str
    identities: tuple[str, ...]

    @property
    def message(self) -> str:
        members = ", ".join(self.identities)
        return (
            f"collection '{self.collection}': documents share an ordering key "
            f"and were ordered by identity ({members})"
        )


@dc.dataclass(frozen=True, slots=True)
class DuplicateDocument:
    """A near-duplicate document dropped by the ``duplicates: first`` policy."""

    identity: str
    kept: str

    @property
    def message(self) -> str:
        return f"{self.identity}: dropped as a duplicate of '{self.kept}'"


BuildWarning = UnresolvedDirective | DuplicateOrderingKey | DuplicateDocument

__all__ = [
    "BrokenCollectionLink",
    "BuildError",
    "BuildWarning",
    "DuplicateDocument",
    "DuplicateIdentity",
    "DuplicateOrderingKey",
    "MalformedMetadata",
    "OutputCollision",
    "UnresolvedDirective",
]
