"""Group documents into ordered collections for series navigation.

Documents are grouped by their ``collection`` attribute; documents without one
land in the implicit ``uncategorized`` collection. Each group is ordered by
publish date (undated documents last), then title, then identity. When two
members share both date and title the identity tie-break decides and a
:class:`~series_pages.errors.DuplicateOrderingKey` warning is recorded.

Example
-------
>>> from series_pages.documents import ContentSource, load_documents
>>> from series_pages.indexer import CollectionIndex
>>> docs = load_documents(
...     [
...         ContentSource("b", "---\\ntitle: B\\ncollection: Demo\\n---\\n"),
...         ContentSource("a", "---\\ntitle: A\\ncollection: Demo\\n---\\n"),
...     ]
... )
>>> index = CollectionIndex.build(docs)
>>> [doc.title for doc in index.get("Demo").members]
['A', 'B']
>>> index.next_of("a").identity
'b'
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import itertools
import re
import typing as typ

from ._constants import UNCATEGORIZED
from .errors import DuplicateOrderingKey

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .documents import Document

_LATEST = dt.datetime.max.replace(tzinfo=dt.UTC)


@dc.dataclass(frozen=True, slots=True)
class Collection:
    """A named, ordered series of documents.

    Attributes
    ----------
    name : str
        Collection name as declared in front matter.
    slug : str
        URL-safe identifier, unique within the index.
    members : tuple[Document, ...]
        Documents in navigation order.
    """

    name: str
    slug: str
    members: tuple[Document, ...]


@dc.dataclass(frozen=True, slots=True)
class Siblings:
    """Neighbours of one document within its collection."""

    collection: Collection
    position: int
    previous: Document | None
    next: Document | None


class CollectionIndex:
    """Ordered collections plus previous/next lookups for every document."""

    def __init__(
        self,
        collections: cabc.Sequence[Collection],
        warnings: cabc.Sequence[DuplicateOrderingKey] = (),
    ) -> None:
        self.collections: tuple[Collection, ...] = tuple(collections)
        self.warnings: tuple[DuplicateOrderingKey, ...] = tuple(warnings)
        self._by_name = {collection.name: collection for collection in self.collections}
        self._siblings: dict[str, Siblings] = {}
        for collection in self.collections:
            members = collection.members
            for position, document in enumerate(members):
                self._siblings[document.identity] = Siblings(
                    collection=collection,
                    position=position,
                    previous=members[position - 1] if position > 0 else None,
                    next=members[position + 1] if position + 1 < len(members) else None,
                )

    @classmethod
    def build(cls, documents: cabc.Mapping[str, Document]) -> CollectionIndex:
        """Group and order ``documents`` into a new index.

        Collections themselves are ordered by name, with ``uncategorized``
        last, so the global index is stable between builds.
        """
        groups: dict[str, list[Document]] = {}
        for document in documents.values():
            groups.setdefault(document.collection or UNCATEGORIZED, []).append(document)

        names = sorted(
            groups, key=lambda name: (name == UNCATEGORIZED, name.casefold(), name)
        )
        used_slugs: set[str] = set()
        collections: list[Collection] = []
        warnings: list[DuplicateOrderingKey] = []
        for name in names:
            members = sorted(groups[name], key=ordering_key)
            warnings.extend(_duplicate_keys(name, members))
            collections.append(
                Collection(
                    name=name,
                    slug=_unique_slug(_slugify(name), used_slugs),
                    members=tuple(members),
                )
            )
        return cls(collections, warnings)

    def get(self, name: str) -> Collection:
        """Return the collection called ``name``."""
        try:
            return self._by_name[name]
        except KeyError as exc:
            msg = f"Unknown collection '{name}'."
            raise KeyError(msg) from exc

    def siblings(self, identity: str) -> Siblings:
        """Return the collection context of the document ``identity``."""
        return self._siblings[identity]

    def previous_of(self, identity: str) -> Document | None:
        return self._siblings[identity].previous

    def next_of(self, identity: str) -> Document | None:
        return self._siblings[identity].next

    def documents(self) -> list[Document]:
        """Return every indexed document in collection, then member, order."""
        return [doc for collection in self.collections for doc in collection.members]


def ordering_key(document: Document) -> tuple[bool, dt.datetime, str, str]:
    """Sort key: publish date ascending (undated last), title, identity."""
    published = document.published
    return (published is None, published or _LATEST, document.title, document.identity)


def _duplicate_keys(
    name: str, members: cabc.Sequence[Document]
) -> list[DuplicateOrderingKey]:
    """Report runs of members whose date and title are identical."""
    warnings: list[DuplicateOrderingKey] = []
    for _key, run in itertools.groupby(members, key=lambda doc: ordering_key(doc)[:3]):
        identities = tuple(doc.identity for doc in run)
        if len(identities) > 1:
            warnings.append(DuplicateOrderingKey(name, identities))
    return warnings


def _slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "collection"


def _unique_slug(base: str, used: set[str]) -> str:
    """Generate a unique slug, appending numeric suffixes when needed."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


__all__ = ["Collection", "CollectionIndex", "Siblings", "ordering_key"]
