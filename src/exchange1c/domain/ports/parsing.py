"""Port for turning an uploaded file into a catalog document."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path

    from exchange1c.domain.records import CatalogDocument, Classifier


@runtime_checkable
class DocumentParser(Protocol):
    """Callable port parsing one CommerceML file.

    ``classifier`` is the classifier imported earlier in the same exchange; it
    lets an offer package dereference property values it does not declare.
    """

    def __call__(self, path: Path, *, classifier: Classifier | None = None) -> CatalogDocument:
        ...


__all__ = ["DocumentParser"]
