"""Public interface for the CommerceML adapter."""

from __future__ import annotations

from .parser import parse_document, read_document
from .schema import DocumentPayload, OfferPayload, ProductPayload
from .translator import translate_document

__all__ = [
    "DocumentPayload",
    "OfferPayload",
    "ProductPayload",
    "parse_document",
    "read_document",
    "translate_document",
]
