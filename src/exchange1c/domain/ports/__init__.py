"""Domain port definitions for host models and document parsing."""

from __future__ import annotations

from .capabilities import (
    REQUIRED_OPERATIONS,
    Capability,
    GroupModel,
    OfferModel,
    ProductModel,
)
from .parsing import DocumentParser

__all__ = [
    "REQUIRED_OPERATIONS",
    "Capability",
    "DocumentParser",
    "GroupModel",
    "OfferModel",
    "ProductModel",
]
