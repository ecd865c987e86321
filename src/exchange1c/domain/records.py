"""Read-only records describing one parsed CommerceML document.

Records carry the sender's external identifiers and raw values; host models
receive them through the capability interfaces and decide what to keep.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from decimal import Decimal
    from pathlib import Path

OFFER_ID_SEPARATOR = "#"


class DocumentKind(StrEnum):
    CLASSIFIER = "classifier"
    OFFERS = "offers"


@dataclass(frozen=True, slots=True, kw_only=True)
class GroupRecord:
    id: str
    name: str
    parent_id: str | None = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True, slots=True, kw_only=True)
class PropertyRecord:
    """Classifier-level property declaration with its enumerated variants."""

    id: str
    name: str
    value_type: str | None = None
    values: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class PriceTypeRecord:
    id: str
    name: str
    currency: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class PropertyValueRecord:
    property_id: str
    value: str
    name: str | None = None
    resolved_value: str | None = None

    @property
    def display_value(self) -> str:
        return self.resolved_value if self.resolved_value is not None else self.value


@dataclass(frozen=True, slots=True, kw_only=True)
class RequisiteRecord:
    name: str
    value: str


@dataclass(frozen=True, slots=True, kw_only=True)
class SpecificationRecord:
    name: str
    value: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ImageRecord:
    path: str
    caption: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class PriceRecord:
    price_type_id: str
    value: Decimal
    currency: str | None = None
    unit: str | None = None
    ratio: Decimal | None = None
    presentation: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ProductRecord:
    id: str
    name: str
    sku: str | None = None
    description: str | None = None
    group_ids: tuple[str, ...] = ()
    requisites: tuple[RequisiteRecord, ...] = ()
    properties: tuple[PropertyValueRecord, ...] = ()
    images: tuple[ImageRecord, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class OfferRecord:
    """A sellable offer; ``id`` is ``<product id>`` or ``<product id>#<variant id>``."""

    id: str
    name: str | None = None
    specifications: tuple[SpecificationRecord, ...] = ()
    properties: tuple[PropertyValueRecord, ...] = ()
    prices: tuple[PriceRecord, ...] = ()
    stock: Decimal | None = None

    @property
    def product_id(self) -> str:
        return self.id.split(OFFER_ID_SEPARATOR, 1)[0]

    @property
    def variant_id(self) -> str | None:
        _, separator, variant = self.id.partition(OFFER_ID_SEPARATOR)
        return variant if separator else None


@dataclass(frozen=True, slots=True, kw_only=True)
class Classifier:
    id: str | None = None
    name: str | None = None
    groups: tuple[GroupRecord, ...] = ()
    properties: tuple[PropertyRecord, ...] = ()
    price_types: tuple[PriceTypeRecord, ...] = ()

    def property_by_id(self, property_id: str) -> PropertyRecord | None:
        for declared in self.properties:
            if declared.id == property_id:
                return declared
        return None


@dataclass(frozen=True, slots=True, kw_only=True)
class CatalogDocument:
    kind: DocumentKind
    classifier: Classifier | None = None
    products: tuple[ProductRecord, ...] = ()
    offers: tuple[OfferRecord, ...] = ()
    price_types: tuple[PriceTypeRecord, ...] = ()
    only_changes: bool = False
    source: Path | None = None

    @property
    def is_classifier(self) -> bool:
        return self.kind is DocumentKind.CLASSIFIER
