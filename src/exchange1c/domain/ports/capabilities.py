"""Capability interfaces a host application implements for its catalog models.

The exchange core never instantiates or persists host objects itself; it only
calls the operations below. Lookups and constructors are classmethods because
the core resolves a model *class* per capability (see
:mod:`exchange1c.domain.models`).
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Final, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Hashable, Sequence
    from decimal import Decimal

    from exchange1c.domain.records import (
        CatalogDocument,
        GroupRecord,
        OfferRecord,
        PriceRecord,
        PriceTypeRecord,
        ProductRecord,
        PropertyRecord,
        PropertyValueRecord,
        SpecificationRecord,
    )


class Capability(StrEnum):
    GROUP = "group"
    PRODUCT = "product"
    OFFER = "offer"


@runtime_checkable
class GroupModel(Protocol):
    """A node of the host's category tree."""

    @classmethod
    def find_by_external_id(cls, external_id: str) -> Self | None: ...

    @classmethod
    def create(cls, record: GroupRecord) -> Self: ...

    def set_name(self, name: str) -> None: ...

    def set_parent(self, parent: GroupModel | None) -> None: ...

    def get_primary_key(self) -> Hashable: ...


@runtime_checkable
class OfferModel(Protocol):
    """A sellable offer (price and stock carrier) of a product."""

    @classmethod
    def create_price_types(cls, price_types: Sequence[PriceTypeRecord]) -> None: ...

    def set_specification(self, specification: SpecificationRecord) -> None: ...

    def set_property(self, value: PropertyValueRecord) -> None: ...

    def set_price(self, price: PriceRecord) -> None: ...

    def set_stock(self, quantity: Decimal) -> None: ...

    def get_primary_key(self) -> Hashable: ...


@runtime_checkable
class ProductModel(Protocol):
    """A catalog product; owns its offers."""

    @classmethod
    def find_by_external_id(cls, external_id: str) -> Self | None: ...

    @classmethod
    def create(cls, record: ProductRecord) -> Self: ...

    @classmethod
    def create_properties(cls, properties: Sequence[PropertyRecord]) -> None: ...

    def set_requisite(self, name: str, value: str) -> None: ...

    def set_group(self, group: GroupModel) -> None: ...

    def set_property(self, value: PropertyValueRecord) -> None: ...

    def add_image(self, path: str, caption: str | None) -> None: ...

    def set_raw_data(self, document: CatalogDocument, record: ProductRecord) -> None: ...

    def get_offer(self, record: OfferRecord) -> OfferModel: ...

    def get_primary_key(self) -> Hashable: ...


REQUIRED_OPERATIONS: Final[dict[Capability, tuple[str, ...]]] = {
    Capability.GROUP: (
        "find_by_external_id",
        "create",
        "set_name",
        "set_parent",
        "get_primary_key",
    ),
    Capability.PRODUCT: (
        "find_by_external_id",
        "create",
        "create_properties",
        "set_requisite",
        "set_group",
        "set_property",
        "add_image",
        "set_raw_data",
        "get_offer",
        "get_primary_key",
    ),
    Capability.OFFER: (
        "create_price_types",
        "set_specification",
        "set_property",
        "set_price",
        "set_stock",
        "get_primary_key",
    ),
}
