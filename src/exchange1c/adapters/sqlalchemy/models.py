"""Reference host models implementing the group, product and offer capabilities.

They keep the sender's external ids as natural keys and store the loosely
structured parts of the catalog (requisites, property values, images,
specifications) as JSON documents. Mapping to tables happens in
:mod:`exchange1c.adapters.sqlalchemy.mappings`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

from sqlalchemy import select

from .state import current_session

if TYPE_CHECKING:
    from collections.abc import Sequence
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


def _find_by_external_id[TModel](model: type[TModel], external_id: str) -> TModel | None:
    stmt = select(model).where(model.external_id == external_id).limit(1)  # type: ignore[attr-defined]
    return current_session().execute(stmt).scalar_one_or_none()


def _persist[TModel](instance: TModel) -> TModel:
    session = current_session()
    session.add(instance)
    session.flush()
    return instance


@dataclass(eq=False, kw_only=True)
class CatalogPriceType:
    external_id: str
    name: str = ""
    currency: str | None = None
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class CatalogProperty:
    external_id: str
    name: str = ""
    value_type: str | None = None
    variants: dict[str, str] = field(default_factory=dict[str, str])
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class CatalogGroup:
    external_id: str
    name: str = ""
    parent: CatalogGroup | None = None
    id: int | None = None

    @classmethod
    def find_by_external_id(cls, external_id: str) -> Self | None:
        return _find_by_external_id(cls, external_id)

    @classmethod
    def create(cls, record: GroupRecord) -> Self:
        return _persist(cls(external_id=record.id, name=record.name))

    def set_name(self, name: str) -> None:
        self.name = name

    def set_parent(self, parent: CatalogGroup | None) -> None:
        self.parent = parent

    def get_primary_key(self) -> int | None:
        return self.id


@dataclass(eq=False, kw_only=True)
class CatalogOfferPrice:
    price_type_id: str
    value: Decimal
    currency: str | None = None
    unit: str | None = None
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class CatalogOffer:
    external_id: str
    name: str | None = None
    product: CatalogProduct | None = None
    stock: Decimal | None = None
    specifications: dict[str, str] = field(default_factory=dict[str, str])
    properties: dict[str, str] = field(default_factory=dict[str, str])
    prices: list[CatalogOfferPrice] = field(default_factory=list[CatalogOfferPrice])
    is_active: bool = True
    id: int | None = None

    @classmethod
    def create_price_types(cls, price_types: Sequence[PriceTypeRecord]) -> None:
        for record in price_types:
            price_type = _find_by_external_id(CatalogPriceType, record.id)
            if price_type is None:
                price_type = _persist(CatalogPriceType(external_id=record.id))
            price_type.name = record.name
            price_type.currency = record.currency

    @classmethod
    def deactivate_missing(cls, keep_ids: frozenset[Any]) -> int:
        """Flag every offer whose primary key is not in ``keep_ids`` as inactive."""

        stale = current_session().execute(select(cls).where(cls.is_active.is_(True)))  # type: ignore[attr-defined]
        count = 0
        for offer in stale.scalars():
            if offer.id not in keep_ids:
                offer.is_active = False
                count += 1
        return count

    def set_specification(self, specification: SpecificationRecord) -> None:
        self.specifications = {**self.specifications, specification.name: specification.value}

    def set_property(self, value: PropertyValueRecord) -> None:
        self.properties = {**self.properties, value.property_id: value.display_value}

    def set_price(self, price: PriceRecord) -> None:
        for existing in self.prices:
            if existing.price_type_id == price.price_type_id:
                existing.value = price.value
                existing.currency = price.currency
                existing.unit = price.unit
                return
        self.prices.append(
            CatalogOfferPrice(
                price_type_id=price.price_type_id,
                value=price.value,
                currency=price.currency,
                unit=price.unit,
            )
        )

    def price_for(self, price_type_id: str) -> Decimal | None:
        for existing in self.prices:
            if existing.price_type_id == price_type_id:
                return existing.value
        return None

    def set_stock(self, quantity: Decimal) -> None:
        self.stock = quantity

    def get_primary_key(self) -> int | None:
        return self.id


@dataclass(eq=False, kw_only=True)
class CatalogProduct:
    external_id: str
    name: str = ""
    sku: str | None = None
    description: str | None = None
    group: CatalogGroup | None = None
    requisites: dict[str, str] = field(default_factory=dict[str, str])
    properties: dict[str, list[str]] = field(default_factory=dict[str, list[str]])
    images: list[dict[str, str | None]] = field(default_factory=list[dict[str, str | None]])
    offers: list[CatalogOffer] = field(default_factory=list[CatalogOffer])
    id: int | None = None

    @classmethod
    def find_by_external_id(cls, external_id: str) -> Self | None:
        return _find_by_external_id(cls, external_id)

    @classmethod
    def create(cls, record: ProductRecord) -> Self:
        return _persist(cls(external_id=record.id, name=record.name))

    @classmethod
    def create_properties(cls, properties: Sequence[PropertyRecord]) -> None:
        for record in properties:
            declared = _find_by_external_id(CatalogProperty, record.id)
            if declared is None:
                declared = _persist(CatalogProperty(external_id=record.id))
            declared.name = record.name
            declared.value_type = record.value_type
            declared.variants = dict(record.values)

    def set_requisite(self, name: str, value: str) -> None:
        self.requisites = {**self.requisites, name: value}

    def set_group(self, group: CatalogGroup) -> None:
        self.group = group

    def set_property(self, value: PropertyValueRecord) -> None:
        current = self.properties.get(value.property_id, [])
        if value.display_value in current:
            return
        self.properties = {**self.properties, value.property_id: [*current, value.display_value]}

    def add_image(self, path: str, caption: str | None) -> None:
        image = {"path": path, "caption": caption}
        if image not in self.images:
            self.images = [*self.images, image]

    def set_raw_data(self, document: CatalogDocument, record: ProductRecord) -> None:
        _ = document
        self.name = record.name
        self.sku = record.sku
        self.description = record.description

    def get_offer(self, record: OfferRecord) -> CatalogOffer:
        for offer in self.offers:
            if offer.external_id == record.id:
                # listed in the feed again
                offer.is_active = True
                return offer
        offer = CatalogOffer(external_id=record.id, name=record.name, product=self)
        return _persist(offer)

    def get_primary_key(self) -> int | None:
        return self.id
