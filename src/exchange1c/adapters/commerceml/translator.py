"""Translate validated CommerceML payloads into catalog records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from exchange1c.domain.records import (
    CatalogDocument,
    Classifier,
    DocumentKind,
    GroupRecord,
    ImageRecord,
    OfferRecord,
    PriceRecord,
    PriceTypeRecord,
    ProductRecord,
    PropertyRecord,
    PropertyValueRecord,
    RequisiteRecord,
    SpecificationRecord,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from .schema import (
        ClassifierPayload,
        DocumentPayload,
        OfferPayload,
        PriceTypePayload,
        ProductPayload,
        PropertyValuePayload,
    )


def translate_document(
    payload: DocumentPayload,
    *,
    classifier: Classifier | None = None,
    source: Path | None = None,
) -> CatalogDocument:
    """Build a :class:`CatalogDocument`; property values resolve through the
    document's own classifier first, then through ``classifier``."""

    own_classifier = _classifier(payload.classifier) if payload.classifier else None
    lookup = own_classifier or classifier
    return CatalogDocument(
        kind=DocumentKind(payload.kind),
        classifier=own_classifier,
        products=tuple(_product(product, lookup) for product in payload.products),
        offers=tuple(_offer(offer, lookup) for offer in payload.offers),
        price_types=_price_types(payload.price_types),
        only_changes=payload.only_changes,
        source=source,
    )


def _classifier(payload: ClassifierPayload) -> Classifier:
    return Classifier(
        id=payload.id,
        name=payload.name,
        groups=tuple(
            GroupRecord(id=group.id, name=group.name, parent_id=group.parent_id)
            for group in payload.groups
        ),
        properties=tuple(
            PropertyRecord(
                id=declared.id,
                name=declared.name,
                value_type=declared.value_type,
                values=dict(declared.values),
            )
            for declared in payload.properties
        ),
        price_types=_price_types(payload.price_types),
    )


def _price_types(payloads: Iterable[PriceTypePayload]) -> tuple[PriceTypeRecord, ...]:
    return tuple(
        PriceTypeRecord(id=price_type.id, name=price_type.name, currency=price_type.currency)
        for price_type in payloads
    )


def _property_values(
    payloads: Iterable[PropertyValuePayload],
    classifier: Classifier | None,
) -> tuple[PropertyValueRecord, ...]:
    values: list[PropertyValueRecord] = []
    for payload in payloads:
        declared = classifier.property_by_id(payload.id) if classifier else None
        values.append(
            PropertyValueRecord(
                property_id=payload.id,
                value=payload.value,
                name=declared.name if declared else None,
                resolved_value=declared.values.get(payload.value) if declared else None,
            )
        )
    return tuple(values)


def _product(payload: ProductPayload, classifier: Classifier | None) -> ProductRecord:
    return ProductRecord(
        id=payload.id,
        name=payload.name,
        sku=payload.sku,
        description=payload.description,
        group_ids=tuple(payload.group_ids),
        requisites=tuple(
            RequisiteRecord(name=requisite.name, value=requisite.value)
            for requisite in payload.requisites
        ),
        properties=_property_values(payload.properties, classifier),
        images=tuple(ImageRecord(path=image.path, caption=image.caption) for image in payload.images),
    )


def _offer(payload: OfferPayload, classifier: Classifier | None) -> OfferRecord:
    return OfferRecord(
        id=payload.id,
        name=payload.name,
        specifications=tuple(
            SpecificationRecord(name=specification.name, value=specification.value)
            for specification in payload.specifications
        ),
        properties=_property_values(payload.properties, classifier),
        prices=tuple(
            PriceRecord(
                price_type_id=price.price_type_id,
                value=price.value,
                currency=price.currency,
                unit=price.unit,
                ratio=price.ratio,
                presentation=price.presentation,
            )
            for price in payload.prices
        ),
        stock=payload.stock,
    )
