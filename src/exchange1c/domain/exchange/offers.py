"""Synchronisation of products and their offers (prices, stock)."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from exchange1c.domain.errors import SynchronizationError
from exchange1c.domain.events import (
    AfterOffersSync,
    AfterProductsSync,
    AfterUpdateOffer,
    AfterUpdateProduct,
    BeforeOffersSync,
    BeforeProductsSync,
    BeforeUpdateOffer,
    BeforeUpdateProduct,
)
from exchange1c.domain.exchange.reports import SyncReport

if TYPE_CHECKING:
    from pathlib import Path

    from exchange1c.domain.events import EventBus
    from exchange1c.domain.models import ModelResolver
    from exchange1c.domain.ports.capabilities import GroupModel, OfferModel, ProductModel
    from exchange1c.domain.records import CatalogDocument, OfferRecord, ProductRecord

log = getLogger(__name__)


class OfferSyncEngine:
    def __init__(self, resolver: ModelResolver, bus: EventBus, *, import_dir: Path) -> None:
        self._resolver = resolver
        self._bus = bus
        self._import_dir = import_dir

    def sync(self, document: CatalogDocument) -> SyncReport:
        """Apply every offer of an offer package to its product's offer model.

        An offer whose product is unknown aborts the pass with
        :class:`SynchronizationError`; offers applied before it keep their
        changes. ``AfterOffersSync`` carries the primary keys of all offers
        touched so the host can retire those missing from a full feed.
        """

        self._bus.publish(BeforeOffersSync())
        if document.price_types:
            self._resolver.offer_model.create_price_types(document.price_types)

        report = SyncReport()
        for record in document.offers:
            product = self._find_product(record)
            model = product.get_offer(record)
            self._apply_offer(model, record)
            report.updated += 1
            report.ids.add(model.get_primary_key())

        log.info("Offer sync finished: offers=%s", report.updated)
        self._bus.publish(
            AfterOffersSync(ids=frozenset(report.ids), only_changes=document.only_changes)
        )
        return report

    def sync_products(self, document: CatalogDocument) -> SyncReport:
        """Upsert the products listed in a classifier document's catalog."""

        product_model = self._resolver.product_model
        self._bus.publish(BeforeProductsSync())
        report = SyncReport()
        for record in document.products:
            model = product_model.find_by_external_id(record.id)
            if model is None:
                model = product_model.create(record)
                report.created += 1
            else:
                report.updated += 1
            self._apply_product(model, record, document)
            report.ids.add(model.get_primary_key())

        log.info(
            "Product sync finished: created=%s, updated=%s",
            report.created,
            report.updated,
        )
        self._bus.publish(AfterProductsSync(ids=frozenset(report.ids)))
        return report

    def _find_product(self, record: OfferRecord) -> ProductModel:
        product = self._resolver.product_model.find_by_external_id(record.product_id)
        if product is None:
            raise SynchronizationError(
                f"Product {record.product_id} referenced by offer {record.id} not found"
            )
        return product

    def _apply_offer(self, model: OfferModel, record: OfferRecord) -> None:
        self._bus.publish(BeforeUpdateOffer(model=model, record=record))
        for specification in record.specifications:
            model.set_specification(specification)
        for value in record.properties:
            model.set_property(value)
        for price in record.prices:
            model.set_price(price)
        if record.stock is not None:
            model.set_stock(record.stock)
        self._bus.publish(AfterUpdateOffer(model=model, record=record))

    def _apply_product(
        self,
        model: ProductModel,
        record: ProductRecord,
        document: CatalogDocument,
    ) -> None:
        self._bus.publish(BeforeUpdateProduct(model=model, record=record))
        for requisite in record.requisites:
            model.set_requisite(requisite.name, requisite.value)
        group = self._find_group(record)
        if group is not None:
            model.set_group(group)
        for value in record.properties:
            model.set_property(value)
        for image in record.images:
            model.add_image(str(self._import_dir / image.path), image.caption)
        model.set_raw_data(document, record)
        self._bus.publish(AfterUpdateProduct(model=model, record=record))

    def _find_group(self, record: ProductRecord) -> GroupModel | None:
        group_model = self._resolver.group_model
        for group_id in record.group_ids:
            group = group_model.find_by_external_id(group_id)
            if group is not None:
                return group
            log.warning("Product %s references unknown group %s", record.id, group_id)
        return None
