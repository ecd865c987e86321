"""Synchronisation of the classifier (category tree and declarations)."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from exchange1c.domain.errors import DanglingReferenceError
from exchange1c.domain.events import AfterCategorySync, BeforeCategorySync
from exchange1c.domain.exchange.reports import SyncReport
from exchange1c.domain.records import Classifier

if TYPE_CHECKING:
    from exchange1c.domain.events import EventBus
    from exchange1c.domain.models import ModelResolver
    from exchange1c.domain.records import CatalogDocument, GroupRecord, PriceTypeRecord

log = getLogger(__name__)


class CategorySyncEngine:
    """Upserts the classifier's groups into the host's group model.

    Groups are processed in document order, which lists ancestors before
    descendants. A group whose parent is unknown is recorded in the report and
    skipped; the rest of the tree is still applied.
    """

    def __init__(self, resolver: ModelResolver, bus: EventBus) -> None:
        self._resolver = resolver
        self._bus = bus

    def sync(self, document: CatalogDocument) -> SyncReport:
        classifier = document.classifier or Classifier()
        self._bus.publish(BeforeCategorySync())
        self._register_declarations(classifier, document)

        report = SyncReport()
        for record in classifier.groups:
            try:
                self._upsert_group(record, report)
            except DanglingReferenceError as exc:
                log.warning("%s; group skipped", exc)
                report.record_failure(record.id, exc)

        log.info(
            "Category sync finished: created=%s, updated=%s, failed=%s",
            report.created,
            report.updated,
            report.failed,
        )
        self._bus.publish(AfterCategorySync(report=report))
        return report

    def _register_declarations(self, classifier: Classifier, document: CatalogDocument) -> None:
        if classifier.properties:
            self._resolver.product_model.create_properties(classifier.properties)
        price_types = _merge_price_types(classifier.price_types, document.price_types)
        if price_types:
            self._resolver.offer_model.create_price_types(price_types)

    def _upsert_group(self, record: GroupRecord, report: SyncReport) -> None:
        group_model = self._resolver.group_model
        parent = None
        if record.parent_id is not None:
            parent = group_model.find_by_external_id(record.parent_id)
            if parent is None:
                raise DanglingReferenceError(record.id, record.parent_id)

        model = group_model.find_by_external_id(record.id)
        if model is None:
            model = group_model.create(record)
            report.created += 1
        else:
            report.updated += 1
        model.set_name(record.name)
        model.set_parent(parent)
        report.ids.add(model.get_primary_key())


def _merge_price_types(
    *collections: tuple[PriceTypeRecord, ...],
) -> tuple[PriceTypeRecord, ...]:
    merged: dict[str, PriceTypeRecord] = {}
    for collection in collections:
        for price_type in collection:
            merged.setdefault(price_type.id, price_type)
    return tuple(merged.values())
