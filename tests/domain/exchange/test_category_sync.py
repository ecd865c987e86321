from __future__ import annotations

from typing import TYPE_CHECKING

from exchange1c.domain.events import AfterCategorySync, BeforeCategorySync
from exchange1c.domain.exchange import CategorySyncEngine
from exchange1c.domain.records import (
    CatalogDocument,
    Classifier,
    DocumentKind,
    GroupRecord,
    PriceTypeRecord,
    PropertyRecord,
)
from tests.support.catalog import MemoryGroup, MemoryOffer, MemoryProduct

if TYPE_CHECKING:
    from exchange1c.domain.events import EventBus, ExchangeEvent
    from exchange1c.domain.models import ModelResolver


def _document(*groups: GroupRecord, **classifier_fields: object) -> CatalogDocument:
    return CatalogDocument(
        kind=DocumentKind.CLASSIFIER,
        classifier=Classifier(groups=groups, **classifier_fields),  # type: ignore[arg-type]
    )


def test_sync_creates_group_tree(
    resolver: ModelResolver,
    bus: EventBus,
    recorded_events: list[ExchangeEvent],
) -> None:
    engine = CategorySyncEngine(resolver, bus)

    report = engine.sync(
        _document(
            GroupRecord(id="1", name="Furniture"),
            GroupRecord(id="2", name="Chairs", parent_id="1"),
        )
    )

    root = MemoryGroup.registry["1"]
    child = MemoryGroup.registry["2"]
    assert root.parent is None
    assert child.parent is root
    assert child.name == "Chairs"
    assert (report.created, report.updated, report.failed) == (2, 0, 0)
    assert report.ids == {root.pk, child.pk}
    assert isinstance(recorded_events[0], BeforeCategorySync)
    last = recorded_events[-1]
    assert isinstance(last, AfterCategorySync)
    assert last.report is report


def test_sync_is_idempotent(resolver: ModelResolver, bus: EventBus) -> None:
    engine = CategorySyncEngine(resolver, bus)
    document = _document(
        GroupRecord(id="1", name="Furniture"),
        GroupRecord(id="2", name="Chairs", parent_id="1"),
    )
    engine.sync(document)

    report = engine.sync(document)

    assert (report.created, report.updated) == (0, 2)
    assert len(MemoryGroup.registry) == 2


def test_sync_renames_and_moves_existing_groups(resolver: ModelResolver, bus: EventBus) -> None:
    engine = CategorySyncEngine(resolver, bus)
    engine.sync(
        _document(
            GroupRecord(id="1", name="Furniture"),
            GroupRecord(id="2", name="Tables"),
            GroupRecord(id="3", name="Chairs", parent_id="1"),
        )
    )

    engine.sync(_document(GroupRecord(id="3", name="Stools", parent_id="2")))

    moved = MemoryGroup.registry["3"]
    assert moved.name == "Stools"
    assert moved.parent is MemoryGroup.registry["2"]


def test_dangling_parent_is_recorded_and_skipped(resolver: ModelResolver, bus: EventBus) -> None:
    engine = CategorySyncEngine(resolver, bus)

    report = engine.sync(
        _document(
            GroupRecord(id="orphan", name="Orphan", parent_id="missing"),
            GroupRecord(id="1", name="Furniture"),
        )
    )

    assert "orphan" not in MemoryGroup.registry
    assert "1" in MemoryGroup.registry
    assert report.failed == 1
    assert report.failures[0].external_id == "orphan"
    assert "missing" in report.failures[0].reason


def test_child_before_parent_is_a_recorded_failure(resolver: ModelResolver, bus: EventBus) -> None:
    engine = CategorySyncEngine(resolver, bus)

    report = engine.sync(
        _document(
            GroupRecord(id="2", name="Chairs", parent_id="1"),
            GroupRecord(id="1", name="Furniture"),
        )
    )

    assert report.created == 1
    assert [failure.external_id for failure in report.failures] == ["2"]


def test_declarations_are_registered_before_groups(resolver: ModelResolver, bus: EventBus) -> None:
    engine = CategorySyncEngine(resolver, bus)
    colour = PropertyRecord(id="color", name="Colour", values={"red-id": "Red"})
    retail = PriceTypeRecord(id="RUB", name="Retail", currency="RUB")
    document = CatalogDocument(
        kind=DocumentKind.CLASSIFIER,
        classifier=Classifier(properties=(colour,), price_types=(retail,)),
        price_types=(PriceTypeRecord(id="USD", name="Export", currency="USD"),),
    )

    engine.sync(document)

    assert MemoryProduct.declared_properties == {"color": colour}
    assert set(MemoryOffer.price_types) == {"RUB", "USD"}


def test_document_without_classifier_still_emits_events(
    resolver: ModelResolver,
    bus: EventBus,
    recorded_events: list[ExchangeEvent],
) -> None:
    engine = CategorySyncEngine(resolver, bus)

    report = engine.sync(CatalogDocument(kind=DocumentKind.CLASSIFIER))

    assert report.processed == 0
    assert [type(event) for event in recorded_events] == [BeforeCategorySync, AfterCategorySync]
