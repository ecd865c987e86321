"""Lifecycle events and the synchronous in-process bus that delivers them."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

    from exchange1c.domain.exchange.reports import SyncReport
    from exchange1c.domain.ports.capabilities import OfferModel, ProductModel
    from exchange1c.domain.records import OfferRecord, ProductRecord

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExchangeEvent:
    """Base class of every event published during an exchange."""


@dataclass(frozen=True, slots=True)
class BeforeCategorySync(ExchangeEvent):
    pass


@dataclass(frozen=True, slots=True)
class AfterCategorySync(ExchangeEvent):
    report: SyncReport


@dataclass(frozen=True, slots=True)
class BeforeProductsSync(ExchangeEvent):
    pass


@dataclass(frozen=True, slots=True)
class AfterProductsSync(ExchangeEvent):
    ids: frozenset[Hashable]


@dataclass(frozen=True, slots=True)
class BeforeUpdateProduct(ExchangeEvent):
    model: ProductModel
    record: ProductRecord


@dataclass(frozen=True, slots=True)
class AfterUpdateProduct(ExchangeEvent):
    model: ProductModel
    record: ProductRecord


@dataclass(frozen=True, slots=True)
class BeforeOffersSync(ExchangeEvent):
    pass


@dataclass(frozen=True, slots=True)
class AfterOffersSync(ExchangeEvent):
    """Carries the primary keys of every offer touched.

    Hosts retire the offers missing from ``ids`` unless the package only
    carries changes, in which case untouched offers are left alone.
    """

    ids: frozenset[Hashable]
    only_changes: bool = False


@dataclass(frozen=True, slots=True)
class BeforeUpdateOffer(ExchangeEvent):
    model: OfferModel
    record: OfferRecord


@dataclass(frozen=True, slots=True)
class AfterUpdateOffer(ExchangeEvent):
    model: OfferModel
    record: OfferRecord


@dataclass(frozen=True, slots=True)
class ExchangeCompleted(ExchangeEvent):
    files: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ExchangeFailed(ExchangeEvent):
    """Published when a call ends in a failure body, before it is answered."""

    mode: str | None
    error: BaseException


type EventHandler = Callable[[ExchangeEvent], None]


@dataclass(slots=True)
class EventBus:
    """Publish/subscribe channel with synchronous, in-order delivery.

    Handlers subscribed to a base event class also receive its subclasses, so a
    handler on :class:`ExchangeEvent` observes the whole exchange. Exceptions
    raised by a handler propagate to the publisher.
    """

    _handlers: defaultdict[type[ExchangeEvent], list[EventHandler]] = field(
        default_factory=lambda: defaultdict(list)
    )

    def subscribe(self, event_type: type[ExchangeEvent], handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[ExchangeEvent], handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def publish(self, event: ExchangeEvent) -> None:
        log.debug("Publishing %s", type(event).__name__)
        for event_type in type(event).__mro__:
            for handler in tuple(self._handlers.get(event_type, ())):
                handler(event)
