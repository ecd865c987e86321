from __future__ import annotations

import pytest

from exchange1c.domain.errors import ModelResolutionError
from exchange1c.domain.models import ModelResolver
from exchange1c.domain.ports import Capability, GroupModel, OfferModel, ProductModel
from tests.support.catalog import MEMORY_MODELS, MemoryGroup, MemoryOffer, MemoryProduct


class IncompleteOffer:
    @classmethod
    def create_price_types(cls, price_types: object) -> None:
        _ = price_types


def test_resolver_returns_registered_classes() -> None:
    resolver = ModelResolver(MEMORY_MODELS)

    assert resolver.group_model is MemoryGroup
    assert resolver.product_model is MemoryProduct
    assert resolver.offer_model is MemoryOffer
    assert resolver.resolve(Capability.OFFER) is MemoryOffer


def test_memory_models_satisfy_capability_protocols() -> None:
    group = MemoryGroup(external_id="1")
    product = MemoryProduct(external_id="P1")
    offer = MemoryOffer(external_id="P1")

    assert isinstance(group, GroupModel)
    assert isinstance(product, ProductModel)
    assert isinstance(offer, OfferModel)


def test_resolver_imports_dotted_targets() -> None:
    resolver = ModelResolver(
        {
            "group": "tests.support.catalog:MemoryGroup",
            "product": "tests.support.catalog:MemoryProduct",
            "offer": MemoryOffer,
        }
    )

    assert resolver.group_model is MemoryGroup
    assert resolver.product_model is MemoryProduct


def test_resolver_requires_every_capability() -> None:
    with pytest.raises(ModelResolutionError, match="offer"):
        ModelResolver({"group": MemoryGroup, "product": MemoryProduct})


def test_resolver_rejects_unknown_capabilities() -> None:
    with pytest.raises(ModelResolutionError, match="warehouse"):
        ModelResolver({**MEMORY_MODELS, "warehouse": MemoryGroup})


def test_resolver_lists_missing_operations() -> None:
    with pytest.raises(ModelResolutionError) as exc:
        ModelResolver({**MEMORY_MODELS, "offer": IncompleteOffer})

    message = str(exc.value)
    assert "IncompleteOffer" in message
    assert "set_price" in message
    assert "set_stock" in message


@pytest.mark.parametrize(
    "target",
    [
        "tests.support.catalog.MemoryGroup",
        "tests.support.missing_module:MemoryGroup",
        "tests.support.catalog:MissingClass",
    ],
)
def test_resolver_rejects_unimportable_targets(target: str) -> None:
    with pytest.raises(ModelResolutionError):
        ModelResolver({**MEMORY_MODELS, "group": target})


def test_resolver_rejects_instances() -> None:
    with pytest.raises(ModelResolutionError, match="must be a class"):
        ModelResolver({**MEMORY_MODELS, "group": MemoryGroup(external_id="1")})
