"""Resolution of capability interfaces to host model classes."""

from __future__ import annotations

from importlib import import_module
from logging import getLogger
from typing import TYPE_CHECKING, cast

from exchange1c.domain.errors import ModelResolutionError
from exchange1c.domain.ports.capabilities import (
    REQUIRED_OPERATIONS,
    Capability,
    GroupModel,
    OfferModel,
    ProductModel,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)


def _import_model(capability: Capability, target: str) -> type:
    module_name, separator, attribute = target.partition(":")
    if not separator or not module_name or not attribute:
        raise ModelResolutionError(
            f"Model for {capability} must be given as 'package.module:Class', got {target!r}"
        )
    try:
        module = import_module(module_name)
    except ImportError as exc:
        raise ModelResolutionError(
            f"Cannot import module {module_name!r} for {capability} model"
        ) from exc
    try:
        return cast(type, getattr(module, attribute))
    except AttributeError as exc:
        raise ModelResolutionError(
            f"Module {module_name!r} has no attribute {attribute!r} for {capability} model"
        ) from exc


def _validate(capability: Capability, model: object) -> type:
    if isinstance(model, str):
        model = _import_model(capability, model)
    if not isinstance(model, type):
        raise ModelResolutionError(f"Model for {capability} must be a class, got {model!r}")
    missing = [
        name
        for name in REQUIRED_OPERATIONS[capability]
        if not callable(getattr(model, name, None))
    ]
    if missing:
        raise ModelResolutionError(
            f"{model.__qualname__} does not implement {capability} operations: "
            + ", ".join(missing)
        )
    return model


class ModelResolver:
    """Registry from capability to host class, validated when constructed."""

    def __init__(self, models: Mapping[str, object]) -> None:
        unknown = sorted(str(key) for key in models if key not in set(Capability))
        if unknown:
            raise ModelResolutionError(f"Unknown model capabilities: {', '.join(unknown)}")
        resolved: dict[Capability, type] = {}
        for capability in Capability:
            if capability not in models:
                raise ModelResolutionError(f"No model registered for {capability}")
            resolved[capability] = _validate(capability, models[capability])
            log.debug("Resolved %s model to %s", capability, resolved[capability].__qualname__)
        self._models = resolved

    def resolve(self, capability: Capability) -> type:
        return self._models[capability]

    @property
    def group_model(self) -> type[GroupModel]:
        return cast("type[GroupModel]", self._models[Capability.GROUP])

    @property
    def product_model(self) -> type[ProductModel]:
        return cast("type[ProductModel]", self._models[Capability.PRODUCT])

    @property
    def offer_model(self) -> type[OfferModel]:
        return cast("type[OfferModel]", self._models[Capability.OFFER])
