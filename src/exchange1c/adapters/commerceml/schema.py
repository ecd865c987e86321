"""Pydantic models describing the CommerceML elements the parser extracts."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _normalize_number(value: object) -> object:
    if isinstance(value, str):
        normalized = value.strip().replace("\xa0", "").replace(" ", "").replace(",", ".")
        return normalized or None
    return value


class CommerceMLModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, str_strip_whitespace=True)


class GroupPayload(CommerceMLModel):
    id: str = Field(min_length=1)
    name: str = ""
    parent_id: str | None = None

    _normalize_parent = field_validator("parent_id", mode="before")(_blank_to_none)


class PropertyPayload(CommerceMLModel):
    id: str = Field(min_length=1)
    name: str = ""
    value_type: str | None = None
    values: dict[str, str] = Field(default_factory=dict)

    _normalize_type = field_validator("value_type", mode="before")(_blank_to_none)


class PriceTypePayload(CommerceMLModel):
    id: str = Field(min_length=1)
    name: str = ""
    currency: str | None = None

    _normalize_currency = field_validator("currency", mode="before")(_blank_to_none)


class PropertyValuePayload(CommerceMLModel):
    id: str = Field(min_length=1)
    value: str = ""


class NamedValuePayload(CommerceMLModel):
    name: str = Field(min_length=1)
    value: str = ""


class ImagePayload(CommerceMLModel):
    path: str = Field(min_length=1)
    caption: str | None = None

    _normalize_caption = field_validator("caption", mode="before")(_blank_to_none)


class PricePayload(CommerceMLModel):
    price_type_id: str = Field(min_length=1)
    value: Decimal
    currency: str | None = None
    unit: str | None = None
    ratio: Decimal | None = None
    presentation: str | None = None

    _normalize_numbers = field_validator("value", "ratio", mode="before")(_normalize_number)
    _normalize_text = field_validator("currency", "unit", "presentation", mode="before")(
        _blank_to_none
    )


class ProductPayload(CommerceMLModel):
    id: str = Field(min_length=1)
    name: str = ""
    sku: str | None = None
    description: str | None = None
    group_ids: list[str] = Field(default_factory=list)
    requisites: list[NamedValuePayload] = Field(default_factory=list)
    properties: list[PropertyValuePayload] = Field(default_factory=list)
    images: list[ImagePayload] = Field(default_factory=list)

    _normalize_text = field_validator("sku", "description", mode="before")(_blank_to_none)


class OfferPayload(CommerceMLModel):
    id: str = Field(min_length=1)
    name: str | None = None
    specifications: list[NamedValuePayload] = Field(default_factory=list)
    properties: list[PropertyValuePayload] = Field(default_factory=list)
    prices: list[PricePayload] = Field(default_factory=list)
    stock: Decimal | None = None

    _normalize_name = field_validator("name", mode="before")(_blank_to_none)
    _normalize_stock = field_validator("stock", mode="before")(_normalize_number)


class ClassifierPayload(CommerceMLModel):
    id: str | None = None
    name: str | None = None
    groups: list[GroupPayload] = Field(default_factory=list)
    properties: list[PropertyPayload] = Field(default_factory=list)
    price_types: list[PriceTypePayload] = Field(default_factory=list)

    _normalize_text = field_validator("id", "name", mode="before")(_blank_to_none)


class DocumentPayload(CommerceMLModel):
    kind: Literal["classifier", "offers"]
    classifier: ClassifierPayload | None = None
    products: list[ProductPayload] = Field(default_factory=list)
    offers: list[OfferPayload] = Field(default_factory=list)
    price_types: list[PriceTypePayload] = Field(default_factory=list)
    only_changes: bool = False
