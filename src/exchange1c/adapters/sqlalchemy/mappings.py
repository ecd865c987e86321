"""SQLAlchemy mapping metadata for the reference catalog models."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from functools import cache
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Boolean,
    Column,
    Dialect,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)
from sqlalchemy.orm import relationship

from .models import (
    CatalogGroup,
    CatalogOffer,
    CatalogOfferPrice,
    CatalogPriceType,
    CatalogProduct,
    CatalogProperty,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class DecimalString(TypeDecorator[Decimal]):
    """Store decimals as their exact text so prices round-trip unchanged."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: Dialect) -> Decimal | None:
        _ = dialect
        if value is None:
            return None
        return Decimal(value)


class JSONDocument(TypeDecorator[Any]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:  # noqa: ANN401
        _ = dialect
        if value is None:
            return None
        return json.dumps(value, ensure_ascii=False, sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> Any:  # noqa: ANN401
        _ = dialect
        if value is None:
            return None
        return json.loads(value)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

price_type_table = Table(
    "catalog_price_type",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("external_id", String, nullable=False, unique=True),
    Column("name", String, nullable=False, default=""),
    Column("currency", String),
)

property_table = Table(
    "catalog_property",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("external_id", String, nullable=False, unique=True),
    Column("name", String, nullable=False, default=""),
    Column("value_type", String),
    Column("variants", JSONDocument, nullable=False, default=dict),
)

group_table = Table(
    "catalog_group",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("external_id", String, nullable=False, unique=True),
    Column("name", String, nullable=False, default=""),
    Column("parent_id", Integer, ForeignKey("catalog_group.id")),
)

product_table = Table(
    "catalog_product",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("external_id", String, nullable=False, unique=True),
    Column("name", String, nullable=False, default=""),
    Column("sku", String),
    Column("description", Text),
    Column("group_id", Integer, ForeignKey("catalog_group.id")),
    Column("requisites", JSONDocument, nullable=False, default=dict),
    Column("properties", JSONDocument, nullable=False, default=dict),
    Column("images", JSONDocument, nullable=False, default=list),
)

offer_table = Table(
    "catalog_offer",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("external_id", String, nullable=False, unique=True),
    Column("name", String),
    Column("product_id", Integer, ForeignKey("catalog_product.id"), nullable=False),
    Column("stock", DecimalString),
    Column("specifications", JSONDocument, nullable=False, default=dict),
    Column("properties", JSONDocument, nullable=False, default=dict),
    Column("is_active", Boolean, nullable=False, default=True),
)

offer_price_table = Table(
    "catalog_offer_price",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("offer_id", Integer, ForeignKey("catalog_offer.id"), nullable=False),
    Column("price_type_id", String, nullable=False),
    Column("value", DecimalString, nullable=False),
    Column("currency", String),
    Column("unit", String),
    UniqueConstraint("offer_id", "price_type_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the catalog models."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(CatalogPriceType, price_type_table)
    mapper_registry.map_imperatively(CatalogProperty, property_table)
    mapper_registry.map_imperatively(
        CatalogGroup,
        group_table,
        properties={
            "parent": relationship(CatalogGroup, remote_side=[group_table.c.id]),
        },
    )
    mapper_registry.map_imperatively(
        CatalogProduct,
        product_table,
        properties={
            "group": relationship(CatalogGroup),
            "offers": relationship(
                CatalogOffer,
                back_populates="product",
                cascade="all, delete-orphan",
                order_by=offer_table.c.id,
            ),
        },
    )
    mapper_registry.map_imperatively(
        CatalogOffer,
        offer_table,
        properties={
            "product": relationship(CatalogProduct, back_populates="offers"),
            "prices": relationship(
                CatalogOfferPrice,
                cascade="all, delete-orphan",
                order_by=offer_price_table.c.id,
            ),
        },
    )
    mapper_registry.map_imperatively(CatalogOfferPrice, offer_price_table)
    orm.configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    mapper_registry.metadata.create_all(engine)
