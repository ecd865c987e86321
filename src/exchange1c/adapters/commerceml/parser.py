"""CommerceML 2.x reader built on ``xml.etree.ElementTree``.

Only the subset the exchange synchronises is read: the classifier (groups,
properties, price types), catalog products and offer-package offers. Element
names are matched without their namespace, so documents with or without the
``urn:1C.ru:commerceml_2`` default namespace parse the same way.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from decimal import Decimal, InvalidOperation
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from pydantic import ValidationError

from exchange1c.domain.errors import DocumentParseError

from .schema import DocumentPayload
from .translator import translate_document

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from exchange1c.domain.records import CatalogDocument, Classifier

log = getLogger(__name__)

ROOT_TAG: Final[str] = "КоммерческаяИнформация"
CLASSIFIER_TAG: Final[str] = "Классификатор"
CATALOG_TAG: Final[str] = "Каталог"
OFFER_PACKAGE_TAGS: Final[tuple[str, ...]] = ("ПакетПредложений", "ИзмененияПакетаПредложений")
PROPERTY_TAGS: Final[frozenset[str]] = frozenset({"Свойство", "СвойствоНоменклатуры"})
ONLY_CHANGES: Final[str] = "СодержитТолькоИзменения"
IMAGE_CAPTION_REQUISITE: Final[str] = "ОписаниеФайла"
IMAGE_CAPTION_SEPARATOR: Final[str] = "#"

type Payload = dict[str, Any]


def parse_document(path: Path, *, classifier: Classifier | None = None) -> CatalogDocument:
    """Parse ``path`` into a catalog document or raise :class:`DocumentParseError`."""

    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as exc:
        raise DocumentParseError(f"Cannot read CommerceML document {path.name}: {exc}") from exc
    _strip_namespaces(root)

    try:
        payload = DocumentPayload.model_validate(read_document(root, name=path.name))
    except ValidationError as exc:
        raise DocumentParseError(f"Invalid CommerceML document {path.name}: {exc}") from exc

    document = translate_document(payload, classifier=classifier, source=path)
    log.info(
        "Parsed %s as %s: groups=%s, products=%s, offers=%s",
        path.name,
        document.kind,
        len(document.classifier.groups) if document.classifier else 0,
        len(document.products),
        len(document.offers),
    )
    return document


def read_document(root: ET.Element, *, name: str = "<document>") -> Payload:
    """Extract the raw payload of a namespace-free ``КоммерческаяИнформация`` root."""

    if root.tag != ROOT_TAG:
        raise DocumentParseError(f"{name}: unexpected root element {root.tag!r}")

    package = next(
        (element for tag in OFFER_PACKAGE_TAGS if (element := root.find(tag)) is not None),
        None,
    )
    if package is not None:
        classifier = package.find(CLASSIFIER_TAG)
        return {
            "kind": "offers",
            "classifier": _classifier(classifier) if classifier is not None else None,
            "price_types": [_price_type(element) for element in package.iterfind("ТипыЦен/ТипЦены")],
            "offers": [_offer(element) for element in package.iterfind("Предложения/Предложение")],
            "only_changes": _only_changes(package),
        }

    classifier = root.find(CLASSIFIER_TAG)
    catalog = root.find(CATALOG_TAG)
    if classifier is None and catalog is None:
        raise DocumentParseError(f"{name}: neither a classifier nor an offer package")
    return {
        "kind": "classifier",
        "classifier": _classifier(classifier) if classifier is not None else None,
        "products": (
            [_product(element) for element in catalog.iterfind("Товары/Товар")]
            if catalog is not None
            else []
        ),
        "only_changes": _only_changes(catalog) if catalog is not None else False,
    }


def _strip_namespaces(root: ET.Element) -> None:
    for element in root.iter():
        if isinstance(element.tag, str) and element.tag.startswith("{"):
            element.tag = element.tag.split("}", 1)[1]


def _text(element: ET.Element, path: str) -> str | None:
    child = element.find(path)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def _only_changes(element: ET.Element) -> bool:
    flag = element.get(ONLY_CHANGES) or _text(element, ONLY_CHANGES)
    return (flag or "").strip().lower() == "true"


def _classifier(element: ET.Element) -> Payload:
    return {
        "id": _text(element, "Ид"),
        "name": _text(element, "Наименование"),
        "groups": list(_groups(element.find("Группы"), None)),
        "properties": [
            _property(child)
            for child in element.iterfind("Свойства/*")
            if child.tag in PROPERTY_TAGS
        ],
        "price_types": [_price_type(child) for child in element.iterfind("ТипыЦен/ТипЦены")],
    }


def _groups(container: ET.Element | None, parent_id: str | None) -> Iterator[Payload]:
    # pre-order walk: a parent is always yielded before its children
    if container is None:
        return
    for group in container.iterfind("Группа"):
        group_id = _text(group, "Ид")
        yield {
            "id": group_id,
            "name": _text(group, "Наименование") or "",
            "parent_id": _text(group, "ИдРодителя") or parent_id,
        }
        yield from _groups(group.find("Группы"), group_id)


def _property(element: ET.Element) -> Payload:
    return {
        "id": _text(element, "Ид"),
        "name": _text(element, "Наименование") or "",
        "value_type": _text(element, "ТипЗначений"),
        "values": {
            value_id: _text(variant, "Значение") or ""
            for variant in element.iterfind("ВариантыЗначений/Справочник")
            if (value_id := _text(variant, "ИдЗначения")) is not None
        },
    }


def _price_type(element: ET.Element) -> Payload:
    return {
        "id": _text(element, "Ид"),
        "name": _text(element, "Наименование") or "",
        "currency": _text(element, "Валюта"),
    }


def _property_values(element: ET.Element) -> list[Payload]:
    values: list[Payload] = []
    for property_value in element.iterfind("ЗначенияСвойств/ЗначенияСвойства"):
        property_id = _text(property_value, "Ид")
        if property_id is None:
            continue
        for value in property_value.iterfind("Значение"):
            values.append({"id": property_id, "value": (value.text or "").strip()})
    return values


def _named_values(element: ET.Element, path: str) -> list[Payload]:
    return [
        {"name": name, "value": _text(child, "Значение") or ""}
        for child in element.iterfind(path)
        if (name := _text(child, "Наименование")) is not None
    ]


def _product(element: ET.Element) -> Payload:
    requisites = _named_values(element, "ЗначенияРеквизитов/ЗначениеРеквизита")
    captions: dict[str, str] = {}
    for requisite in requisites:
        if requisite["name"] == IMAGE_CAPTION_REQUISITE:
            path, _, caption = str(requisite["value"]).partition(IMAGE_CAPTION_SEPARATOR)
            captions[path] = caption

    images = [
        {"path": path, "caption": captions.get(path)}
        for image in element.iterfind("Картинка")
        if (path := (image.text or "").strip())
    ]
    return {
        "id": _text(element, "Ид"),
        "name": _text(element, "Наименование") or "",
        "sku": _text(element, "Артикул"),
        "description": _text(element, "Описание"),
        "group_ids": [
            group_id.text.strip()
            for group_id in element.iterfind("Группы/Ид")
            if group_id.text and group_id.text.strip()
        ],
        "requisites": requisites,
        "properties": _property_values(element),
        "images": images,
    }


def _offer(element: ET.Element) -> Payload:
    return {
        "id": _text(element, "Ид"),
        "name": _text(element, "Наименование"),
        "specifications": _named_values(element, "ХарактеристикиТовара/ХарактеристикаТовара"),
        "properties": _property_values(element),
        "prices": [
            {
                "price_type_id": _text(price, "ИдТипаЦены"),
                "value": _text(price, "ЦенаЗаЕдиницу"),
                "currency": _text(price, "Валюта"),
                "unit": _text(price, "Единица"),
                "ratio": _text(price, "Коэффициент"),
                "presentation": _text(price, "Представление"),
            }
            for price in element.iterfind("Цены/Цена")
        ],
        "stock": _stock(element),
    }


def _stock(element: ET.Element) -> str | None:
    quantity = _text(element, "Количество")
    if quantity is not None:
        return quantity
    rests = [
        text
        for rest in element.iterfind("Остатки/Остаток")
        for node in rest.iter("Количество")
        if (text := (node.text or "").strip())
    ]
    if not rests:
        return None
    try:
        return str(sum((Decimal(value.replace(",", ".")) for value in rests), Decimal(0)))
    except InvalidOperation as exc:
        raise DocumentParseError(f"Invalid stock quantity in offer {_text(element, 'Ид')}") from exc
