"""
Boundary mapping for document store and catalog entities.

Entities arrive either flat ({"id", "nombre_curso", ...}) or wrapped
({"id", "attributes": {...}}), and relations arrive either bare or under
"data". Everything is unwrapped here, once, before engine logic sees it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .models import Colegio, Curso, MaterialVersion, _to_float, _to_int

logger = logging.getLogger(__name__)


@dataclass
class CatalogHit:
    """A product found in one of the catalogs."""
    source: str                    # "catalog" or "internal"
    product_id: Any = None
    name: str = ""
    price: Optional[float] = None
    stock_quantity: Optional[int] = None
    image: Optional[str] = None


def unwrap(entity: Any) -> dict:
    """
    Flatten one entity.

    {"id": 1, "attributes": {"a": 2}} -> {"id": 1, "a": 2}
    {"data": {...}}                   -> unwrap of the inner entity
    """
    if not isinstance(entity, dict):
        return {}
    if "data" in entity and len(entity) <= 2 and not {"id", "attributes"} & set(entity):
        return unwrap(entity.get("data"))
    attributes = entity.get("attributes")
    if isinstance(attributes, dict):
        flat = dict(attributes)
        for key in ("id", "documentId"):
            if entity.get(key) is not None:
                flat[key] = entity[key]
        return flat
    return dict(entity)


def colegio_from_entity(entity: Any) -> Optional[Colegio]:
    """Map a school relation; None when the relation is empty."""
    data = unwrap(entity)
    if not data:
        return None
    return Colegio(
        id=data.get("id"),
        document_id=data.get("documentId"),
        nombre=str(data.get("colegio_nombre") or data.get("nombre") or ""),
        rbd=_str_or_none(data.get("rbd")),
        comuna=_relation_name(data.get("comuna"), "comuna_nombre"),
        region=_str_or_none(data.get("region")),
    )


def curso_from_entity(entity: Any) -> Curso:
    """Map a raw course entity into a Curso."""
    data = unwrap(entity)
    raw_versions = data.get("versiones_materiales") or []
    if not isinstance(raw_versions, list):
        logger.warning(f"Course {data.get('id')} has non-list versiones_materiales; treating as empty")
        raw_versions = []

    return Curso(
        id=data.get("id"),
        document_id=data.get("documentId"),
        nombre_curso=str(data.get("nombre_curso") or data.get("curso_nombre") or ""),
        nivel=_str_or_none(data.get("nivel")),
        grado=data.get("grado"),
        anio=_to_int(data.get("anio", data.get("año"))),
        matricula=_to_int(data.get("matricula"), 0) or 0,
        colegio=colegio_from_entity(data.get("colegio")),
        estado_revision=data.get("estado_revision"),
        fecha_revision=data.get("fecha_revision"),
        activo=data.get("activo"),
        versiones_materiales=[
            MaterialVersion.from_dict(v) for v in raw_versions if isinstance(v, dict)
        ],
    )


def versions_to_payload(curso: Curso) -> list[dict]:
    """Serialize the version history for a document write."""
    return [v.to_dict() for v in curso.versiones_materiales]


def catalog_hit_from_product(product: dict) -> CatalogHit:
    """Map a product-catalog search result."""
    images = product.get("images") or []
    image = None
    if images and isinstance(images[0], dict):
        image = images[0].get("src")
    return CatalogHit(
        source="catalog",
        product_id=product.get("id"),
        name=str(product.get("name") or ""),
        price=_to_float(product.get("price")),
        stock_quantity=_to_int(product.get("stock_quantity")),
        image=image,
    )


def catalog_hit_from_book(entry: Any, media_base_url: str = "") -> CatalogHit:
    """
    Map an internal catalog book entry.

    Cover URLs relative to the media host are prefixed with media_base_url.
    """
    data = unwrap(entry)
    cover = unwrap(data.get("portada_libro"))
    image = cover.get("url") if cover else None
    if image and media_base_url and image.startswith("/"):
        image = media_base_url.rstrip("/") + image
    return CatalogHit(
        source="internal",
        product_id=data.get("woocommerce_id") or data.get("wooId"),
        name=str(data.get("nombre_libro") or ""),
        price=_to_float(data.get("precio")) or _to_float(data.get("precio_venta")),
        stock_quantity=_to_int(data.get("stock_quantity"), 0),
        image=image,
    )


def _relation_name(value: Any, name_key: str) -> Optional[str]:
    if isinstance(value, dict):
        data = unwrap(value)
        return _str_or_none(data.get(name_key) or data.get("nombre"))
    return _str_or_none(value)


def _str_or_none(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
