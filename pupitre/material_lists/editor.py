"""
Material Editor - Add, edit, delete and import items of the latest version.

Every operation works on a deep copy of the latest version, stamps
fecha_actualizacion and hands the copy to VersionStore.replace_latest_version.
`id`, `coordenadas` and `disponibilidad` are never taken from an edit patch.

Edits of an item linked to a catalog product (woocommerce_id) push the
changed fields to the product catalog as an optional saga step; if the
document write fails afterwards the product is restored.
"""

import copy
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from .adapters import ProductCatalog
from .config import Config
from .errors import InvalidMaterialError, NotFoundError
from .models import (
    PROTECTED_ITEM_FIELDS,
    Disponibilidad,
    MaterialItem,
    MaterialVersion,
    TipoMaterial,
    now_iso,
)
from .saga import Saga
from .versions import VersionStore, editable_copy, find_latest_version, get_latest_version

logger = logging.getLogger(__name__)

_GENERATED_ID = re.compile(r"^producto-(\d+)$")

# Item field -> catalog product field
CATALOG_FIELDS = {
    "nombre": "name",
    "precio": "regular_price",
    "isbn": "sku",
    "descripcion": "description",
    "stock_quantity": "stock_quantity",
}


@dataclass
class EditResult:
    """Edited item plus the outcome of any catalog write-through."""
    material: MaterialItem
    catalog_updates: list[dict] = field(default_factory=list)


def next_generated_id(items: list[MaterialItem]) -> str:
    """producto-{max+1} over existing producto-N ids."""
    highest = 0
    for item in items:
        m = _GENERATED_ID.match(str(item.id or ""))
        if m:
            highest = max(highest, int(m.group(1)))
    return f"producto-{highest + 1}"


def find_item_index(
    items: list[MaterialItem],
    material_id: Any = None,
    nombre: Optional[str] = None,
    index: Any = None,
) -> Optional[int]:
    """
    Locate an item: by id, then by name (trimmed, case-insensitive), then by position.

    Returns the position of the first match, or None.
    """
    if material_id is not None and str(material_id) != "":
        for i, item in enumerate(items):
            if item.id is not None and str(item.id) == str(material_id):
                return i
    if nombre:
        wanted = nombre.strip().casefold()
        for i, item in enumerate(items):
            if item.nombre.strip().casefold() == wanted:
                return i
    if index is not None and index != "":
        try:
            position = int(index)
        except (TypeError, ValueError):
            return None
        if 0 <= position < len(items):
            return position
    return None


def clean_patch(patch: dict) -> dict:
    """Drop protected fields and coerce numeric ones."""
    cleaned = {k: v for k, v in patch.items() if k not in PROTECTED_ITEM_FIELDS}
    if "cantidad" in cleaned:
        try:
            cleaned["cantidad"] = int(float(cleaned["cantidad"]))
        except (TypeError, ValueError):
            cleaned.pop("cantidad")
    if "precio" in cleaned and cleaned["precio"] is not None:
        try:
            cleaned["precio"] = float(cleaned["precio"])
        except (TypeError, ValueError):
            cleaned.pop("precio")
    return cleaned


def check_tipo(patch: dict):
    """Reject a tipo outside the known material types."""
    tipo = patch.get("tipo")
    if tipo is None or isinstance(tipo, TipoMaterial):
        return
    try:
        TipoMaterial(str(tipo).strip().lower())
    except ValueError:
        raise InvalidMaterialError(f"unknown tipo '{tipo}'") from None


def catalog_changes(before: MaterialItem, after: MaterialItem) -> dict:
    """Product fields to push for an item edit, keyed by catalog field name."""
    changes = {}
    for item_field, product_field in CATALOG_FIELDS.items():
        old = getattr(before, item_field)
        new = getattr(after, item_field)
        if new != old and new is not None:
            changes[product_field] = new
    return _catalog_payload(changes)


def _catalog_payload(changes: dict) -> dict:
    payload = dict(changes)
    if "regular_price" in payload:
        payload["regular_price"] = str(payload["regular_price"])
    if "stock_quantity" in payload:
        stock = int(payload["stock_quantity"])
        payload["stock_quantity"] = stock
        payload["manage_stock"] = True
        payload["stock_status"] = "instock" if stock > 0 else "outofstock"
    return payload


class MaterialEditor:
    """
    Item-level operations on a course's latest version.

    Usage:
        editor = MaterialEditor(versions, catalog)
        editor.edit_material(curso, "producto-3", {"cantidad": 2})
    """

    def __init__(
        self,
        versions: VersionStore,
        catalog: Optional[ProductCatalog] = None,
        config: Optional[Config] = None,
    ):
        self.versions = versions
        self.catalog = catalog
        self.config = config or versions.config

    def edit_material(self, curso, material_id: Any, patch: dict) -> MaterialItem:
        """
        Apply a patch to one item of the latest version.

        Raises:
            NoVersionError: If the course has no versions
            NotFoundError: If no item has that id
            InvalidMaterialError: If tipo is not a known material type
        """
        return self.edit(curso, material_id, patch).material

    def edit(self, curso, material_id: Any, patch: dict) -> EditResult:
        """edit_material, also reporting catalog write-through outcomes."""
        version = editable_copy(get_latest_version(curso))
        position = find_item_index(version.materiales, material_id=material_id)
        if position is None:
            raise NotFoundError("material", material_id)

        before = version.materiales[position]
        merged = before.to_dict()
        check_tipo(patch)
        merged.update(clean_patch(patch))
        after = MaterialItem.from_dict(merged)
        after.id = before.id
        after.coordenadas = copy.deepcopy(before.coordenadas)
        after.disponibilidad = before.disponibilidad

        version.materiales[position] = after
        version.fecha_actualizacion = now_iso()

        saga = Saga("edit-material")
        changes = catalog_changes(before, after) if before.woocommerce_id else {}
        if changes and self.catalog is not None:
            restore = _catalog_payload({
                product_field: getattr(before, item_field)
                for item_field, product_field in CATALOG_FIELDS.items()
                if product_field in changes and getattr(before, item_field) is not None
            })
            product_id = before.woocommerce_id
            saga.step(
                "push-catalog",
                lambda: self.catalog.update_product(product_id, changes),
                compensation=(lambda: self.catalog.update_product(product_id, restore)) if restore else None,
                required=False,
            )
        saga.step("persist", lambda: self.versions.replace_latest_version(curso, version))
        saga.run()

        updates = []
        pushed = saga.outcome("push-catalog")
        if pushed is not None:
            updates.append({
                "woocommerce_id": before.woocommerce_id,
                "fields": sorted(changes),
                "success": pushed.success,
                "error": pushed.error,
            })
        logger.info(f"Edited material {after.id} of course {curso.key}")
        return EditResult(material=after, catalog_updates=updates)

    def delete_material(
        self,
        curso,
        material_id: Any = None,
        nombre: Optional[str] = None,
        index: Any = None,
    ) -> MaterialItem:
        """
        Remove exactly one item, selected by id, then name, then position.

        Raises:
            NotFoundError: If no selector matches; history is left unchanged
        """
        version = editable_copy(get_latest_version(curso))
        position = find_item_index(version.materiales, material_id, nombre, index)
        if position is None:
            raise NotFoundError("material", material_id if material_id is not None else (nombre or index))

        removed = version.materiales.pop(position)
        version.fecha_actualizacion = now_iso()
        self.versions.replace_latest_version(curso, version)
        logger.info(f"Deleted material {removed.id} from course {curso.key}")
        return removed

    def add_material(self, curso, fields: dict) -> MaterialItem:
        """
        Insert a new item at position `orden` (1-based, clamped; default end).

        Raises:
            InvalidMaterialError: If nombre is empty
        """
        nombre = str(fields.get("nombre") or "").strip()
        if not nombre:
            raise InvalidMaterialError("nombre is required")

        version = editable_copy(get_latest_version(curso))
        items = version.materiales

        data = clean_patch(fields)
        data["nombre"] = nombre
        item = MaterialItem.from_dict(data)
        item.id = next_generated_id(items)
        item.aprobado = False
        item.fecha_aprobacion = None
        item.disponibilidad = Disponibilidad.NO_ENCONTRADO
        item.encontrado_en_woocommerce = False

        orden = item.orden or len(items) + 1
        insert_at = min(max(orden - 1, 0), len(items))
        items.insert(insert_at, item)
        for i, existing in enumerate(items):
            existing.orden = i + 1

        version.fecha_actualizacion = now_iso()
        self.versions.replace_latest_version(curso, version)
        logger.info(f"Added material {item.id} to course {curso.key} at position {item.orden}")
        return item

    def replace_all_materials(self, curso, items: list[dict]) -> MaterialVersion:
        """
        Overwrite the latest version's materials (bulk import).

        Defaults come from config.defaults; missing or repeated ids are
        replaced by generated producto-N ids. A course with no history
        gets its first version.
        """
        defaults = self.config.defaults
        materials: list[MaterialItem] = []
        seen_ids: set[str] = set()
        for raw in items:
            if not str(raw.get("nombre") or "").strip():
                raise InvalidMaterialError("every imported item needs a nombre")
            data = dict(raw)
            data.setdefault("tipo", defaults.tipo)
            data.setdefault("cantidad", defaults.cantidad)
            data.setdefault("obligatorio", defaults.obligatorio)
            item = MaterialItem.from_dict(data)
            if item.id is None or str(item.id) in seen_ids:
                item.id = next_generated_id(materials + _pending_ids(items))
            seen_ids.add(str(item.id))
            materials.append(item)

        now = now_iso()
        latest = find_latest_version(curso)
        if latest is None:
            version = MaterialVersion(fecha_subida=now, fecha_actualizacion=now, materiales=materials)
            self.versions.append_version(curso, version)
        else:
            version = editable_copy(latest)
            version.materiales = materials
            version.fecha_actualizacion = now
            self.versions.replace_latest_version(curso, version)
        logger.info(f"Replaced materials of course {curso.key} with {len(materials)} item(s)")
        return version


def _pending_ids(items: list[dict]) -> list[MaterialItem]:
    return [MaterialItem(id=raw.get("id")) for raw in items if raw.get("id") is not None]
