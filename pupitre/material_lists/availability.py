"""
Availability Reconciler - Checks each item of the latest version against the catalogs.

Per item, sequentially:
1. Search the product catalog by raw name and keep the best scoring product
2. Not found -> search the internal catalog (ISBN first, then name terms)
3. Classify and copy price, stock, image and product id onto the item

Classification:
| Found? | stock_quantity | disponibilidad |
|--------|----------------|----------------|
| ✗      | -              | no_encontrado  |
| ✓      | <= 0           | no_disponible  |
| ✓      | > 0            | disponible     |

A failed lookup classifies the item no_encontrado and moves on. Items with
names under 2 characters, and repeats of an earlier item name, are left
untouched, but still count toward the summary with their stored state.
The version is written once at the end, including when a
deadline or cancel signal stops the loop early (partial result).
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from .adapters import InternalCatalog, ProductCatalog
from .config import Config
from .errors import ExternalLookupError
from .mapping import CatalogHit, catalog_hit_from_book, catalog_hit_from_product, unwrap
from .matching import best_catalog_match, catalog_entry_matches, digits_only, normalize_text
from .models import Disponibilidad, MaterialItem, MaterialVersion, now_iso
from .versions import VersionStore, editable_copy, get_latest_version

logger = logging.getLogger(__name__)


@dataclass
class ItemOutcome:
    """How one item was reconciled."""
    material_id: Any
    nombre: str
    disponibilidad: Optional[Disponibilidad] = None
    source: Optional[str] = None           # "catalog", "internal" or None
    matched_name: Optional[str] = None
    skipped: Optional[str] = None          # "duplicate" or "short_name"
    error: Optional[str] = None


@dataclass
class ReconcileResult:
    version: MaterialVersion
    items: list[MaterialItem]
    outcomes: list[ItemOutcome] = field(default_factory=list)
    summary: dict = field(default_factory=dict)
    persisted: bool = False


def classify(found: bool, stock_quantity: Optional[int]) -> Disponibilidad:
    """Availability from lookup outcome and stock."""
    if not found:
        return Disponibilidad.NO_ENCONTRADO
    if (stock_quantity or 0) > 0:
        return Disponibilidad.DISPONIBLE
    return Disponibilidad.NO_DISPONIBLE


def apply_hit(item: MaterialItem, hit: Optional[CatalogHit]):
    """Copy lookup results onto an item. Only reconciliation fields change."""
    if hit is None:
        item.disponibilidad = classify(False, None)
        item.encontrado_en_woocommerce = False
        return
    stock = hit.stock_quantity if hit.stock_quantity is not None else 0
    item.disponibilidad = classify(True, stock)
    item.encontrado_en_woocommerce = True
    item.stock_quantity = stock
    if hit.price is not None:
        item.precio = hit.price
    if hit.image:
        item.imagen = hit.image
    if hit.product_id:
        item.woocommerce_id = hit.product_id


def internal_search_terms(nombre: str) -> list[str]:
    """Name, its first two words, and its first word when long enough."""
    terms = [nombre.strip()]
    words = nombre.split()
    if len(words) > 2:
        terms.append(" ".join(words[:2]))
    if len(words) > 1 and len(words[0]) >= 4:
        terms.append(words[0])
    return [t for i, t in enumerate(terms) if t and t not in terms[:i]]


class AvailabilityReconciler:
    """
    Reconciles a course's latest version against the product catalogs.

    Usage:
        reconciler = AvailabilityReconciler(versions, catalog, internal)
        result = reconciler.verify_availability(curso, deadline=30)
    """

    def __init__(
        self,
        versions: VersionStore,
        catalog: Optional[ProductCatalog] = None,
        internal: Optional[InternalCatalog] = None,
        config: Optional[Config] = None,
    ):
        self.versions = versions
        self.catalog = catalog
        self.internal = internal
        self.config = config or versions.config

    def verify_availability(
        self,
        curso,
        deadline: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ReconcileResult:
        """
        Reconcile every item of the latest version.

        Args:
            curso: Course to reconcile
            deadline: Overall budget in seconds; None for no budget
            cancel: Event that stops the loop when set

        Returns:
            ReconcileResult with per-item outcomes and summary counts

        Raises:
            NoVersionError: If the course has no versions
            PersistenceError: If the final write fails
        """
        version = editable_copy(get_latest_version(curso))
        ends_at = time.monotonic() + deadline if deadline is not None else None

        outcomes: list[ItemOutcome] = []
        seen: set[str] = set()
        duplicates = 0
        partial = False

        for item in version.materiales:
            if (cancel is not None and cancel.is_set()) or (ends_at is not None and time.monotonic() >= ends_at):
                partial = True
                logger.warning(f"Reconciliation of course {curso.key} stopped early after {len(outcomes)} item(s)")
                break

            normalized = normalize_text(item.nombre)
            if len(normalized) < self.config.matching.min_token_length:
                outcomes.append(ItemOutcome(item.id, item.nombre, item.disponibilidad, skipped="short_name"))
                continue
            if normalized in seen:
                duplicates += 1
                outcomes.append(ItemOutcome(item.id, item.nombre, item.disponibilidad, skipped="duplicate"))
                continue
            seen.add(normalized)

            outcome = ItemOutcome(item.id, item.nombre)
            try:
                hit = self.lookup(item)
            except (ExternalLookupError, OSError) as e:
                logger.error(f"Lookup failed for '{item.nombre}': {e}")
                hit = None
                outcome.error = str(e)

            apply_hit(item, hit)
            outcome.disponibilidad = item.disponibilidad
            if hit is not None:
                outcome.source = hit.source
                outcome.matched_name = hit.name
            outcomes.append(outcome)

        # Every item counts, skipped ones with their stored state.
        counts = {d: 0 for d in Disponibilidad}
        for item in version.materiales:
            if item.disponibilidad is not None:
                counts[item.disponibilidad] += 1

        unique = len(seen)
        persisted = False
        if unique:
            version.fecha_actualizacion = now_iso()
            self.versions.replace_latest_version(curso, version)
            persisted = True

        summary = {
            "total": len(version.materiales),
            "disponible": counts[Disponibilidad.DISPONIBLE],
            "no_disponible": counts[Disponibilidad.NO_DISPONIBLE],
            "no_encontrado": counts[Disponibilidad.NO_ENCONTRADO],
            "unique": unique,
            "duplicates_skipped": duplicates,
            "partial": partial,
        }
        logger.info(f"Reconciled course {curso.key}: {summary}")
        return ReconcileResult(
            version=version,
            items=version.materiales,
            outcomes=outcomes,
            summary=summary,
            persisted=persisted,
        )

    def lookup(self, item: MaterialItem) -> Optional[CatalogHit]:
        """Product catalog first; internal catalog only when nothing matched."""
        hit = self.search_catalog(item.nombre)
        if hit is None:
            hit = self.search_internal(item.nombre, item.isbn)
        return hit

    def search_catalog(self, nombre: str) -> Optional[CatalogHit]:
        if self.catalog is None:
            return None
        products = self.catalog.search(nombre.strip(), per_page=self.config.catalog.search_per_page)
        best = best_catalog_match(nombre, products, self.config.matching)
        if best is None:
            return None
        return catalog_hit_from_product(best)

    def search_internal(self, nombre: str, isbn: Optional[str] = None) -> Optional[CatalogHit]:
        if self.internal is None:
            return None
        settings = self.config.matching
        page_size = self.config.catalog.internal_page_size

        isbn_digits = digits_only(isbn)
        if len(isbn_digits) >= settings.isbn_min_digits:
            queries = [{"isbn": isbn_digits}]
        else:
            queries = [{"name": term} for term in internal_search_terms(nombre)]

        for query in queries:
            for entry in self.internal.search(page_size=page_size, **query):
                data = unwrap(entry)
                if catalog_entry_matches(nombre, data.get("nombre_libro"), isbn, data.get("isbn_libro"), settings):
                    return catalog_hit_from_book(data, self.config.catalog.media_base_url)
        return None
