"""
Collaborator adapters - Bridge to the document store and product catalogs.

The adapter pattern lets us swap implementations (in-memory for testing,
HTTP clients for production) without changing engine logic.
"""

import copy
from abc import ABC, abstractmethod
from typing import Any, Optional

from .errors import ExternalLookupError
from .mapping import unwrap
from .matching import digits_only, normalize_text, tokenize


class DocumentStore(ABC):
    """
    Generic fetch/patch document API.

    Entities come back raw (flat or wrapped in "attributes");
    mapping.py turns them into canonical models.
    """

    @abstractmethod
    def get(self, collection: str, id_or_filters: Any, populate: Any = None) -> Optional[dict]:
        """Fetch one entity by key, or the first one matching a filter dict."""
        pass

    @abstractmethod
    def find(
        self,
        collection: str,
        filters: Optional[dict] = None,
        page: int = 1,
        page_size: int = 25,
        populate: Any = None,
    ) -> list[dict]:
        """Fetch one page of entities matching equality filters."""
        pass

    @abstractmethod
    def put(self, collection: str, key: Any, data: dict) -> dict:
        """Patch an entity's fields and return the stored entity."""
        pass


class ProductCatalog(ABC):
    """E-commerce product catalog (search plus write-back)."""

    @abstractmethod
    def search(self, term: str, per_page: int = 10) -> list[dict]:
        """
        Search published products by free text.

        Returns:
            [{id, name, price, stock_quantity, images: [{src}]}]

        Raises:
            ExternalLookupError: On any transport or API failure
        """
        pass

    @abstractmethod
    def update_product(self, product_id: Any, fields: dict) -> dict:
        """Patch a product; raises ExternalLookupError on failure."""
        pass


class InternalCatalog(ABC):
    """Internal book catalog used as lookup fallback."""

    @abstractmethod
    def search(
        self,
        name: Optional[str] = None,
        isbn: Optional[str] = None,
        page_size: int = 100,
    ) -> list[dict]:
        """
        Containment query over name or ISBN.

        Returns raw entries (nombre_libro, isbn_libro, stock_quantity,
        precio, portada_libro, woocommerce_id), flat or wrapped.
        """
        pass


class InMemoryDocumentStore(DocumentStore):
    """
    In-memory document store for programmatic test setup.

    Entities are stored flat. With wrap_attributes=True they are returned in
    the {"id", "documentId", "attributes": {...}} shape some store versions use.
    """

    def __init__(self, collections: Optional[dict[str, list[dict]]] = None, wrap_attributes: bool = False):
        self._collections: dict[str, list[dict]] = {}
        self._next_id = 1
        self.wrap_attributes = wrap_attributes
        self.writes: list[tuple[str, str, dict]] = []
        for name, entities in (collections or {}).items():
            for entity in entities:
                self.add(name, entity)

    def add(self, collection: str, entity: dict) -> dict:
        """Add a single entity, assigning a numeric id if missing."""
        stored = copy.deepcopy(entity)
        if stored.get("id") is None:
            stored["id"] = self._next_id
        self._next_id = max(self._next_id, _as_int(stored["id"], 0) + 1)
        self._collections.setdefault(collection, []).append(stored)
        return copy.deepcopy(stored)

    def clear(self):
        """Remove all entities."""
        self._collections = {}
        self.writes = []

    def raw(self, collection: str, key: Any) -> Optional[dict]:
        """Stored entity without copying or wrapping (test inspection)."""
        return self._locate(collection, key)

    def get(self, collection: str, id_or_filters: Any, populate: Any = None) -> Optional[dict]:
        if isinstance(id_or_filters, dict):
            found = self.find(collection, id_or_filters, page=1, page_size=1)
            return found[0] if found else None
        entity = self._locate(collection, id_or_filters)
        return self._present(entity) if entity is not None else None

    def find(
        self,
        collection: str,
        filters: Optional[dict] = None,
        page: int = 1,
        page_size: int = 25,
        populate: Any = None,
    ) -> list[dict]:
        entities = [
            e for e in self._collections.get(collection, [])
            if _matches_filters(e, filters or {})
        ]
        start = max(page - 1, 0) * page_size
        return [self._present(e) for e in entities[start:start + page_size]]

    def put(self, collection: str, key: Any, data: dict) -> dict:
        entity = self._locate(collection, key)
        if entity is None:
            raise LookupError(f"{collection}/{key} not found")
        entity.update(copy.deepcopy(data))
        self.writes.append((collection, str(key), copy.deepcopy(data)))
        return self._present(entity)

    def _locate(self, collection: str, key: Any) -> Optional[dict]:
        for entity in self._collections.get(collection, []):
            if str(entity.get("documentId")) == str(key) or str(entity.get("id")) == str(key):
                return entity
        return None

    def _present(self, entity: dict) -> dict:
        entity = copy.deepcopy(entity)
        if not self.wrap_attributes:
            return entity
        attributes = {k: v for k, v in entity.items() if k not in ("id", "documentId")}
        return {"id": entity.get("id"), "documentId": entity.get("documentId"), "attributes": attributes}


class InMemoryProductCatalog(ProductCatalog):
    """
    In-memory product catalog.

    search() returns every product sharing at least one token with the term,
    leaving the choice of the best candidate to the matcher.
    """

    def __init__(self, products: Optional[list[dict]] = None, failing_terms: Optional[set[str]] = None):
        self.products = [copy.deepcopy(p) for p in (products or [])]
        self.failing_terms = set(failing_terms or ())
        self.searches: list[str] = []
        self.updates: list[tuple[Any, dict]] = []
        self.fail_updates = False

    def add_product(self, product: dict):
        self.products.append(copy.deepcopy(product))

    def search(self, term: str, per_page: int = 10) -> list[dict]:
        self.searches.append(term)
        if term in self.failing_terms:
            raise ExternalLookupError("catalog", term, ConnectionError("simulated outage"))
        tokens = tokenize(term, min_length=2)
        results = [
            copy.deepcopy(p) for p in self.products
            if any(token in normalize_text(p.get("name")) for token in tokens)
        ]
        return results[:per_page]

    def update_product(self, product_id: Any, fields: dict) -> dict:
        if self.fail_updates:
            raise ExternalLookupError("catalog", str(product_id), ConnectionError("simulated outage"))
        for product in self.products:
            if str(product.get("id")) == str(product_id):
                product.update(copy.deepcopy(fields))
                self.updates.append((product_id, copy.deepcopy(fields)))
                return copy.deepcopy(product)
        raise ExternalLookupError("catalog", str(product_id), LookupError("product not found"))

    def get_product(self, product_id: Any) -> Optional[dict]:
        for product in self.products:
            if str(product.get("id")) == str(product_id):
                return copy.deepcopy(product)
        return None


class InMemoryInternalCatalog(InternalCatalog):
    """In-memory internal book catalog with containment search."""

    def __init__(self, entries: Optional[list[dict]] = None, fail: bool = False):
        self.entries = [copy.deepcopy(e) for e in (entries or [])]
        self.fail = fail
        self.queries: list[dict] = []

    def search(
        self,
        name: Optional[str] = None,
        isbn: Optional[str] = None,
        page_size: int = 100,
    ) -> list[dict]:
        self.queries.append({"name": name, "isbn": isbn})
        if self.fail:
            raise ExternalLookupError("internal catalog", name or isbn or "", ConnectionError("simulated outage"))
        if isbn:
            wanted = digits_only(isbn)
            hits = [e for e in self.entries if wanted and wanted in digits_only(unwrap(e).get("isbn_libro"))]
        else:
            wanted = normalize_text(name)
            hits = [e for e in self.entries if wanted and wanted in normalize_text(unwrap(e).get("nombre_libro"))]
        return [copy.deepcopy(e) for e in hits[:page_size]]


def _matches_filters(entity: dict, filters: dict) -> bool:
    for key, expected in filters.items():
        if str(entity.get(key)) != str(expected):
            return False
    return True


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
