"""
Strapi REST client.

Implements the engine's DocumentStore (courses, schools) and
InternalCatalog (book catalog fallback) over the Strapi REST API.
Drafts are included (publicationState=preview) so unpublished
courses can still be edited.
"""
import logging
from typing import Any, Optional

import requests

from pupitre.material_lists.adapters import DocumentStore, InternalCatalog
from pupitre.material_lists.errors import ExternalLookupError

from .config import settings

logger = logging.getLogger(__name__)

LIBROS = "libros"


def _headers() -> dict:
    """Build headers for Strapi requests."""
    headers = {"Content-Type": "application/json"}
    if settings.STRAPI_API_TOKEN:
        headers["Authorization"] = f"Bearer {settings.STRAPI_API_TOKEN}"
    return headers


def _filter_params(filters: Optional[dict], operator: str = "$eq") -> dict:
    """{"documentId": "x"} -> {"filters[documentId][$eq]": "x"}"""
    return {f"filters[{field}][{operator}]": value for field, value in (filters or {}).items()}


def _populate_params(populate: Any) -> dict:
    if not populate:
        return {}
    if isinstance(populate, str):
        return {"populate": populate}
    return {f"populate[{i}]": name for i, name in enumerate(populate)}


class StrapiClient(DocumentStore):
    """
    DocumentStore over Strapi's /api/{collection} endpoints.

    Transport and HTTP errors propagate as requests exceptions; the engine
    wraps write failures in PersistenceError.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.STRAPI_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT

    def _url(self, collection: str, key: Any = None) -> str:
        url = f"{self.base_url}/api/{collection}"
        return f"{url}/{key}" if key is not None else url

    def get(self, collection: str, id_or_filters: Any, populate: Any = None) -> Optional[dict]:
        if isinstance(id_or_filters, dict):
            found = self.find(collection, id_or_filters, page=1, page_size=1, populate=populate)
            return found[0] if found else None

        params = {"publicationState": "preview", **_populate_params(populate)}
        resp = requests.get(
            self._url(collection, id_or_filters),
            headers=_headers(),
            params=params,
            timeout=self.timeout,
        )
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json().get("data")

    def find(
        self,
        collection: str,
        filters: Optional[dict] = None,
        page: int = 1,
        page_size: int = 25,
        populate: Any = None,
    ) -> list[dict]:
        params = {
            "publicationState": "preview",
            "pagination[page]": page,
            "pagination[pageSize]": page_size,
            **_filter_params(filters),
            **_populate_params(populate),
        }
        resp = requests.get(
            self._url(collection),
            headers=_headers(),
            params=params,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json().get("data") or []
        return data if isinstance(data, list) else [data]

    def put(self, collection: str, key: Any, data: dict) -> dict:
        resp = requests.put(
            self._url(collection, key),
            headers=_headers(),
            json={"data": data},
            timeout=self.timeout,
        )
        if not resp.ok:
            logger.error(f"Strapi PUT {collection}/{key} failed: {resp.status_code} {resp.text[:200]}")
        resp.raise_for_status()
        return resp.json().get("data") or {}


class StrapiBookCatalog(InternalCatalog):
    """Internal book catalog: containment queries over nombre_libro / isbn_libro."""

    def __init__(self, client: Optional[StrapiClient] = None):
        self.client = client or StrapiClient()

    def search(
        self,
        name: Optional[str] = None,
        isbn: Optional[str] = None,
        page_size: int = 100,
    ) -> list[dict]:
        term = isbn or name or ""
        field = "isbn_libro" if isbn else "nombre_libro"
        params = {
            "publicationState": "preview",
            "pagination[pageSize]": page_size,
            **_filter_params({field: term}, "$containsi"),
            **_populate_params(["portada_libro"]),
        }
        try:
            resp = requests.get(
                self.client._url(LIBROS),
                headers=_headers(),
                params=params,
                timeout=self.client.timeout,
            )
            resp.raise_for_status()
            return resp.json().get("data") or []
        except (requests.RequestException, ValueError) as e:
            raise ExternalLookupError("internal catalog", term, e) from e
