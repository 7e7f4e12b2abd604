"""
WooCommerce REST v3 client.

Implements the engine's ProductCatalog: published-product search and
product updates, authenticated with the store's consumer key/secret.
"""
import logging
from typing import Any, Optional

import requests

from pupitre.material_lists.adapters import ProductCatalog
from pupitre.material_lists.errors import ExternalLookupError

from .config import settings

logger = logging.getLogger(__name__)


class WooCommerceClient(ProductCatalog):
    """ProductCatalog over /wp-json/wc/v3/products."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        consumer_key: Optional[str] = None,
        consumer_secret: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.WOOCOMMERCE_URL).rstrip("/")
        self.auth = (
            consumer_key or settings.WOOCOMMERCE_CONSUMER_KEY,
            consumer_secret or settings.WOOCOMMERCE_CONSUMER_SECRET,
        )
        self.timeout = timeout or settings.HTTP_TIMEOUT

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.auth[0] and self.auth[1])

    def _url(self, path: str) -> str:
        return f"{self.base_url}/wp-json/wc/v3/{path}"

    def search(self, term: str, per_page: int = 10) -> list[dict]:
        try:
            resp = requests.get(
                self._url("products"),
                auth=self.auth,
                params={"search": term, "per_page": per_page, "status": "publish"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            products = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"WooCommerce search failed for '{term}': {e}")
            raise ExternalLookupError("catalog", term, e) from e
        return products if isinstance(products, list) else []

    def update_product(self, product_id: Any, fields: dict) -> dict:
        try:
            resp = requests.put(
                self._url(f"products/{product_id}"),
                auth=self.auth,
                json=fields,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"WooCommerce update of product {product_id} failed: {e}")
            raise ExternalLookupError("catalog", str(product_id), e) from e
