# storefront/services/product_client.py
from dataclasses import dataclass
from decimal import Decimal

import requests
from requests import RequestException

from storefront.domain.errors import CatalogUnavailable
from storefront.services.pricing import to_cents
from storefront.utils.retry import http_retry
from storefront.utils.settings import PRODUCT_SERVICE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CatalogProduct:
    id: int
    name: str
    sku: str
    price_cents: int
    category_id: str | None


class ProductClient:
    """Odczyt aktualnej ceny / nazwy produktu z product-service (read-only)."""

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_product(self, product_id: int) -> dict | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def fetch_catalog(self, product_ids: list[int]) -> dict[int, CatalogProduct]:
        """
        Zwraca tylko produkty ktore istnieja i maja cene.
        Brakujace id wykrywa wywolujacy.
        """
        found: dict[int, CatalogProduct] = {}
        for product_id in dict.fromkeys(product_ids):
            try:
                pdata = self.fetch_product(product_id)
            except RequestException as e:
                logger.error(f"Catalog lookup for product {product_id} failed: {e}")
                raise CatalogUnavailable("Product catalog is unavailable") from e

            if not pdata or pdata.get("price") is None:
                continue

            found[product_id] = CatalogProduct(
                id=product_id,
                name=pdata["name"],
                sku=pdata.get("sku") or "",
                price_cents=to_cents(Decimal(str(pdata["price"]))),
                category_id=pdata.get("category_id"),
            )
        return found
