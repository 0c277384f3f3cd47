# storefront/services/carrier_client.py
from dataclasses import dataclass, field
from typing import Any

import requests
from requests import RequestException

from storefront.domain.errors import CarrierSubmissionFailure
from storefront.utils.retry import http_retry
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# pola wymiarow wysylane tylko gdy sa ustawione
_OPTIONAL_FIELDS = ("height", "width", "length", "weight", "stopdesk_id")


class DirectoryUnavailable(Exception):
    pass


@dataclass
class CarrierResult:
    ok: bool
    tracking: str | None = None
    label_url: str | None = None
    status: str | None = None
    error: str | None = None
    raw: Any = None


@dataclass
class FeeTable:
    oversize_fee: int
    per_sub_region: list[dict] = field(default_factory=list)


class CarrierClient:
    """
    Klient HTTP przewoznika (API zgodne z Yalidine):
    - tworzenie paczki (POST, bez retry)
    - katalog regionow i podregionow
    - tabela oplat
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_id: str | None = None,
        api_token: str | None = None,
        timeout: int | None = None,
    ):
        self.base_url = base_url if base_url is not None else settings.CARRIER_API_BASE
        if self.base_url and not self.base_url.endswith("/"):
            self.base_url += "/"
        self.api_id = api_id if api_id is not None else settings.CARRIER_API_ID
        self.api_token = api_token if api_token is not None else settings.CARRIER_API_TOKEN
        self.timeout = timeout or settings.CARRIER_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_id and self.api_token)

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "X-API-ID": self.api_id,
            "X-API-TOKEN": self.api_token,
        }

    # ------------------------------------------------------------------
    # parcels
    # ------------------------------------------------------------------
    def create_parcel(self, payload: dict) -> CarrierResult:
        """
        Dokladnie jedna proba, POST nie jest idempotentny po stronie przewoznika.
        Bledy sieci i odpowiedzi != 2xx zwracane jako CarrierResult(ok=False).
        """
        if not self.configured:
            logger.warning("Carrier API credentials not configured, parcel not created")
            return CarrierResult(ok=False, error="Carrier API credentials not configured")

        body = {k: v for k, v in payload.items() if not (k in _OPTIONAL_FIELDS and v is None)}
        url = f"{self.base_url}parcels"
        logger.info(f"CarrierClient POST {url} order_id={payload.get('order_id')}")

        try:
            resp = requests.post(url, json=[body], headers=self._headers(), timeout=self.timeout)
        except RequestException as e:
            logger.error(f"Carrier request failed: {e}")
            return CarrierResult(ok=False, error=str(e), raw={"error": str(e)})

        try:
            raw = resp.json()
        except ValueError:
            return CarrierResult(
                ok=False,
                error=f"Invalid JSON response: {resp.text[:200]}",
                raw={"status": resp.status_code, "body": resp.text},
            )

        if not resp.ok:
            if isinstance(raw, str):
                message = raw
            else:
                message = raw.get("error") or raw.get("message") or f"HTTP {resp.status_code}"
            logger.error(f"Carrier rejected parcel {payload.get('order_id')}: {message}")
            return CarrierResult(ok=False, error=str(message), raw=raw)

        try:
            parcel = self._first_parcel(raw)
        except CarrierSubmissionFailure as e:
            return CarrierResult(ok=False, error=e.message, raw=raw)

        return CarrierResult(
            ok=True,
            tracking=parcel.get("tracking") or parcel.get("tracking_code") or parcel.get("tracking_number"),
            label_url=parcel.get("label_url") or parcel.get("labelUrl") or parcel.get("label"),
            status=parcel.get("status") or ("created" if parcel.get("success") else "pending"),
            raw=raw,
        )

    @staticmethod
    def _first_parcel(raw: Any) -> dict:
        # przewoznik zwraca liste, {"parcels": [...]} albo {"<order_id>": {...}}
        if isinstance(raw, list):
            first = raw[0] if raw else None
        elif isinstance(raw, dict) and raw.get("parcels"):
            first = raw["parcels"][0]
        else:
            first = raw

        if isinstance(first, dict) and not first.get("tracking") and not first.get("status") and first:
            nested = next(iter(first.values()))
            if isinstance(nested, dict):
                first = nested

        if not isinstance(first, dict):
            raise CarrierSubmissionFailure("Unexpected carrier response format")
        if first.get("success") is False:
            raise CarrierSubmissionFailure(first.get("message") or "Carrier refused the parcel")
        return first

    # ------------------------------------------------------------------
    # directory / fees (GET, z retry)
    # ------------------------------------------------------------------
    @http_retry()
    def _get(self, path: str, params: dict | None = None) -> Any:
        if not self.configured:
            raise DirectoryUnavailable("Carrier API credentials not configured")

        url = f"{self.base_url}{path}"
        logger.info(f"CarrierClient GET {url} {params or ''}")
        resp = requests.get(url, params=params, headers=self._headers(), timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    @staticmethod
    def _unwrap(data: Any, *keys: str) -> list:
        if isinstance(data, list):
            return data
        for key in ("data", *keys):
            if isinstance(data, dict) and isinstance(data.get(key), list):
                return data[key]
        return []

    def get_regions(self) -> list[dict]:
        try:
            return self._unwrap(self._get("wilayas"), "wilayas")
        except RequestException as e:
            raise DirectoryUnavailable(str(e)) from e

    def get_sub_regions(self, region_id: int) -> list[dict]:
        try:
            return self._unwrap(self._get("communes", {"wilaya_id": region_id}), "communes")
        except RequestException as e:
            raise DirectoryUnavailable(str(e)) from e

    def get_fees(self, to_region_id: int) -> FeeTable:
        try:
            data = self._get(
                "fees/",
                {"from_wilaya_id": settings.CARRIER_FROM_REGION_ID, "to_wilaya_id": to_region_id},
            )
        except RequestException as e:
            raise DirectoryUnavailable(str(e)) from e

        if not isinstance(data, dict):
            raise DirectoryUnavailable(f"Unexpected fees response format: {type(data).__name__}")

        per_commune = data.get("per_commune")
        if not isinstance(per_commune, dict):
            per_commune = {}
        return FeeTable(
            oversize_fee=int(data.get("oversize_fee") or 0),
            per_sub_region=list(per_commune.values()),
        )
