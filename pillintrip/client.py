# pillintrip/client.py
"""Async client for the Pillintrip search endpoint.

Both calls (search by name and search analogs by id) are POSTed as JSON to
the same URL; the payload shape alone tells the API which one is meant.
No retries: a failed request is reported to the caller as PillintripError.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .models import (
    AnalogSearchResult,
    Medicine,
    MedicineInfo,
    SearchAnalogRequest,
    SearchMedicineRequest,
    SearchMedicineResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.pillintrip.com/search"
DEFAULT_TIMEOUT = 30.0
CONNECT_TIMEOUT = 10.0


class PillintripError(Exception):
    """Any failure talking to the API."""


class PillintripTransportError(PillintripError):
    """Network error or non-2xx status."""


class PillintripDecodeError(PillintripError):
    """Body is not JSON or does not match the expected shape.

    For analog searches ``medicine_info`` holds the queried medicine if that
    block of the body could still be read, otherwise an empty MedicineInfo.
    """

    def __init__(self, message: str, medicine_info: Optional[MedicineInfo] = None):
        super().__init__(message)
        self.medicine_info = medicine_info or MedicineInfo()


class PillintripClient:
    def __init__(
        self,
        api_key: str,
        home_country: int,
        target_country: int,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self.home_country = home_country
        self.target_country = target_country
        self.api_url = api_url
        self._http = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(timeout, connect=min(timeout, CONNECT_TIMEOUT)),
            transport=transport,
        )

    def __repr__(self) -> str:
        return f"PillintripClient(api_url={self.api_url!r}, home_country={self.home_country}, target_country={self.target_country})"

    async def close(self) -> None:
        await self._http.aclose()

    async def _post(self, payload: Dict[str, Any]) -> Any:
        try:
            resp = await self._http.post(self.api_url, json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise PillintripTransportError(str(e) or e.__class__.__name__) from e

        try:
            return resp.json()
        except ValueError as e:
            raise PillintripDecodeError(f"response is not JSON: {e}") from e

    # ─────────────────────────────────────────
    # Search by name
    # ─────────────────────────────────────────

    async def search_medicines(self, query: str) -> List[Medicine]:
        request = SearchMedicineRequest(
            api_key=self._api_key,
            home_country=self.home_country,
            query=query,
        )
        logger.info("Поиск лекарств: %s", query)

        body = await self._post(request.model_dump())
        try:
            return list(SearchMedicineResponse.model_validate(body).medicines)
        except ValidationError as e:
            raise PillintripDecodeError(f"unexpected search response: {e}") from e

    # ─────────────────────────────────────────
    # Search analogs by id
    # ─────────────────────────────────────────

    async def search_analogs(self, medicine_id: int) -> AnalogSearchResult:
        request = SearchAnalogRequest(
            api_key=self._api_key,
            home_country=self.home_country,
            target_country=self.target_country,
            medicine=medicine_id,
        )
        logger.info("Поиск аналогов: %d", medicine_id)

        body = await self._post(request.model_dump())
        try:
            return AnalogSearchResult.model_validate(body)
        except ValidationError as e:
            raise PillintripDecodeError(
                f"unexpected analogs response: {e}",
                medicine_info=_salvage_medicine_info(body),
            ) from e


def _salvage_medicine_info(body: Any) -> Optional[MedicineInfo]:
    # если сломались только аналоги — название исходного лекарства всё ещё нужно для ответа
    if not isinstance(body, dict):
        return None
    try:
        return MedicineInfo.model_validate(body.get("medicine_info") or {})
    except ValidationError:
        return None
