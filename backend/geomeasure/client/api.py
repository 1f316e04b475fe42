# backend/geomeasure/client/api.py
"""Async client for the measurements API"""
from typing import Any, Dict, List, Optional

import httpx
import structlog

from geomeasure.config import settings

logger = structlog.get_logger(__name__)


class MeasurementApiError(Exception):
    """API call failed (HTTP error status or transport failure)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MeasurementsClient:
    """Thin wrapper over /api. No retries; failures surface immediately."""

    def __init__(self, base_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.session = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "MeasurementsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.session.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self.session.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_text(e.response)
            logger.error("measurements API error", method=method, path=path, status=e.response.status_code, error=message)
            raise MeasurementApiError(message, status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error("measurements API request failed", method=method, path=path, error=str(e))
            raise MeasurementApiError(f"Request failed: {e}") from e
        return response.json()

    async def health(self) -> bool:
        data = await self._request("GET", "/health")
        return bool(data.get("ok"))

    async def list_measurements(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/measurements")

    async def create_measurement(self, measurement: Dict[str, Any]) -> Dict[str, Any]:
        """
        Args:
            measurement: {type, geojson, value, unit} as produced by geometry.to_measurement

        Returns:
            Created record including server-assigned _id / createdAt
        """
        return await self._request("POST", "/measurements", json=measurement)

    async def delete_latest(self) -> int:
        data = await self._request("DELETE", "/measurements/latest")
        return data["deletedCount"]


def _error_text(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("error"):
        if body.get("details"):
            return f"{body['error']}: {body['details']}"
        return body["error"]
    return f"HTTP {response.status_code}"
