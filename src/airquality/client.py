"""
Air Quality API Client

Stateless adapter around the provider's HTTP API:
- fetch_current_conditions: POST /currentConditions:lookup
- fetch_forecast: POST /forecast:lookup
- fetch_history: POST /history:lookup
- fetch_heatmap_tile: GET /mapTypes/{mapType}/heatmapTiles/{zoom}/{x}/{y}

Every call is bounded by a fixed 30 second timeout and is never retried.
"""

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import requests
from pydantic import ValidationError

from .models import (
    CurrentConditionsRequest,
    CurrentConditionsResponse,
    ForecastRequest,
    ForecastResponse,
    HeatmapTileKey,
    HistoryRequest,
    HistoryResponse,
    LookupRequest,
    ProviderModel,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://airquality.googleapis.com/v1"
REQUEST_TIMEOUT = 30

CURRENT_CONDITIONS_PATH = "/currentConditions:lookup"
FORECAST_PATH = "/forecast:lookup"
HISTORY_PATH = "/history:lookup"
HEATMAP_TILE_PATH = "/mapTypes/{map_type}/heatmapTiles/{zoom}/{x}/{y}"

ResponseT = TypeVar("ResponseT", bound=ProviderModel)


# ============================================================================
# Errors
# ============================================================================

class AirQualityError(Exception):
    """Base class for provider client failures."""


class ProviderError(AirQualityError):
    """
    The provider could not be reached or answered with a non-2xx status.

    status_code is None when the request never produced a response
    (connection failure, timeout).
    """

    def __init__(self, status_code: Optional[int], body: str):
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"API request failed: {body}"
        else:
            message = f"API request failed with status {status_code}: {body}"
        super().__init__(message)


class DecodingError(AirQualityError):
    """The provider answered 2xx but the body did not match the response schema."""

    def __init__(self, message: str, body: str = ""):
        self.body = body
        super().__init__(f"failed to decode response: {message}")


# ============================================================================
# Client
# ============================================================================

class AirQualityClient:
    """Client for the Air Quality API. Holds no state beyond its credentials."""

    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL, timeout: float = REQUEST_TIMEOUT):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def fetch_current_conditions(self, request: CurrentConditionsRequest) -> CurrentConditionsResponse:
        """Current indexes, pollutants and health advice for a location."""
        return self._post(CURRENT_CONDITIONS_PATH, request, CurrentConditionsResponse)

    def fetch_forecast(self, request: ForecastRequest) -> ForecastResponse:
        """Hourly forecast page for a location."""
        return self._post(FORECAST_PATH, request, ForecastResponse)

    def fetch_history(self, request: HistoryRequest) -> HistoryResponse:
        """Hourly history page for a location."""
        return self._post(HISTORY_PATH, request, HistoryResponse)

    def fetch_heatmap_tile(self, key: HeatmapTileKey) -> bytes:
        """
        Fetch one heatmap tile.

        Returns the raw response bytes unmodified (PNG on success).
        """
        path = HEATMAP_TILE_PATH.format(
            map_type=key.map_type.value, zoom=key.zoom, x=key.x, y=key.y
        )
        logger.info(f"GET {path}")
        try:
            response = requests.get(
                f"{self.base_url}{path}",
                params={"key": self.api_key},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Heatmap tile request failed: {e}")
            raise ProviderError(None, str(e)) from e

        self._raise_for_status(path, response)
        return response.content

    def _post(self, path: str, request: LookupRequest, response_model: Type[ResponseT]) -> ResponseT:
        """POST a JSON lookup request and decode the typed response."""
        body: Dict[str, Any] = request.to_wire()
        logger.info(f"POST {path}")
        try:
            response = requests.post(
                f"{self.base_url}{path}",
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=body,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Request to {path} failed: {e}")
            raise ProviderError(None, str(e)) from e

        self._raise_for_status(path, response)

        try:
            data = response.json()
        except ValueError as e:
            raise DecodingError(f"invalid JSON: {e}", response.text) from e

        try:
            return response_model.model_validate(data)
        except ValidationError as e:
            raise DecodingError(str(e), response.text) from e

    @staticmethod
    def _raise_for_status(path: str, response: requests.Response) -> None:
        if 200 <= response.status_code < 300:
            return
        logger.warning(f"{path} returned status {response.status_code}")
        raise ProviderError(response.status_code, response.text)
