"""
Air Quality provider module.

This module provides the typed schema and the HTTP client used by every
MCP tool and resource to reach the Air Quality API.
"""

from .client import (
    AirQualityClient,
    AirQualityError,
    ProviderError,
    DecodingError,
)
from .models import (
    ExtraComputation,
    ColorPalette,
    MapType,
    TriState,
    LatLng,
    Interval,
    CustomLocalAqi,
    CurrentConditionsRequest,
    ForecastRequest,
    HistoryRequest,
    HeatmapTileKey,
    AirQualityIndex,
    Pollutant,
    HealthRecommendations,
    TimestampedReading,
    CurrentConditionsResponse,
    ForecastResponse,
    HistoryResponse,
)

__all__ = [
    # Client
    "AirQualityClient",
    "AirQualityError",
    "ProviderError",
    "DecodingError",
    # Enumerations
    "ExtraComputation",
    "ColorPalette",
    "MapType",
    "TriState",
    # Requests
    "LatLng",
    "Interval",
    "CustomLocalAqi",
    "CurrentConditionsRequest",
    "ForecastRequest",
    "HistoryRequest",
    "HeatmapTileKey",
    # Responses
    "AirQualityIndex",
    "Pollutant",
    "HealthRecommendations",
    "TimestampedReading",
    "CurrentConditionsResponse",
    "ForecastResponse",
    "HistoryResponse",
]
