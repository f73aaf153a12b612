"""
MCP Resource Handlers

Handles resource declaration and reading for MCP protocol.
Exposes resources:
- airquality://current/{lat},{lon}
- airquality://forecast/{lat},{lon}
- airquality://history/{lat},{lon}
- airquality://heatmap/{mapType}/{zoom}/{x}/{y}
- example://server-info (static)

Unlike tools, resource failures are raised as ResourceReadError and
reported by the transport.
"""

import asyncio
import base64
import json
import logging
import re
from functools import partial
from typing import Callable, TypeVar
from urllib.parse import unquote

from pydantic import ValidationError

from src.airquality.client import AirQualityClient, AirQualityError, DEFAULT_BASE_URL
from src.airquality.models import (
    CurrentConditionsRequest,
    ForecastRequest,
    HeatmapTileKey,
    HistoryRequest,
    LatLng,
    MAP_TYPE_VALUES,
    MapType,
    MAX_ZOOM,
    MIN_ZOOM,
    ProviderModel,
    TriState,
)
from ..errors import ResourceReadError
from ..models import (
    ResourceContents,
    ResourceDefinition,
    ResourceReadResponse,
    ResourceTemplateDefinition,
)
from ..registry import CapabilityRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEME = "airquality://"
CURRENT_PREFIX = SCHEME + "current/"
FORECAST_PREFIX = SCHEME + "forecast/"
HISTORY_PREFIX = SCHEME + "history/"
HEATMAP_PREFIX = SCHEME + "heatmap/"
SERVER_INFO_URI = "example://server-info"

HISTORY_HOURS = 24

_INTEGER = re.compile(r"[+-]?[0-9]+")
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

SERVER_INFO_TEXT = """Google Air Quality MCP Server
==============================

This server provides air quality data through the Google Air Quality API.

Available Resources:
- airquality://current/{lat},{long} - Current air quality conditions
- airquality://forecast/{lat},{long} - Air quality forecast
- airquality://history/{lat},{long} - Historical air quality data
- airquality://heatmap/{mapType}/{zoom}/{x}/{y} - Heatmap tiles

Example: airquality://current/37.7749,-122.4194
"""


# ============================================================================
# URI parsing
# ============================================================================

def strip_prefix(uri: str, prefix: str) -> str:
    """Path after a resource prefix, percent-decoded."""
    if not uri.startswith(prefix):
        raise ResourceReadError(f"invalid URI format: '{uri}' does not start with '{prefix}'")
    return unquote(uri[len(prefix):])


def _parse_coordinate(text: str, name: str) -> float:
    if not _DECIMAL.fullmatch(text):
        raise ResourceReadError(f"invalid {name}: '{text}'")
    return float(text)


def parse_lat_long(text: str) -> LatLng:
    """
    Parse "lat,lon" (whitespace around either half is ignored).

    Raises:
        ResourceReadError: If the text is not two comma-separated numbers
            within latitude/longitude bounds
    """
    parts = text.split(",")
    if len(parts) != 2:
        raise ResourceReadError(f"invalid location format '{text}', expected 'lat,long'")

    latitude = _parse_coordinate(parts[0].strip(), "latitude")
    longitude = _parse_coordinate(parts[1].strip(), "longitude")
    try:
        return LatLng(latitude=latitude, longitude=longitude)
    except ValidationError as e:
        problems = "; ".join(f"{err['loc'][0]} {err['msg']}" for err in e.errors())
        raise ResourceReadError(f"invalid location '{text}': {problems}")


def _parse_tile_int(text: str, name: str) -> int:
    if not _INTEGER.fullmatch(text.strip()):
        raise ResourceReadError(f"invalid {name}: '{text}'")
    return int(text.strip())


def parse_heatmap_path(path: str) -> HeatmapTileKey:
    """
    Parse "{mapType}/{zoom}/{x}/{y}".

    Raises:
        ResourceReadError: On a wrong segment count, a non-integer zoom/x/y,
            an unknown map type, or an out-of-range zoom/x/y
    """
    parts = path.split("/")
    if len(parts) != 4:
        raise ResourceReadError(
            f"invalid heatmap URI format '{path}', expected {{mapType}}/{{zoom}}/{{x}}/{{y}}"
        )

    map_type_text, zoom_text, x_text, y_text = parts
    if map_type_text not in MAP_TYPE_VALUES:
        raise ResourceReadError(f"invalid map type: '{map_type_text}'")

    zoom = _parse_tile_int(zoom_text, "zoom level")
    x = _parse_tile_int(x_text, "x coordinate")
    y = _parse_tile_int(y_text, "y coordinate")
    if zoom < MIN_ZOOM or zoom > MAX_ZOOM:
        raise ResourceReadError(f"zoom must be between {MIN_ZOOM} and {MAX_ZOOM}, got {zoom}")
    if x < 0 or y < 0:
        raise ResourceReadError(f"tile coordinates must be non-negative, got x={x}, y={y}")

    return HeatmapTileKey(map_type=MapType(map_type_text), zoom=zoom, x=x, y=y)


# ============================================================================
# Handlers
# ============================================================================

def _json_contents(uri: str, response: ProviderModel) -> ResourceReadResponse:
    text = json.dumps(response.to_wire(), indent=2)
    return ResourceReadResponse(contents=[
        ResourceContents(uri=uri, mimeType="application/json", text=text)
    ])


async def _fetch(
    uri: str,
    failure_message: str,
    fetch: Callable[[AirQualityClient], T],
    api_key: str,
    base_url: str,
) -> T:
    client = AirQualityClient(api_key, base_url=base_url)
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, fetch, client)
    except AirQualityError as e:
        logger.warning(f"Error reading resource '{uri}': {e}")
        raise ResourceReadError(f"{failure_message}: {e}", status_code=502) from e


async def read_current(uri: str, api_key: str, base_url: str = DEFAULT_BASE_URL) -> ResourceReadResponse:
    """airquality://current/{lat},{lon} with the Universal AQI forced on."""
    location = parse_lat_long(strip_prefix(uri, CURRENT_PREFIX))
    request = CurrentConditionsRequest(location=location, universal_aqi=TriState.TRUE)
    response = await _fetch(
        uri, "failed to get current conditions",
        lambda client: client.fetch_current_conditions(request),
        api_key, base_url,
    )
    return _json_contents(uri, response)


async def read_forecast(uri: str, api_key: str, base_url: str = DEFAULT_BASE_URL) -> ResourceReadResponse:
    """airquality://forecast/{lat},{lon} with the Universal AQI forced on."""
    location = parse_lat_long(strip_prefix(uri, FORECAST_PREFIX))
    request = ForecastRequest(location=location, universal_aqi=TriState.TRUE)
    response = await _fetch(
        uri, "failed to get forecast",
        lambda client: client.fetch_forecast(request),
        api_key, base_url,
    )
    return _json_contents(uri, response)


async def read_history(uri: str, api_key: str, base_url: str = DEFAULT_BASE_URL) -> ResourceReadResponse:
    """airquality://history/{lat},{lon}: the last 24 hours, Universal AQI forced on."""
    location = parse_lat_long(strip_prefix(uri, HISTORY_PREFIX))
    request = HistoryRequest(location=location, hours=HISTORY_HOURS, universal_aqi=TriState.TRUE)
    response = await _fetch(
        uri, "failed to get history",
        lambda client: client.fetch_history(request),
        api_key, base_url,
    )
    return _json_contents(uri, response)


async def read_heatmap(uri: str, api_key: str, base_url: str = DEFAULT_BASE_URL) -> ResourceReadResponse:
    """airquality://heatmap/{mapType}/{zoom}/{x}/{y} as base64 text with MIME image/png."""
    key = parse_heatmap_path(strip_prefix(uri, HEATMAP_PREFIX))
    data = await _fetch(
        uri, "failed to get heatmap tile",
        lambda client: client.fetch_heatmap_tile(key),
        api_key, base_url,
    )
    return ResourceReadResponse(contents=[
        ResourceContents(uri=uri, mimeType="image/png", text=base64.b64encode(data).decode("ascii"))
    ])


async def read_server_info(uri: str) -> ResourceReadResponse:
    return ResourceReadResponse(contents=[
        ResourceContents(uri=uri, mimeType="text/plain", text=SERVER_INFO_TEXT)
    ])


# ============================================================================
# Registration
# ============================================================================

RESOURCE_TEMPLATES = [
    (
        ResourceTemplateDefinition(
            uriTemplate=CURRENT_PREFIX + "{lat},{lon}",
            name="Current Air Quality",
            description="Current air quality conditions for a latitude/longitude",
            mimeType="application/json"
        ),
        read_current,
    ),
    (
        ResourceTemplateDefinition(
            uriTemplate=FORECAST_PREFIX + "{lat},{lon}",
            name="Air Quality Forecast",
            description="Hourly air quality forecast for a latitude/longitude",
            mimeType="application/json"
        ),
        read_forecast,
    ),
    (
        ResourceTemplateDefinition(
            uriTemplate=HISTORY_PREFIX + "{lat},{lon}",
            name="Air Quality History",
            description="Air quality for the past 24 hours at a latitude/longitude",
            mimeType="application/json"
        ),
        read_history,
    ),
    (
        ResourceTemplateDefinition(
            uriTemplate=HEATMAP_PREFIX + "{mapType}/{zoom}/{x}/{y}",
            name="Air Quality Heatmap Tile",
            description="Base64 encoded PNG heatmap tile",
            mimeType="image/png"
        ),
        read_heatmap,
    ),
]

SERVER_INFO_RESOURCE = ResourceDefinition(
    uri=SERVER_INFO_URI,
    name="Server Information",
    description="Basic information about this MCP server",
    mimeType="text/plain"
)


def register_all(registry: CapabilityRegistry, api_key: str, base_url: str = DEFAULT_BASE_URL) -> None:
    """Register the static server-info resource and the four Air Quality templates."""
    registry.add_resource(SERVER_INFO_RESOURCE, read_server_info)
    for definition, handler in RESOURCE_TEMPLATES:
        registry.add_resource_template(definition, partial(handler, api_key=api_key, base_url=base_url))
