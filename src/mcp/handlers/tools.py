"""
MCP Tool Handlers

Handles tool declaration and execution for MCP protocol.
Exposes Air Quality tools: get_current_air_quality, get_air_quality_forecast,
get_air_quality_history, get_air_quality_heatmap_tile

Every failure (bad arguments, out-of-range values, provider errors) is
returned as a ToolCallResponse with isError=True, never raised.
"""

import asyncio
import base64
import json
import logging
from functools import partial
from typing import Any, Callable, Dict, Optional, TypeVar

from pydantic import ValidationError

from src.airquality.client import AirQualityClient, AirQualityError, DEFAULT_BASE_URL
from src.airquality.models import (
    COLOR_PALETTE_VALUES,
    EXTRA_COMPUTATION_VALUES,
    MAP_TYPE_VALUES,
    MAX_ZOOM,
    MIN_ZOOM,
    ProviderModel,
)
from ..arguments import decode_arguments
from ..inputs import CurrentConditionsInput, ForecastInput, HeatmapInput, HistoryInput
from ..models import TextContent, ToolCallResponse, ToolDefinition
from ..registry import CapabilityRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

CURRENT_CONDITIONS_TOOL = "get_current_air_quality"
FORECAST_TOOL = "get_air_quality_forecast"
HISTORY_TOOL = "get_air_quality_history"
HEATMAP_TOOL = "get_air_quality_heatmap_tile"


# ============================================================================
# Input Schemas
# ============================================================================

_LOCATION_PROPERTIES: Dict[str, Any] = {
    "latitude": {
        "type": "number",
        "description": "Location latitude",
        "minimum": -90,
        "maximum": 90
    },
    "longitude": {
        "type": "number",
        "description": "Location longitude",
        "minimum": -180,
        "maximum": 180
    },
    "extraComputations": {
        "type": "array",
        "description": "Additional features to compute (" + " ".join(EXTRA_COMPUTATION_VALUES) + ")",
        "items": {
            "type": "string",
            "enum": EXTRA_COMPUTATION_VALUES
        }
    },
    "uaqiColorPalette": {
        "type": "string",
        "enum": COLOR_PALETTE_VALUES,
        "description": "Color palette for UAQI (" + " ".join(COLOR_PALETTE_VALUES) + ")"
    },
    "customLocalAqis": {
        "type": "array",
        "description": "Local AQI to use per region instead of the region's default",
        "items": {
            "type": "object",
            "properties": {
                "regionCode": {"type": "string", "description": "CLDR region code, e.g. US"},
                "aqi": {"type": "string", "description": "AQI code, e.g. usa_epa_nowcast"}
            },
            "required": ["regionCode", "aqi"]
        }
    },
    "universalAqi": {
        "type": "boolean",
        "description": "Include Universal AQI (default: true)"
    },
    "languageCode": {
        "type": "string",
        "description": "Response language code (default: en)"
    }
}

_PAGING_PROPERTIES: Dict[str, Any] = {
    "pageSize": {
        "type": "integer",
        "minimum": 0,
        "description": "Number of hourly records per page"
    },
    "pageToken": {
        "type": "string",
        "description": "Pagination token for next page"
    }
}


def _period_properties(noun: str) -> Dict[str, Any]:
    return {
        "dateTime": {
            "type": "string",
            "description": f"Specific {noun} time (ISO 8601 format)"
        },
        "periodStartTime": {
            "type": "string",
            "description": f"{noun.capitalize()} period start time (ISO 8601 format)"
        },
        "periodEndTime": {
            "type": "string",
            "description": f"{noun.capitalize()} period end time (ISO 8601 format)"
        }
    }


CURRENT_CONDITIONS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": dict(_LOCATION_PROPERTIES),
    "required": ["latitude", "longitude"]
}

FORECAST_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        **_LOCATION_PROPERTIES,
        **_PAGING_PROPERTIES,
        **_period_properties("forecast")
    },
    "required": ["latitude", "longitude"]
}

HISTORY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        **_LOCATION_PROPERTIES,
        **_PAGING_PROPERTIES,
        "pageSize": {
            "type": "integer",
            "minimum": 0,
            "description": "Max hourly records per page (default: 72 max: 168)"
        },
        **_period_properties("historical"),
        "hours": {
            "type": "integer",
            "minimum": 0,
            "description": "Number of hours of history"
        }
    },
    "required": ["latitude", "longitude"]
}

HEATMAP_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "mapType": {
            "type": "string",
            "enum": MAP_TYPE_VALUES,
            "description": "Type of heatmap (" + " ".join(MAP_TYPE_VALUES) + ")"
        },
        "zoom": {
            "type": "integer",
            "minimum": MIN_ZOOM,
            "maximum": MAX_ZOOM,
            "description": "Zoom level (0-16)"
        },
        "x": {
            "type": "integer",
            "minimum": 0,
            "description": "East-west tile coordinate"
        },
        "y": {
            "type": "integer",
            "minimum": 0,
            "description": "North-south tile coordinate"
        }
    },
    "required": ["mapType", "zoom", "x", "y"]
}

TOOL_DEFINITIONS: Dict[str, ToolDefinition] = {
    CURRENT_CONDITIONS_TOOL: ToolDefinition(
        name=CURRENT_CONDITIONS_TOOL,
        description=(
            "Get current air quality conditions for a specific location. Returns air quality "
            "indexes, pollutant levels, and health recommendations."
        ),
        inputSchema=CURRENT_CONDITIONS_SCHEMA
    ),
    FORECAST_TOOL: ToolDefinition(
        name=FORECAST_TOOL,
        description=(
            "Get air quality forecast for a specific location. Returns hourly forecasts with "
            "air quality indexes and pollutant predictions."
        ),
        inputSchema=FORECAST_SCHEMA
    ),
    HISTORY_TOOL: ToolDefinition(
        name=HISTORY_TOOL,
        description=(
            "Get historical air quality data for a specific location. Returns past hourly "
            "air quality measurements."
        ),
        inputSchema=HISTORY_SCHEMA
    ),
    HEATMAP_TOOL: ToolDefinition(
        name=HEATMAP_TOOL,
        description=(
            "Get air quality heatmap tile image for visualization. Returns a PNG image tile "
            "for the specified map type and coordinates."
        ),
        inputSchema=HEATMAP_SCHEMA
    ),
}


# ============================================================================
# Result helpers
# ============================================================================

def text_result(text: str) -> ToolCallResponse:
    return ToolCallResponse(content=[TextContent(text=text)], isError=False)


def error_result(message: str) -> ToolCallResponse:
    return ToolCallResponse(content=[TextContent(text=message)], isError=True)


def render_json(response: ProviderModel) -> str:
    """Indented JSON in the provider's wire shape."""
    return json.dumps(response.to_wire(), indent=2)


def render_png_data_uri(data: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(data).decode("ascii")


def new_client(api_key: str, base_url: str = DEFAULT_BASE_URL) -> AirQualityClient:
    """A fresh provider client; one per call."""
    return AirQualityClient(api_key, base_url=base_url)


async def _call_provider(
    tool_name: str,
    failure_message: str,
    fetch: Callable[[AirQualityClient], T],
    render: Callable[[T], str],
    api_key: str,
    base_url: str,
) -> ToolCallResponse:
    """Run a blocking provider call in the default executor and render its result."""
    client = new_client(api_key, base_url)
    loop = asyncio.get_running_loop()
    try:
        response = await loop.run_in_executor(None, fetch, client)
    except AirQualityError as e:
        logger.warning(f"Tool '{tool_name}' provider call failed: {e}")
        return error_result(f"{failure_message}: {e}")
    except Exception as e:
        logger.error(f"Error executing tool '{tool_name}': {e}", exc_info=True)
        return error_result(f"Unexpected error: {e}")

    try:
        return text_result(render(response))
    except (TypeError, ValueError) as e:
        logger.error(f"Error serializing '{tool_name}' response: {e}", exc_info=True)
        return error_result(f"Failed to serialize response: {e}")


def _invalid_input(tool_name: str, message: str) -> ToolCallResponse:
    logger.warning(f"Invalid input for tool '{tool_name}': {message}")
    return error_result(f"Invalid input: {message}")


# ============================================================================
# Tool handlers
# ============================================================================

async def get_current_air_quality(
    arguments: Optional[Dict[str, Any]],
    api_key: str,
    base_url: str = DEFAULT_BASE_URL,
) -> ToolCallResponse:
    """
    Current conditions for a latitude/longitude.

    Args:
        arguments: Raw tool arguments (latitude, longitude, optional extras)
        api_key: Air Quality API key
        base_url: Air Quality API base URL

    Returns:
        ToolCallResponse with the indented JSON response, or isError=True
    """
    decoded = decode_arguments(CurrentConditionsInput, arguments)
    if not decoded.ok:
        return _invalid_input(CURRENT_CONDITIONS_TOOL, decoded.describe())

    request = decoded.value.to_request()
    return await _call_provider(
        CURRENT_CONDITIONS_TOOL,
        "Failed to get current conditions",
        lambda client: client.fetch_current_conditions(request),
        render_json,
        api_key,
        base_url,
    )


async def get_air_quality_forecast(
    arguments: Optional[Dict[str, Any]],
    api_key: str,
    base_url: str = DEFAULT_BASE_URL,
) -> ToolCallResponse:
    """Hourly forecast page for a latitude/longitude."""
    decoded = decode_arguments(ForecastInput, arguments)
    if not decoded.ok:
        return _invalid_input(FORECAST_TOOL, decoded.describe())

    request = decoded.value.to_request()
    return await _call_provider(
        FORECAST_TOOL,
        "Failed to get forecast",
        lambda client: client.fetch_forecast(request),
        render_json,
        api_key,
        base_url,
    )


async def get_air_quality_history(
    arguments: Optional[Dict[str, Any]],
    api_key: str,
    base_url: str = DEFAULT_BASE_URL,
) -> ToolCallResponse:
    """Hourly history page for a latitude/longitude."""
    decoded = decode_arguments(HistoryInput, arguments)
    if not decoded.ok:
        return _invalid_input(HISTORY_TOOL, decoded.describe())

    request = decoded.value.to_request()
    return await _call_provider(
        HISTORY_TOOL,
        "Failed to get history",
        lambda client: client.fetch_history(request),
        render_json,
        api_key,
        base_url,
    )


async def get_air_quality_heatmap_tile(
    arguments: Optional[Dict[str, Any]],
    api_key: str,
    base_url: str = DEFAULT_BASE_URL,
) -> ToolCallResponse:
    """
    One heatmap tile as a data:image/png;base64 URI.

    The zoom range is checked before any network call.
    """
    decoded = decode_arguments(HeatmapInput, arguments)
    if not decoded.ok:
        return _invalid_input(HEATMAP_TOOL, decoded.describe())

    tile = decoded.value
    if tile.zoom < MIN_ZOOM or tile.zoom > MAX_ZOOM:
        logger.warning(f"Tool '{HEATMAP_TOOL}' rejected zoom {tile.zoom}")
        return error_result(f"zoom must be between {MIN_ZOOM} and {MAX_ZOOM}")

    try:
        key = tile.to_key()
    except ValidationError as e:
        return _invalid_input(HEATMAP_TOOL, "; ".join(err["msg"] for err in e.errors()))

    return await _call_provider(
        HEATMAP_TOOL,
        "Failed to get heatmap tile",
        lambda client: client.fetch_heatmap_tile(key),
        render_png_data_uri,
        api_key,
        base_url,
    )


_HANDLERS = {
    CURRENT_CONDITIONS_TOOL: get_current_air_quality,
    FORECAST_TOOL: get_air_quality_forecast,
    HISTORY_TOOL: get_air_quality_history,
    HEATMAP_TOOL: get_air_quality_heatmap_tile,
}


def register_all(registry: CapabilityRegistry, api_key: str, base_url: str = DEFAULT_BASE_URL) -> None:
    """Register the four Air Quality tools, bound to the given credentials."""
    for name, definition in TOOL_DEFINITIONS.items():
        registry.add_tool(definition, partial(_HANDLERS[name], api_key=api_key, base_url=base_url))
