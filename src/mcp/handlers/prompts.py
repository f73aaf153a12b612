"""
MCP Prompt Handlers

Handles prompt declaration and rendering for MCP protocol.
Each prompt tells the agent which Air Quality tool to call next.

Prompts never fail: a missing or blank argument falls back to its default.
"""

import logging
from typing import Dict, Optional

from ..models import (
    PromptArgument,
    PromptDefinition,
    PromptGetResponse,
    PromptMessage,
    TextContent,
)
from ..registry import CapabilityRegistry
from .tools import CURRENT_CONDITIONS_TOOL, FORECAST_TOOL, HEATMAP_TOOL, HISTORY_TOOL

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "unknown location"
DEFAULT_MAP_TYPE = "UAQI_RED_GREEN"
DEFAULT_LOCATION_ZOOM = "10"
DEFAULT_TILE_COORDINATE = "0"

RESOLVE_COORDINATES = "You should first determine the latitude and longitude for this location"


def _arg(arguments: Optional[Dict[str, Optional[str]]], name: str, default: str = "") -> str:
    value = (arguments or {}).get(name)
    if value is None or not str(value).strip():
        return default
    return str(value).strip()


def _user_prompt(description: str, text: str) -> PromptGetResponse:
    return PromptGetResponse(
        description=description,
        messages=[PromptMessage(role="user", content=TextContent(text=text))]
    )


# ============================================================================
# Prompt handlers
# ============================================================================

def air_quality_heatmap_prompt(arguments: Dict[str, str]) -> PromptGetResponse:
    """Heatmap tile by direct tile coordinates."""
    map_type = _arg(arguments, "mapType", DEFAULT_MAP_TYPE)
    x = _arg(arguments, "x", DEFAULT_TILE_COORDINATE)
    y = _arg(arguments, "y", DEFAULT_TILE_COORDINATE)
    zoom = _arg(arguments, "zoom", DEFAULT_TILE_COORDINATE)

    return _user_prompt(
        "Prompt to get air quality heatmap tile",
        f"Please get the air quality heatmap tile for map type '{map_type}' at coordinates "
        f"x={x}, y={y}, zoom={zoom} using the '{HEATMAP_TOOL}' tool."
    )


def current_air_quality_by_location_prompt(arguments: Dict[str, str]) -> PromptGetResponse:
    location = _arg(arguments, "location", DEFAULT_LOCATION)

    return _user_prompt(
        "Prompt to get current air quality for a location",
        f"Please get the current air quality for {location}. "
        f"{RESOLVE_COORDINATES}, and then use the '{CURRENT_CONDITIONS_TOOL}' tool."
    )


def air_quality_forecast_by_location_prompt(arguments: Dict[str, str]) -> PromptGetResponse:
    location = _arg(arguments, "location", DEFAULT_LOCATION)
    page_size = _arg(arguments, "pageSize")

    text = f"Please get the air quality forecast for {location}."
    if page_size:
        text += f" Please retrieve {page_size} hours of forecast data."
    text += f" {RESOLVE_COORDINATES}, and then use the '{FORECAST_TOOL}' tool."

    return _user_prompt("Prompt to get air quality forecast for a location", text)


def air_quality_history_by_location_prompt(arguments: Dict[str, str]) -> PromptGetResponse:
    location = _arg(arguments, "location", DEFAULT_LOCATION)
    hours = _arg(arguments, "hours")

    text = f"Please get the historical air quality data for {location}."
    if hours:
        text += f" Please retrieve data for the past {hours} hours."
    text += f" {RESOLVE_COORDINATES}, and then use the '{HISTORY_TOOL}' tool."

    return _user_prompt("Prompt to get historical air quality data for a location", text)


def air_quality_heatmap_by_location_prompt(arguments: Dict[str, str]) -> PromptGetResponse:
    """Heatmap tile for a place name; the agent converts it to tile coordinates."""
    location = _arg(arguments, "location", DEFAULT_LOCATION)
    map_type = _arg(arguments, "mapType", DEFAULT_MAP_TYPE)
    zoom = _arg(arguments, "zoom", DEFAULT_LOCATION_ZOOM)

    text = (
        f"Please get the air quality heatmap tile for {location} using map type '{map_type}' "
        f"at zoom level {zoom}."
        f" {RESOLVE_COORDINATES}, convert them to the appropriate X and Y tile coordinates "
        f"for the given zoom level, and then use the '{HEATMAP_TOOL}' tool."
    )
    return _user_prompt("Prompt to get air quality heatmap tile for a location", text)


# ============================================================================
# Registration
# ============================================================================

_LOCATION_ARGUMENT = PromptArgument(
    name="location",
    description="Human readable location name (e.g., 'Paris, France')",
    required=True
)

PROMPTS = [
    (
        PromptDefinition(
            name="air_quality_heatmap_prompt",
            description="Get heatmap tile image for air quality visualization",
            arguments=[
                PromptArgument(name="mapType", description="Type of heatmap (e.g., UAQI_RED_GREEN)", required=True),
                PromptArgument(name="x", description="Tile X coordinate", required=True),
                PromptArgument(name="y", description="Tile Y coordinate", required=True),
                PromptArgument(name="zoom", description="Zoom level (0-16)", required=True),
            ]
        ),
        air_quality_heatmap_prompt,
    ),
    (
        PromptDefinition(
            name="current_air_quality_by_location_prompt",
            description=(
                "Get current air quality conditions by providing a location name "
                "(LLM will convert to latitude/longitude)"
            ),
            arguments=[_LOCATION_ARGUMENT]
        ),
        current_air_quality_by_location_prompt,
    ),
    (
        PromptDefinition(
            name="air_quality_forecast_by_location_prompt",
            description="Get air quality forecast for a location name (LLM will convert to latitude/longitude)",
            arguments=[
                _LOCATION_ARGUMENT,
                PromptArgument(name="pageSize", description="Number of forecast hours to return (optional)", required=False),
            ]
        ),
        air_quality_forecast_by_location_prompt,
    ),
    (
        PromptDefinition(
            name="air_quality_history_by_location_prompt",
            description="Get historical air quality data for a location name (LLM will convert to latitude/longitude)",
            arguments=[
                _LOCATION_ARGUMENT,
                PromptArgument(name="hours", description="Number of past hours to retrieve (optional)", required=False),
            ]
        ),
        air_quality_history_by_location_prompt,
    ),
    (
        PromptDefinition(
            name="air_quality_heatmap_by_location_prompt",
            description=(
                "Get heatmap tile image for a location name "
                "(LLM will convert to latitude/longitude and tile coordinates)"
            ),
            arguments=[
                _LOCATION_ARGUMENT,
                PromptArgument(name="mapType", description="Type of heatmap (default: UAQI_RED_GREEN)", required=False),
                PromptArgument(name="zoom", description="Zoom level 0-16 (default: 10)", required=False),
            ]
        ),
        air_quality_heatmap_by_location_prompt,
    ),
]


def register_all(registry: CapabilityRegistry) -> None:
    """Register the five Air Quality prompts."""
    for definition, handler in PROMPTS:
        registry.add_prompt(definition, handler)
