# Unit tests for each Air Quality tool; the provider client is mocked

# region imports
import json
import base64
import pytest
from unittest.mock import patch

from src.airquality.client import DecodingError, ProviderError
from src.airquality.models import (
    CurrentConditionsResponse,
    ForecastResponse,
    HistoryResponse,
    MapType,
    TriState,
)
from src.mcp.handlers.tools import (
    TOOL_DEFINITIONS,
    get_air_quality_forecast,
    get_air_quality_heatmap_tile,
    get_air_quality_history,
    get_current_air_quality,
)
# endregion

# region fixtures
CURRENT_RESPONSE = {
    "dateTime": "2024-05-01T10:00:00Z",
    "regionCode": "us",
    "indexes": [{
        "code": "uaqi",
        "displayName": "Universal AQI",
        "aqi": 62,
        "aqiDisplay": "62",
        "color": {"red": 0.5, "green": 0.75, "blue": 0.25},
        "category": "Good air quality",
        "dominantPollutant": "o3"
    }],
    "pollutants": [{
        "code": "pm25",
        "displayName": "PM2.5",
        "fullName": "Fine particulate matter (<2.5µm)",
        "concentration": {"value": 8.4, "units": "MICROGRAMS_PER_CUBIC_METER"},
        "additionalInfo": None
    }],
    "healthRecommendations": {
        "generalPopulation": "With this level of air quality, you have no limitations.",
        "children": "Enjoy your usual outdoor activities.",
        "athletes": None
    }
}

FORECAST_RESPONSE = {
    "regionCode": "fr",
    "hourlyForecasts": [
        {"dateTime": "2024-05-01T11:00:00Z", "indexes": [{"code": "uaqi", "aqi": 70}]},
        {"dateTime": "2024-05-01T12:00:00Z", "indexes": [{"code": "uaqi", "aqi": 71}]}
    ],
    "nextPageToken": "page-2"
}

HISTORY_RESPONSE = {
    "regionCode": "jp",
    "hoursInfo": [{"dateTime": "2024-05-01T09:00:00Z", "indexes": [{"code": "uaqi", "aqi": 55}]}]
}


@pytest.fixture
def mock_client():
    with patch("src.mcp.handlers.tools.AirQualityClient") as mock_cls:
        yield mock_cls.return_value
# endregion

# region get_current_air_quality
@pytest.mark.asyncio
async def test_current_air_quality_returns_provider_json(mock_client):
    mock_client.fetch_current_conditions.return_value = CurrentConditionsResponse.model_validate(CURRENT_RESPONSE)

    result = await get_current_air_quality({"latitude": 37.7749, "longitude": -122.4194}, api_key="test-key")

    assert result.isError is False
    assert len(result.content) == 1
    assert json.loads(result.text) == CURRENT_RESPONSE
    assert result.text.startswith("{\n  ")


@pytest.mark.asyncio
async def test_current_air_quality_with_required_fields_only(mock_client):
    mock_client.fetch_current_conditions.return_value = CurrentConditionsResponse()

    result = await get_current_air_quality({"latitude": 0, "longitude": 0}, api_key="test-key")

    assert result.isError is False
    request = mock_client.fetch_current_conditions.call_args[0][0]
    assert request.universal_aqi is TriState.UNSET
    assert request.to_wire() == {"location": {"latitude": 0.0, "longitude": 0.0}}


@pytest.mark.asyncio
async def test_current_air_quality_passes_optional_fields(mock_client):
    mock_client.fetch_current_conditions.return_value = CurrentConditionsResponse()

    await get_current_air_quality({
        "latitude": 48.8566,
        "longitude": 2.3522,
        "extraComputations": ["POLLUTANT_CONCENTRATION", "HEALTH_RECOMMENDATIONS"],
        "uaqiColorPalette": "RED_GREEN",
        "universalAqi": False,
        "languageCode": "fr"
    }, api_key="test-key")

    assert mock_client.fetch_current_conditions.call_args[0][0].to_wire() == {
        "location": {"latitude": 48.8566, "longitude": 2.3522},
        "extraComputations": ["POLLUTANT_CONCENTRATION", "HEALTH_RECOMMENDATIONS"],
        "uaqiColorPalette": "RED_GREEN",
        "universalAqi": False,
        "languageCode": "fr"
    }


@pytest.mark.asyncio
async def test_current_air_quality_passes_custom_local_aqis(mock_client):
    mock_client.fetch_current_conditions.return_value = CurrentConditionsResponse()

    await get_current_air_quality({
        "latitude": 40.7,
        "longitude": -74.0,
        "customLocalAqis": [{"regionCode": "US", "aqi": "usa_epa_nowcast"}]
    }, api_key="test-key")

    assert mock_client.fetch_current_conditions.call_args[0][0].to_wire() == {
        "location": {"latitude": 40.7, "longitude": -74.0},
        "customLocalAqis": [{"regionCode": "US", "aqi": "usa_epa_nowcast"}]
    }


@pytest.mark.asyncio
async def test_forecast_passes_custom_local_aqis(mock_client):
    mock_client.fetch_forecast.return_value = ForecastResponse()

    await get_air_quality_forecast({
        "latitude": 1,
        "longitude": 2,
        "customLocalAqis": [{"regionCode": "FR", "aqi": "fra_atmo"}]
    }, api_key="test-key")

    wire = mock_client.fetch_forecast.call_args[0][0].to_wire()
    assert wire["customLocalAqis"] == [{"regionCode": "FR", "aqi": "fra_atmo"}]


@pytest.mark.asyncio
async def test_current_air_quality_ignores_unknown_arguments(mock_client):
    mock_client.fetch_current_conditions.return_value = CurrentConditionsResponse()

    result = await get_current_air_quality(
        {"latitude": 1, "longitude": 2, "notAField": "whatever"}, api_key="test-key"
    )

    assert result.isError is False


@pytest.mark.asyncio
@pytest.mark.parametrize("arguments", [
    {},
    {"latitude": 37.7},
    {"latitude": "north", "longitude": 0},
    {"latitude": 95, "longitude": 0},
    {"latitude": 0, "longitude": 0, "extraComputations": ["NOT_A_COMPUTATION"]},
    {"latitude": 0, "longitude": 0, "universalAqi": "yes"},
    {"latitude": 0, "longitude": 0, "customLocalAqis": [{"regionCode": "US"}]},
])
async def test_current_air_quality_invalid_arguments(mock_client, arguments):
    result = await get_current_air_quality(arguments, api_key="test-key")

    assert result.isError is True
    assert result.text.startswith("Invalid input: ")
    mock_client.fetch_current_conditions.assert_not_called()


@pytest.mark.asyncio
async def test_current_air_quality_provider_failure(mock_client):
    mock_client.fetch_current_conditions.side_effect = ProviderError(500, "quota exceeded")

    result = await get_current_air_quality({"latitude": 1, "longitude": 2}, api_key="test-key")

    assert result.isError is True
    assert result.text.startswith("Failed to get current conditions: ")
    assert "quota exceeded" in result.text


@pytest.mark.asyncio
async def test_current_air_quality_decoding_failure(mock_client):
    mock_client.fetch_current_conditions.side_effect = DecodingError("bad payload", "<html>")

    result = await get_current_air_quality({"latitude": 1, "longitude": 2}, api_key="test-key")

    assert result.isError is True
    assert "Failed to get current conditions" in result.text


@pytest.mark.asyncio
async def test_current_air_quality_unexpected_failure(mock_client):
    mock_client.fetch_current_conditions.side_effect = RuntimeError("boom")

    result = await get_current_air_quality({"latitude": 1, "longitude": 2}, api_key="test-key")

    assert result.isError is True
    assert result.text.startswith("Unexpected error")
# endregion

# region get_air_quality_forecast / get_air_quality_history
@pytest.mark.asyncio
async def test_forecast_returns_provider_json(mock_client):
    mock_client.fetch_forecast.return_value = ForecastResponse.model_validate(FORECAST_RESPONSE)

    result = await get_air_quality_forecast({
        "latitude": 48.8566,
        "longitude": 2.3522,
        "pageSize": 2,
        "periodStartTime": "2024-05-01T11:00:00Z",
        "periodEndTime": "2024-05-01T13:00:00Z"
    }, api_key="test-key")

    assert result.isError is False
    assert json.loads(result.text) == FORECAST_RESPONSE

    wire = mock_client.fetch_forecast.call_args[0][0].to_wire()
    assert wire["pageSize"] == 2
    assert wire["period"] == {"startTime": "2024-05-01T11:00:00Z", "endTime": "2024-05-01T13:00:00Z"}


@pytest.mark.asyncio
async def test_forecast_zero_page_size_is_omitted(mock_client):
    mock_client.fetch_forecast.return_value = ForecastResponse()

    await get_air_quality_forecast({"latitude": 1, "longitude": 2, "pageSize": 0, "pageToken": ""}, api_key="k")

    wire = mock_client.fetch_forecast.call_args[0][0].to_wire()
    assert "pageSize" not in wire
    assert "pageToken" not in wire


@pytest.mark.asyncio
async def test_forecast_provider_failure(mock_client):
    mock_client.fetch_forecast.side_effect = ProviderError(403, "API key not valid")

    result = await get_air_quality_forecast({"latitude": 1, "longitude": 2}, api_key="bad-key")

    assert result.isError is True
    assert result.text.startswith("Failed to get forecast: ")


@pytest.mark.asyncio
async def test_history_returns_provider_json(mock_client):
    mock_client.fetch_history.return_value = HistoryResponse.model_validate(HISTORY_RESPONSE)

    result = await get_air_quality_history(
        {"latitude": 35.6762, "longitude": 139.6503, "hours": 48, "dateTime": "2024-05-01T09:00:00Z"},
        api_key="test-key"
    )

    assert result.isError is False
    assert json.loads(result.text) == HISTORY_RESPONSE

    wire = mock_client.fetch_history.call_args[0][0].to_wire()
    assert wire["hours"] == 48
    assert wire["dateTime"] == "2024-05-01T09:00:00Z"


@pytest.mark.asyncio
async def test_history_rejects_negative_hours(mock_client):
    result = await get_air_quality_history({"latitude": 1, "longitude": 2, "hours": -3}, api_key="test-key")

    assert result.isError is True
    assert "hours" in result.text
    mock_client.fetch_history.assert_not_called()
# endregion

# region get_air_quality_heatmap_tile
@pytest.mark.asyncio
async def test_heatmap_tile_returns_png_data_uri(mock_client):
    png = b"\x89PNG\r\n\x1a\ntile"
    mock_client.fetch_heatmap_tile.return_value = png

    result = await get_air_quality_heatmap_tile(
        {"mapType": "US_AQI", "zoom": 2, "x": 1, "y": 1}, api_key="test-key"
    )

    assert result.isError is False
    assert result.text == "data:image/png;base64," + base64.b64encode(png).decode("ascii")

    key = mock_client.fetch_heatmap_tile.call_args[0][0]
    assert key.map_type is MapType.US_AQI
    assert (key.zoom, key.x, key.y) == (2, 1, 1)


@pytest.mark.asyncio
@pytest.mark.parametrize("zoom", [-1, 17, 100])
async def test_heatmap_tile_zoom_out_of_range(zoom):
    with patch("src.mcp.handlers.tools.AirQualityClient") as mock_cls:
        result = await get_air_quality_heatmap_tile(
            {"mapType": "US_AQI", "zoom": zoom, "x": 0, "y": 0}, api_key="test-key"
        )

    assert result.isError is True
    assert result.text == "zoom must be between 0 and 16"
    mock_cls.assert_not_called()


@pytest.mark.asyncio
async def test_heatmap_tile_rejects_unknown_map_type(mock_client):
    result = await get_air_quality_heatmap_tile(
        {"mapType": "NOT_A_MAP", "zoom": 1, "x": 0, "y": 0}, api_key="test-key"
    )

    assert result.isError is True
    assert result.text.startswith("Invalid input: ")
    mock_client.fetch_heatmap_tile.assert_not_called()


@pytest.mark.asyncio
async def test_heatmap_tile_rejects_negative_coordinates(mock_client):
    result = await get_air_quality_heatmap_tile(
        {"mapType": "US_AQI", "zoom": 1, "x": -1, "y": 0}, api_key="test-key"
    )

    assert result.isError is True
    mock_client.fetch_heatmap_tile.assert_not_called()


@pytest.mark.asyncio
async def test_heatmap_tile_provider_failure(mock_client):
    mock_client.fetch_heatmap_tile.side_effect = ProviderError(404, "tile not found")

    result = await get_air_quality_heatmap_tile(
        {"mapType": "UAQI_INDIGO_PERSIAN", "zoom": 0, "x": 0, "y": 0}, api_key="test-key"
    )

    assert result.isError is True
    assert result.text.startswith("Failed to get heatmap tile: ")
# endregion

# region schemas
def test_tool_definitions_declare_required_fields():
    assert set(TOOL_DEFINITIONS) == {
        "get_current_air_quality",
        "get_air_quality_forecast",
        "get_air_quality_history",
        "get_air_quality_heatmap_tile"
    }
    for name in ("get_current_air_quality", "get_air_quality_forecast", "get_air_quality_history"):
        assert TOOL_DEFINITIONS[name].inputSchema["required"] == ["latitude", "longitude"]

    heatmap = TOOL_DEFINITIONS["get_air_quality_heatmap_tile"].inputSchema
    assert heatmap["required"] == ["mapType", "zoom", "x", "y"]
    assert heatmap["properties"]["zoom"]["minimum"] == 0
    assert heatmap["properties"]["zoom"]["maximum"] == 16
    assert len(heatmap["properties"]["mapType"]["enum"]) == 8
# endregion
