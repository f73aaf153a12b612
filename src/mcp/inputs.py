"""
Typed inputs for the MCP tools.

Each model mirrors a tool's inputSchema (camelCase keys) and knows how to
build the provider request it maps to.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.airquality.models import (
    ColorPalette,
    CurrentConditionsRequest,
    CustomLocalAqi,
    ExtraComputation,
    ForecastRequest,
    HeatmapTileKey,
    HistoryRequest,
    Interval,
    LatLng,
    MapType,
    TriState,
)


class ToolInput(BaseModel):
    """Base for tool inputs: camelCase keys, unknown keys ignored."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class LocationInput(ToolInput):
    """Arguments shared by the current/forecast/history tools."""
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False, description="Location latitude")
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False, description="Location longitude")
    extra_computations: List[ExtraComputation] = Field(default_factory=list, description="Additional features to compute")
    uaqi_color_palette: Optional[ColorPalette] = Field(None, description="Color palette for UAQI")
    custom_local_aqis: List[CustomLocalAqi] = Field(default_factory=list, description="Per-region local AQI overrides")
    universal_aqi: TriState = Field(TriState.UNSET, description="Include Universal AQI")
    language_code: Optional[str] = Field(None, description="Response language code")

    @field_validator("extra_computations", "custom_local_aqis", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("extra_computations")
    @classmethod
    def _dedupe(cls, value: List[ExtraComputation]) -> List[ExtraComputation]:
        return list(dict.fromkeys(value))

    @field_validator("uaqi_color_palette", "language_code", mode="before")
    @classmethod
    def _optional_strings(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("universal_aqi", mode="before")
    @classmethod
    def _tri_state(cls, value: Any) -> TriState:
        if isinstance(value, TriState):
            return value
        if value is None or isinstance(value, bool):
            return TriState.of(value)
        raise ValueError("universalAqi must be a boolean")

    def location(self) -> LatLng:
        return LatLng(latitude=self.latitude, longitude=self.longitude)

    def _lookup_fields(self) -> dict:
        return {
            "location": self.location(),
            "extra_computations": self.extra_computations or None,
            "uaqi_color_palette": self.uaqi_color_palette,
            "custom_local_aqis": self.custom_local_aqis or None,
            "universal_aqi": self.universal_aqi,
            "language_code": self.language_code,
        }


class CurrentConditionsInput(LocationInput):
    """Arguments of get_current_air_quality."""

    def to_request(self) -> CurrentConditionsRequest:
        return CurrentConditionsRequest(**self._lookup_fields())


class PagedInput(LocationInput):
    """Arguments shared by the forecast and history tools."""
    page_size: Optional[int] = Field(None, ge=0, description="Records per page (0 means provider default)")
    page_token: Optional[str] = Field(None, description="Pagination token for next page")
    date_time: Optional[str] = Field(None, description="Specific time (ISO 8601)")
    period_start_time: Optional[str] = Field(None, description="Period start time (ISO 8601)")
    period_end_time: Optional[str] = Field(None, description="Period end time (ISO 8601)")

    @field_validator("page_token", "date_time", "period_start_time", "period_end_time", mode="before")
    @classmethod
    def _paged_strings(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def period(self) -> Optional[Interval]:
        if self.period_start_time is None and self.period_end_time is None:
            return None
        return Interval(start_time=self.period_start_time, end_time=self.period_end_time)

    def _paged_fields(self) -> dict:
        return {
            **self._lookup_fields(),
            "page_size": self.page_size or None,
            "page_token": self.page_token,
            "date_time": self.date_time,
            "period": self.period(),
        }


class ForecastInput(PagedInput):
    """Arguments of get_air_quality_forecast."""

    def to_request(self) -> ForecastRequest:
        return ForecastRequest(**self._paged_fields())


class HistoryInput(PagedInput):
    """Arguments of get_air_quality_history."""
    hours: Optional[int] = Field(None, ge=0, description="Number of hours of history (0 means provider default)")

    def to_request(self) -> HistoryRequest:
        return HistoryRequest(hours=self.hours or None, **self._paged_fields())


class HeatmapInput(ToolInput):
    """Arguments of get_air_quality_heatmap_tile. Zoom bounds are checked by the handler."""
    map_type: MapType = Field(..., description="Type of heatmap")
    zoom: int = Field(..., description="Zoom level (0-16)")
    x: int = Field(..., description="East-west tile coordinate")
    y: int = Field(..., description="North-south tile coordinate")

    def to_key(self) -> HeatmapTileKey:
        return HeatmapTileKey(map_type=self.map_type, zoom=self.zoom, x=self.x, y=self.y)
