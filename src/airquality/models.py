"""
Pydantic models for the Air Quality provider API.

This module defines the wire schema shared by every tool and resource:
- Enumerations: ExtraComputation, ColorPalette, MapType, TriState
- Request models: CurrentConditionsRequest, ForecastRequest, HistoryRequest, HeatmapTileKey
- Response models: CurrentConditionsResponse, ForecastResponse, HistoryResponse

Field names are snake_case in Python and camelCase on the wire.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ============================================================================
# Enumerations
# ============================================================================

class ExtraComputation(str, Enum):
    """Extra derived fields the provider can compute."""
    LOCAL_AQI = "LOCAL_AQI"
    HEALTH_RECOMMENDATIONS = "HEALTH_RECOMMENDATIONS"
    POLLUTANT_ADDITIONAL_INFO = "POLLUTANT_ADDITIONAL_INFO"
    DOMINANT_POLLUTANT_CONCENTRATION = "DOMINANT_POLLUTANT_CONCENTRATION"
    POLLUTANT_CONCENTRATION = "POLLUTANT_CONCENTRATION"


class ColorPalette(str, Enum):
    """Color rendering for the Universal AQI."""
    RED_GREEN = "RED_GREEN"
    INDIGO_PERSIAN = "INDIGO_PERSIAN"
    NUMERIC = "NUMERIC"


class MapType(str, Enum):
    """Heatmap tile families served by the provider."""
    UAQI_RED_GREEN = "UAQI_RED_GREEN"
    UAQI_INDIGO_PERSIAN = "UAQI_INDIGO_PERSIAN"
    PM25_INDIGO_PERSIAN = "PM25_INDIGO_PERSIAN"
    GBR_DEFRA = "GBR_DEFRA"
    DEU_UBA = "DEU_UBA"
    CAN_EC = "CAN_EC"
    FRA_ATMO = "FRA_ATMO"
    US_AQI = "US_AQI"


class TriState(str, Enum):
    """
    Optional boolean that keeps "not supplied" apart from an explicit false.

    UNSET is never sent to the provider, so the provider default applies.
    """
    UNSET = "unset"
    TRUE = "true"
    FALSE = "false"

    @classmethod
    def of(cls, value: Optional[bool]) -> "TriState":
        if value is None:
            return cls.UNSET
        return cls.TRUE if value else cls.FALSE

    def as_bool(self) -> Optional[bool]:
        if self is TriState.UNSET:
            return None
        return self is TriState.TRUE

    @property
    def is_set(self) -> bool:
        return self is not TriState.UNSET


MAP_TYPE_VALUES: List[str] = [m.value for m in MapType]
EXTRA_COMPUTATION_VALUES: List[str] = [c.value for c in ExtraComputation]
COLOR_PALETTE_VALUES: List[str] = [p.value for p in ColorPalette]

MIN_ZOOM = 0
MAX_ZOOM = 16


class WireModel(BaseModel):
    """Base model mapping snake_case attributes to the provider's camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """Dump to the provider's JSON shape, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================================================
# Request Models
# ============================================================================

class LatLng(WireModel):
    """A point on the globe, in degrees."""
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False, description="Longitude in degrees")


class Interval(WireModel):
    """Time window bounding a forecast or history lookup (ISO 8601 strings)."""
    start_time: Optional[str] = Field(None, description="Window start (ISO 8601)")
    end_time: Optional[str] = Field(None, description="Window end (ISO 8601)")


class CustomLocalAqi(WireModel):
    """Override of the local AQI used for a region."""
    region_code: str = Field(..., description="CLDR region code, e.g. 'US'")
    aqi: str = Field(..., description="AQI code to use for the region")


class LookupRequest(WireModel):
    """Fields shared by every JSON lookup request."""
    location: LatLng
    extra_computations: Optional[List[ExtraComputation]] = None
    uaqi_color_palette: Optional[ColorPalette] = None
    custom_local_aqis: Optional[List[CustomLocalAqi]] = None
    universal_aqi: TriState = TriState.UNSET
    language_code: Optional[str] = None

    @field_validator("universal_aqi", mode="before")
    @classmethod
    def _coerce_universal_aqi(cls, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return TriState.of(value)
        return value

    def to_wire(self) -> Dict[str, Any]:
        payload = self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude={"universal_aqi"}
        )
        # Empty lists are treated as absent
        for key in ("extraComputations", "customLocalAqis"):
            if key in payload and not payload[key]:
                del payload[key]
        if self.universal_aqi.is_set:
            payload["universalAqi"] = self.universal_aqi.as_bool()
        return payload


class CurrentConditionsRequest(LookupRequest):
    """Body of POST /currentConditions:lookup."""


class ForecastRequest(LookupRequest):
    """Body of POST /forecast:lookup."""
    page_size: Optional[int] = None
    page_token: Optional[str] = None
    date_time: Optional[str] = None
    period: Optional[Interval] = None


class HistoryRequest(LookupRequest):
    """Body of POST /history:lookup."""
    page_size: Optional[int] = None
    page_token: Optional[str] = None
    date_time: Optional[str] = None
    hours: Optional[int] = None
    period: Optional[Interval] = None


class HeatmapTileKey(BaseModel):
    """Address of a single heatmap raster tile."""
    map_type: MapType = Field(..., description="Heatmap family")
    zoom: int = Field(..., ge=MIN_ZOOM, le=MAX_ZOOM, description="Zoom level (0-16)")
    x: int = Field(..., ge=0, description="East-west tile coordinate")
    y: int = Field(..., ge=0, description="North-south tile coordinate")


# ============================================================================
# Response Models
# ============================================================================

class ProviderModel(WireModel):
    """Base for decoded provider payloads; unknown fields are kept as-is."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_wire(self) -> Dict[str, Any]:
        """Dump exactly the fields the provider sent, explicit nulls included."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Color(ProviderModel):
    red: Optional[float] = None
    green: Optional[float] = None
    blue: Optional[float] = None
    alpha: Optional[float] = None


class AirQualityIndex(ProviderModel):
    """One index (universal or local) computed for a reading."""
    code: Optional[str] = None
    display_name: Optional[str] = None
    aqi: Optional[int] = None
    aqi_display: Optional[str] = None
    color: Optional[Color] = None
    category: Optional[str] = None
    dominant_pollutant: Optional[str] = None


class Concentration(ProviderModel):
    value: Optional[float] = None
    units: Optional[str] = None


class Pollutant(ProviderModel):
    code: Optional[str] = None
    display_name: Optional[str] = None
    full_name: Optional[str] = None
    concentration: Optional[Concentration] = None
    additional_info: Optional[Any] = None


class HealthRecommendations(ProviderModel):
    """Advice per population segment."""
    general_population: Optional[str] = None
    elderly: Optional[str] = None
    lung_disease_population: Optional[str] = None
    heart_disease_population: Optional[str] = None
    athletes: Optional[str] = None
    pregnant_women: Optional[str] = None
    children: Optional[str] = None


class TimestampedReading(ProviderModel):
    """Indexes and pollutants for one point in time."""
    date_time: Optional[str] = None
    indexes: Optional[List[AirQualityIndex]] = None
    pollutants: Optional[List[Pollutant]] = None
    health_recommendations: Optional[HealthRecommendations] = None


class CurrentConditionsResponse(TimestampedReading):
    region_code: Optional[str] = None


class ForecastResponse(ProviderModel):
    region_code: Optional[str] = None
    hourly_forecasts: Optional[List[TimestampedReading]] = None
    next_page_token: Optional[str] = None


class HistoryResponse(ProviderModel):
    region_code: Optional[str] = None
    hours_info: Optional[List[TimestampedReading]] = None
    next_page_token: Optional[str] = None
