"""Weather tool arguments and observation payloads."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from weatherchat.app.models.common import DateType
from weatherchat.app.models.context import LocationData


class WeatherToolParams(BaseModel):
    """Arguments of the get_weather tool as requested by the model."""

    location: str = Field(..., min_length=1)
    date: str | None = None

    @field_validator("location")
    @classmethod
    def strip_location(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("location must not be blank")
        return stripped


class DateClassification(BaseModel):
    """Which data source a lookup uses and for which day."""

    model_config = ConfigDict(frozen=True)

    date_type: DateType
    target_date: date | None = None


class WeatherObservation(BaseModel):
    """Observation payload returned to the completion provider and the caller.

    Serialized with camelCase keys (windSpeed, uvIndex, dateType, targetDate).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    city: str
    country: str
    temperature: int  # rounded, degrees Celsius
    description: str
    humidity: float | None = None
    wind_speed: float | None = None
    precipitation: float | None = None
    uv_index: float | None = None
    timestamp: str
    date_type: DateType
    target_date: date | None = None


class WeatherLookup(BaseModel):
    """Outcome of one successful weather lookup."""

    location: LocationData
    observation: WeatherObservation
    classification: DateClassification
    requested_date: str | None = None
