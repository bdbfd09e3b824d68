"""
Provider payload normalizer

Validates the provider's current-weather JSON and maps it to a
WeatherRecord. Only the fields listed below are read; everything else in
the payload is ignored.

    {
      "location": {"name": "Minsk", ...},
      "current": {
        "last_updated": "2023-12-04 12:30",
        "temp_c": 25.0, "wind_kph": 10.0, "pressure_mb": 1010.0, "humidity": 60,
        ...
      }
    }
"""
import logging
import re
from datetime import datetime
from typing import Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import ParseError
from .models import WeatherRecord

logger = logging.getLogger(__name__)

LAST_UPDATED_FORMAT = "%Y-%m-%d %H:%M"
LAST_UPDATED_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}$")


class ProviderLocation(BaseModel):
    name: str


class ProviderCurrent(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    temp_c: float
    wind_kph: float
    pressure_mb: float
    humidity: float
    last_updated: datetime

    @field_validator("last_updated", mode="before")
    @classmethod
    def parse_last_updated(cls, value):
        """Accept only 'yyyy-MM-dd HH:mm' strings."""
        if not isinstance(value, str) or not LAST_UPDATED_PATTERN.match(value):
            raise ValueError(f"last_updated must match yyyy-MM-dd HH:mm, got {value!r}")
        return datetime.strptime(value, LAST_UPDATED_FORMAT)


class ProviderPayload(BaseModel):
    """Subset of the provider response used for ingestion."""
    location: ProviderLocation
    current: ProviderCurrent


def parse_weather(raw: Union[bytes, str]) -> WeatherRecord:
    """
    Parse a provider payload into a record without an ID.

    Args:
        raw: JSON response body

    Returns:
        Normalized weather record

    Raises:
        ParseError: If the payload is not JSON, misses required fields,
            carries a non-finite measurement or a malformed last_updated value
    """
    try:
        payload = ProviderPayload.model_validate_json(raw)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'payload'}: {error['msg']}"
            for error in e.errors()
        )
        raise ParseError(f"Invalid weather payload: {errors}") from e

    logger.debug(f"Output from weather API: {raw!r}")

    return WeatherRecord(
        temperature=payload.current.temp_c,
        wind=payload.current.wind_kph,
        pressure=payload.current.pressure_mb,
        humidity=payload.current.humidity,
        location=payload.location.name,
        timestamp=payload.current.last_updated,
    )
