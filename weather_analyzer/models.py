"""SQLAlchemy ORM models, domain records and Pydantic API schemas."""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Float, Index, Integer, String
from pydantic import BaseModel, ConfigDict, Field, field_validator

from weather_analyzer.database import Base


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are returned as is."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ============================================================================
# Domain Records
# ============================================================================

@dataclass(frozen=True)
class WeatherRecord:
    """One weather observation for a location at a point in time.

    ``id`` is None until the record store assigns one on insert. Average
    records also leave ``location`` and ``timestamp`` unset.
    """
    temperature: float
    wind: float
    pressure: float
    humidity: float
    location: Optional[str] = None
    timestamp: Optional[datetime] = None
    id: Optional[int] = None

    def with_id(self, record_id: int) -> "WeatherRecord":
        return replace(self, id=record_id)


# ============================================================================
# SQLAlchemy ORM Models (Database Tables)
# ============================================================================

class WeatherObservation(Base):
    """Stored weather observations."""
    __tablename__ = "weather"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # precision=24 maps to single precision REAL on PostgreSQL
    temperature = Column(Float(precision=24), nullable=False)
    wind = Column(Float(precision=24), nullable=False)
    pressure = Column(Float(precision=24), nullable=False)
    humidity = Column(Float(precision=24), nullable=False)
    location = Column(String(255), nullable=False)
    timestamp = Column(DateTime, nullable=False, index=True)

    __table_args__ = (
        Index('idx_weather_location_timestamp', 'location', 'timestamp', unique=True),
    )

    @classmethod
    def from_record(cls, record: WeatherRecord) -> "WeatherObservation":
        return cls(
            temperature=record.temperature,
            wind=record.wind,
            pressure=record.pressure,
            humidity=record.humidity,
            location=record.location,
            timestamp=record.timestamp,
        )

    def to_record(self) -> WeatherRecord:
        return WeatherRecord(
            id=self.id,
            temperature=self.temperature,
            wind=self.wind,
            pressure=self.pressure,
            humidity=self.humidity,
            location=self.location,
            timestamp=self.timestamp,
        )


# ============================================================================
# Pydantic Models (API Requests and Responses)
# ============================================================================

class WeatherCreate(BaseModel):
    """New weather observation submitted by a client."""
    model_config = ConfigDict(allow_inf_nan=False)

    temperature: float
    wind: float
    pressure: float
    humidity: float
    location: str = Field(min_length=1, max_length=255)
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def drop_timezone(cls, value: datetime) -> datetime:
        """Stored timestamps are naive; aware values are converted to UTC."""
        return to_naive_utc(value)

    def to_record(self) -> WeatherRecord:
        return WeatherRecord(
            temperature=self.temperature,
            wind=self.wind,
            pressure=self.pressure,
            humidity=self.humidity,
            location=self.location,
            timestamp=self.timestamp,
        )


class WeatherResponse(BaseModel):
    """Stored weather observation."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    temperature: float
    wind: float
    pressure: float
    humidity: float
    location: str
    timestamp: datetime


class AverageWeatherResponse(BaseModel):
    """Per-field averages over a set of observations."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    temperature: float = 0.0
    wind: float = 0.0
    pressure: float = 0.0
    humidity: float = 0.0
    location: Optional[str] = None
    timestamp: Optional[datetime] = None
