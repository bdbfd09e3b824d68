"""Query service and write path over the weather record store."""

import logging
import struct
from datetime import date, datetime, time
from typing import Callable, Sequence

from weather_analyzer.exceptions import DuplicateRecordError, RecordNotFoundError
from weather_analyzer.models import WeatherRecord, to_naive_utc
from weather_analyzer.repository import RecordStore

logger = logging.getLogger(__name__)


def _to_single(value: float) -> float:
    """Round a double to the nearest single-precision value."""
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        # only SQLite can hold values outside the single-precision range
        return value


def _mean(records: Sequence[WeatherRecord], field: Callable[[WeatherRecord], float]) -> float:
    if not records:
        return 0.0
    return _to_single(sum(field(record) for record in records) / len(records))


def average_records(records: Sequence[WeatherRecord]) -> WeatherRecord:
    """
    Average the numeric fields of a list of observations.

    Each field is averaged independently and rounded to single precision,
    the precision measurements are stored with. An empty list yields zeros.
    The result carries no ID, location or timestamp and is never stored.

    Args:
        records: Observations to average

    Returns:
        Synthetic average record
    """
    return WeatherRecord(
        temperature=_mean(records, lambda r: r.temperature),
        wind=_mean(records, lambda r: r.wind),
        pressure=_mean(records, lambda r: r.pressure),
        humidity=_mean(records, lambda r: r.humidity),
    )


def day_bounds(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """Expand a date range to [start of first day, last instant of last day]."""
    return datetime.combine(start_date, time.min), datetime.combine(end_date, time.max)


class WeatherService:
    """Reads stored observations and accepts new ones."""

    def __init__(self, store: RecordStore):
        self.store = store

    def get_by_id(self, record_id: int) -> WeatherRecord:
        """
        Get an observation by ID.

        Raises:
            RecordNotFoundError: If no observation has this ID
        """
        record = self.store.find_by_id(record_id)
        if record is None:
            raise RecordNotFoundError("Weather not found")
        return record

    def get_all(self) -> list[WeatherRecord]:
        return self.store.find_all()

    def get_latest(self) -> WeatherRecord:
        """
        Get the most recently inserted observation.

        Raises:
            RecordNotFoundError: If nothing is stored yet
        """
        record = self.store.find_latest()
        if record is None:
            raise RecordNotFoundError("No weather data available")
        return record

    def get_in_timestamp_range(self, start: datetime, end: datetime) -> WeatherRecord:
        """
        Average over observations with start <= timestamp <= end.

        Aware bounds are converted to naive UTC, like submitted timestamps.
        """
        start, end = to_naive_utc(start), to_naive_utc(end)
        return average_records(self.store.find_by_timestamp_range(start, end))

    def get_in_date_range(self, start_date: date, end_date: date) -> WeatherRecord:
        """Average over observations from the start of start_date to the end of end_date."""
        start, end = day_bounds(start_date, end_date)
        return self.get_in_timestamp_range(start, end)

    def submit(self, record: WeatherRecord) -> WeatherRecord:
        """
        Store a new observation unless its location and timestamp are taken.

        The existence check and the insert are separate statements. Two
        writers racing on the same key are resolved by the unique index,
        which makes the second insert fail with DuplicateRecordError too.

        Args:
            record: Observation without an ID

        Returns:
            Stored observation with its assigned ID

        Raises:
            DuplicateRecordError: If the location/timestamp pair is already stored
        """
        existing = self.store.find_by_location_and_timestamp(record.location, record.timestamp)
        if existing is not None:
            logger.warning(
                f"Attempted to add duplicate weather entry for location {record.location} "
                f"and date/time {record.timestamp}. Entry already exists."
            )
            raise DuplicateRecordError("Weather entry already exists")

        stored = self.store.insert(record)
        logger.info(
            f"Adding new weather entry for location {stored.location} "
            f"and date/time {stored.timestamp}."
        )
        return stored
