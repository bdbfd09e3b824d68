"""Record store for weather observations."""

import logging
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from weather_analyzer.exceptions import DuplicateRecordError
from weather_analyzer.models import WeatherObservation, WeatherRecord

logger = logging.getLogger(__name__)

# IDs are stored as signed 64-bit integers
MAX_RECORD_ID = 2**63 - 1


class RecordStore(Protocol):
    """Storage operations the query service and write path rely on."""

    def find_by_id(self, record_id: int) -> Optional[WeatherRecord]: ...

    def find_all(self) -> list[WeatherRecord]: ...

    def find_latest(self) -> Optional[WeatherRecord]: ...

    def find_by_timestamp_range(self, start: datetime, end: datetime) -> list[WeatherRecord]: ...

    def find_by_location_and_timestamp(
        self, location: str, timestamp: datetime
    ) -> Optional[WeatherRecord]: ...

    def insert(self, record: WeatherRecord) -> WeatherRecord: ...


class WeatherRepository:
    """SQLAlchemy implementation of the record store."""

    def __init__(self, db: Session):
        """
        Args:
            db: Database session owned by the caller
        """
        self.db = db

    def find_by_id(self, record_id: int) -> Optional[WeatherRecord]:
        """
        Get a single observation by ID.

        Args:
            record_id: Observation ID

        Returns:
            Observation or None if not found
        """
        if not 1 <= record_id <= MAX_RECORD_ID:
            return None
        row = self.db.get(WeatherObservation, record_id)
        return row.to_record() if row is not None else None

    def find_all(self) -> list[WeatherRecord]:
        """Get every stored observation in insertion order."""
        rows = self.db.query(WeatherObservation).order_by(WeatherObservation.id).all()
        return [row.to_record() for row in rows]

    def find_latest(self) -> Optional[WeatherRecord]:
        """
        Get the most recently inserted observation.

        Returns:
            Observation with the highest ID, or None if the table is empty
        """
        row = (
            self.db.query(WeatherObservation)
            .order_by(WeatherObservation.id.desc())
            .first()
        )
        return row.to_record() if row is not None else None

    def find_by_timestamp_range(self, start: datetime, end: datetime) -> list[WeatherRecord]:
        """
        Get observations whose timestamp falls within a range.

        Args:
            start: Range start (inclusive)
            end: Range end (inclusive)

        Returns:
            List of observations ordered by ID
        """
        rows = (
            self.db.query(WeatherObservation)
            .filter(WeatherObservation.timestamp.between(start, end))
            .order_by(WeatherObservation.id)
            .all()
        )
        return [row.to_record() for row in rows]

    def find_by_location_and_timestamp(
        self, location: str, timestamp: datetime
    ) -> Optional[WeatherRecord]:
        """
        Get the observation matching a location and timestamp exactly.

        Args:
            location: Location name
            timestamp: Observation time

        Returns:
            Observation or None if not found
        """
        row = self.db.query(WeatherObservation).filter(
            WeatherObservation.location == location,
            WeatherObservation.timestamp == timestamp,
        ).first()
        return row.to_record() if row is not None else None

    def insert(self, record: WeatherRecord) -> WeatherRecord:
        """
        Persist a new observation.

        Args:
            record: Observation without an ID

        Returns:
            The same observation with its assigned ID

        Raises:
            DuplicateRecordError: If the location/timestamp pair is already stored
            IntegrityError: If any other constraint rejects the row
        """
        row = WeatherObservation.from_record(record)
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if self.find_by_location_and_timestamp(record.location, record.timestamp) is None:
                logger.error(f"Failed to store weather entry for location {record.location}: {e.orig}")
                raise
            logger.warning(
                f"Unique constraint rejected weather entry for location {record.location} "
                f"and date/time {record.timestamp}"
            )
            raise DuplicateRecordError("Weather entry already exists") from e
        self.db.refresh(row)
        return record.with_id(row.id)

    def count(self) -> int:
        """Get total number of stored observations."""
        return self.db.query(func.count(WeatherObservation.id)).scalar()
