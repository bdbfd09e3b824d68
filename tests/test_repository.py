"""Tests for the SQLAlchemy record store."""

from dataclasses import replace
from datetime import datetime

import pytest

from sqlalchemy.exc import IntegrityError

from weather_analyzer.exceptions import DuplicateRecordError
from weather_analyzer.models import WeatherObservation


class TestWeatherRepository:
    """Test record store operations."""

    def test_insert_assigns_id(self, repository, sample_records):
        """Test that insert returns the record with an ID."""
        stored = repository.insert(sample_records[0])

        assert stored.id is not None
        assert replace(stored, id=None) == sample_records[0]
        assert sample_records[0].id is None

    def test_ids_increase_in_insertion_order(self, stored_records):
        ids = [record.id for record in stored_records]

        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)

    def test_find_by_id(self, repository, stored_records):
        found = repository.find_by_id(stored_records[1].id)

        assert found == stored_records[1]

    def test_find_by_id_missing(self, repository, stored_records):
        assert repository.find_by_id(99999) is None

    @pytest.mark.parametrize("record_id", [0, -1, 2**63, 10**20])
    def test_find_by_id_out_of_range(self, repository, stored_records, record_id):
        """Test that IDs outside the 64-bit key range are simply missing."""
        assert repository.find_by_id(record_id) is None

    def test_find_all(self, repository, stored_records):
        assert repository.find_all() == stored_records

    def test_find_all_empty(self, repository):
        assert repository.find_all() == []

    def test_find_latest_is_highest_id(self, repository, sample_records):
        """Test that latest means last inserted, not latest timestamp."""
        newest_first = repository.insert(sample_records[2])
        older = repository.insert(sample_records[0])

        latest = repository.find_latest()

        assert latest.id == older.id
        assert latest.timestamp < newest_first.timestamp

    def test_find_latest_empty(self, repository):
        assert repository.find_latest() is None

    def test_find_by_timestamp_range_inclusive(self, repository, stored_records):
        """Test that both range bounds are inclusive."""
        found = repository.find_by_timestamp_range(
            datetime(2023, 12, 4, 12, 30),
            datetime(2023, 12, 4, 18, 45),
        )

        assert found == stored_records[:2]

    def test_find_by_timestamp_range_empty(self, repository, stored_records):
        found = repository.find_by_timestamp_range(
            datetime(2024, 1, 1),
            datetime(2024, 1, 2),
        )

        assert found == []

    def test_find_by_location_and_timestamp(self, repository, stored_records):
        found = repository.find_by_location_and_timestamp("Minsk", datetime(2023, 12, 5, 9, 0))

        assert found == stored_records[2]

    def test_find_by_location_and_timestamp_other_location(self, repository, stored_records):
        found = repository.find_by_location_and_timestamp("Brest", datetime(2023, 12, 5, 9, 0))

        assert found is None

    def test_unique_index_rejects_duplicate(self, repository, test_db, sample_records):
        """Test that a second insert of the same key fails deterministically."""
        repository.insert(sample_records[0])

        with pytest.raises(DuplicateRecordError):
            repository.insert(sample_records[0])

        assert test_db.query(WeatherObservation).count() == 1

    @pytest.mark.parametrize("changes", [
        {"location": None},
        {"temperature": float("nan")},
    ])
    def test_other_constraint_failures_are_not_duplicates(self, repository, sample_records, changes):
        """Test that a NOT NULL failure propagates instead of reading as a duplicate."""
        with pytest.raises(IntegrityError):
            repository.insert(replace(sample_records[0], **changes))

        assert repository.count() == 0
        assert repository.insert(sample_records[0]).id is not None

    def test_same_timestamp_different_location(self, repository, sample_records):
        repository.insert(sample_records[0])
        repository.insert(replace(sample_records[0], location="Brest"))

        assert repository.count() == 2

    def test_count(self, repository, stored_records):
        assert repository.count() == 3
