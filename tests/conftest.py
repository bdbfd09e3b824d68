"""Test configuration and fixtures."""

import json
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from weather_analyzer.config import AppConfig, ProviderConfig, SchedulerConfig
from weather_analyzer.database import Base, create_db_engine, create_session_factory
from weather_analyzer.main import create_app
from weather_analyzer.models import WeatherRecord
from weather_analyzer.repository import WeatherRepository
from weather_analyzer.service import WeatherService

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite://"


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow (runs the background scheduler thread)"
    )


@pytest.fixture
def test_config():
    """Configuration pointing at an in-memory database, scheduler off."""
    return AppConfig(
        database_url=TEST_DATABASE_URL,
        scheduler_enabled=False,
        weather_api_url="https://weather.test/current.json?q=Minsk",
        weather_api_key="test-key",
        weather_api_host="weather.test",
    )


@pytest.fixture
def test_engine(test_config):
    """Create a test database with tables."""
    engine = create_db_engine(test_config)
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
def test_db(session_factory):
    """Database session for direct repository access."""
    db = session_factory()

    yield db

    db.close()


@pytest.fixture
def repository(test_db):
    return WeatherRepository(test_db)


@pytest.fixture
def service(repository):
    return WeatherService(repository)


@pytest.fixture
def client(test_config, test_engine):
    """Create a test client backed by the test database."""
    app = create_app(test_config, engine=test_engine)

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def provider_config():
    return ProviderConfig(
        url="https://weather.test/current.json?q=Minsk",
        api_key="test-key",
        api_host="weather.test",
        timeout=5.0,
    )


@pytest.fixture
def scheduler_config():
    return SchedulerConfig(period_ms=50)


@pytest.fixture
def sample_payload():
    """Provider response for Minsk, including fields the service ignores."""
    return {
        "location": {
            "name": "Minsk",
            "region": "Minsk",
            "country": "Belarus",
            "localtime": "2023-12-04 12:41",
        },
        "current": {
            "last_updated": "2023-12-04 12:30",
            "temp_c": 25.0,
            "temp_f": 77.0,
            "is_day": 1,
            "wind_mph": 6.2,
            "wind_kph": 10.0,
            "wind_dir": "SW",
            "pressure_mb": 1010.0,
            "humidity": 60,
        },
    }


@pytest.fixture
def sample_payload_bytes(sample_payload):
    return json.dumps(sample_payload).encode("utf-8")


@pytest.fixture
def sample_records():
    """Observations that have not been stored yet."""
    return [
        WeatherRecord(
            temperature=25.0,
            wind=10.0,
            pressure=1010.0,
            humidity=60.0,
            location="Minsk",
            timestamp=datetime(2023, 12, 4, 12, 30),
        ),
        WeatherRecord(
            temperature=22.0,
            wind=8.0,
            pressure=1005.0,
            humidity=65.0,
            location="Minsk",
            timestamp=datetime(2023, 12, 4, 18, 45),
        ),
        WeatherRecord(
            temperature=-3.0,
            wind=15.0,
            pressure=998.0,
            humidity=90.0,
            location="Minsk",
            timestamp=datetime(2023, 12, 5, 9, 0),
        ),
    ]


@pytest.fixture
def stored_records(repository, sample_records):
    """Sample observations inserted in order."""
    return [repository.insert(record) for record in sample_records]
