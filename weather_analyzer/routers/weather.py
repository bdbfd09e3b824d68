"""Weather history endpoints."""

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from weather_analyzer.database import get_db
from weather_analyzer.exceptions import DuplicateRecordError, RecordNotFoundError
from weather_analyzer.models import AverageWeatherResponse, WeatherCreate, WeatherResponse
from weather_analyzer.repository import WeatherRepository
from weather_analyzer.service import WeatherService

router = APIRouter(prefix="/weather", tags=["weather"])


def get_weather_service(db: Session = Depends(get_db)) -> WeatherService:
    """Weather service bound to the request's database session."""
    return WeatherService(WeatherRepository(db))


# Fixed paths are registered before "/{record_id}" so they are not
# captured by it.

@router.get("/all", response_model=list[WeatherResponse])
def get_all_weather(
    service: WeatherService = Depends(get_weather_service)
) -> list[WeatherResponse]:
    """
    List every stored weather observation.

    Returns:
        Observations in insertion order
    """
    return [WeatherResponse.model_validate(r) for r in service.get_all()]


@router.get("/latest", response_model=WeatherResponse)
def get_latest_weather(
    service: WeatherService = Depends(get_weather_service)
) -> WeatherResponse:
    """
    Get the most recently stored observation.

    Raises:
        404: Nothing stored yet
    """
    try:
        record = service.get_latest()
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return WeatherResponse.model_validate(record)


@router.get("/history", response_model=AverageWeatherResponse)
def get_weather_in_time_range(
    start_datetime: datetime = Query(
        alias="startDateTime",
        description="Range start, ISO date-time (inclusive)"
    ),
    end_datetime: datetime = Query(
        alias="endDateTime",
        description="Range end, ISO date-time (inclusive)"
    ),
    service: WeatherService = Depends(get_weather_service)
) -> AverageWeatherResponse:
    """
    Average temperature, wind, pressure and humidity over a time range.

    Query parameters:
    - **startDateTime**: e.g. 2023-12-04T00:00:00
    - **endDateTime**: e.g. 2023-12-04T23:59:59

    Returns:
        Average record; all zeros when no observation falls in the range
    """
    record = service.get_in_timestamp_range(start_datetime, end_datetime)
    return AverageWeatherResponse.model_validate(record)


@router.get("/historyByDate", response_model=AverageWeatherResponse)
def get_weather_in_date_range(
    start_date: date = Query(
        alias="startDate",
        description="First day, ISO date (inclusive)"
    ),
    end_date: date = Query(
        alias="endDate",
        description="Last day, ISO date (inclusive)"
    ),
    service: WeatherService = Depends(get_weather_service)
) -> AverageWeatherResponse:
    """
    Average temperature, wind, pressure and humidity over whole days.

    Query parameters:
    - **startDate**: e.g. 2023-12-01
    - **endDate**: e.g. 2023-12-04

    Returns:
        Average record; all zeros when no observation falls in the range
    """
    record = service.get_in_date_range(start_date, end_date)
    return AverageWeatherResponse.model_validate(record)


@router.get("/{record_id}", response_model=WeatherResponse)
def get_weather(
    record_id: int,
    service: WeatherService = Depends(get_weather_service)
) -> WeatherResponse:
    """
    Get a stored observation by ID.

    Raises:
        404: Observation not found
    """
    try:
        record = service.get_by_id(record_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return WeatherResponse.model_validate(record)


@router.post("", response_model=WeatherResponse, status_code=status.HTTP_201_CREATED)
def post_weather(
    weather: WeatherCreate,
    service: WeatherService = Depends(get_weather_service)
) -> WeatherResponse:
    """
    Store a new observation.

    Raises:
        409: An observation for this location and timestamp already exists
    """
    try:
        record = service.submit(weather.to_record())
    except DuplicateRecordError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return WeatherResponse.model_validate(record)
