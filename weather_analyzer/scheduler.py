"""Fixed-rate ingestion of current weather into the record store."""
import argparse
import logging
import signal
import threading
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from prometheus_client import Counter, Histogram

from .client import WeatherApiClient
from .config import SchedulerConfig, get_config
from .database import SessionFactory, SessionLocal, init_db, session_scope
from .exceptions import (
    DuplicateRecordError,
    IngestionInternalError,
    ParseError,
    TransportError,
    WeatherAnalyzerError,
)
from .normalizer import parse_weather
from .repository import WeatherRepository
from .service import WeatherService

logger = logging.getLogger(__name__)

INGESTION_CYCLES = Counter(
    "weather_ingestion_cycles_total",
    "Ingestion cycles by outcome",
    ["outcome"]
)
INGESTION_DURATION = Histogram(
    "weather_ingestion_cycle_duration_seconds",
    "Ingestion cycle duration in seconds"
)


class IngestionOutcome(str, Enum):
    """How an ingestion cycle ended."""
    STORED = "stored"
    DUPLICATE = "duplicate"
    TRANSPORT_ERROR = "transport_error"
    PARSE_ERROR = "parse_error"
    INTERNAL_ERROR = "internal_error"
    SKIPPED = "skipped"


class IngestionScheduler:
    """Runs fetch -> normalize -> store on a fixed rate in a background thread.

    Ticks are due at start + n * period. When a cycle overruns the period the
    next one starts right away and the schedule restarts from that moment,
    so missed ticks collapse into one. A cycle never overlaps another one:
    a tick arriving while a cycle holds the lock is skipped.
    """

    def __init__(
        self,
        client: WeatherApiClient,
        session_factory: SessionFactory,
        config: SchedulerConfig,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize scheduler.

        Args:
            client: Weather provider client
            session_factory: Factory for database sessions, one per cycle
            config: Scheduler configuration
            clock: Monotonic clock used for tick arithmetic
        """
        self.client = client
        self.session_factory = session_factory
        self.config = config
        self._clock = clock
        self._cycle_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.last_outcome: Optional[IngestionOutcome] = None
        self.last_run_at: Optional[datetime] = None
        self.last_error: Optional[WeatherAnalyzerError] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the background ingestion thread."""
        if self.is_running:
            logger.warning("Ingestion scheduler already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="weather-ingestion",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Started ingestion scheduler with period {self.config.period_ms} ms")

    def stop(self, timeout: Optional[float] = None):
        """Stop the background thread, letting an in-flight cycle finish.

        Args:
            timeout: Maximum seconds to wait for the thread to exit
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Ingestion thread did not stop within timeout")
            else:
                self._thread = None
        logger.info("Stopped ingestion scheduler")

    def _run_loop(self):
        period = self.config.period_seconds
        next_tick = self._clock()

        while not self._stop_event.is_set():
            self.run_once()

            next_tick += period
            delay = next_tick - self._clock()
            if delay <= 0:
                logger.warning(
                    f"Ingestion cycle overran the {period:.3f}s period, starting next cycle now"
                )
                next_tick = self._clock()
                continue

            if self._stop_event.wait(delay):
                break

    def run_once(self) -> IngestionOutcome:
        """Run a single ingestion cycle unless one is already in progress.

        Returns:
            Outcome of the cycle; errors are logged, never raised
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Previous ingestion cycle still in progress, skipping tick")
            INGESTION_CYCLES.labels(outcome=IngestionOutcome.SKIPPED.value).inc()
            return IngestionOutcome.SKIPPED

        start_time = time.time()
        try:
            outcome = self._run_cycle()
        finally:
            self._cycle_lock.release()

        duration = time.time() - start_time
        INGESTION_DURATION.observe(duration)
        INGESTION_CYCLES.labels(outcome=outcome.value).inc()

        self.last_outcome = outcome
        self.last_run_at = datetime.now()
        logger.debug(f"Ingestion cycle finished: {outcome.value} in {duration:.3f}s")
        return outcome

    def _run_cycle(self) -> IngestionOutcome:
        self.last_error = None
        try:
            raw = self.client.fetch_raw()
            record = parse_weather(raw)
            with session_scope(self.session_factory) as session:
                stored = WeatherService(WeatherRepository(session)).submit(record)
            logger.info(f"Ingested weather for {stored.location} at {stored.timestamp} (id={stored.id})")
            return IngestionOutcome.STORED

        except TransportError as e:
            logger.error(f"Something went wrong while getting value from weather API: {e}")
            self.last_error = e
            return IngestionOutcome.TRANSPORT_ERROR

        except ParseError as e:
            logger.error(f"Error mapping weather API response to a record: {e}")
            self.last_error = e
            return IngestionOutcome.PARSE_ERROR

        except DuplicateRecordError as e:
            logger.info(f"Weather API returned an already stored observation: {e}")
            return IngestionOutcome.DUPLICATE

        except Exception as e:
            self.last_error = IngestionInternalError(f"Unexpected error during ingestion cycle: {e}")
            logger.error(str(self.last_error), exc_info=True)
            return IngestionOutcome.INTERNAL_ERROR


def main(argv=None) -> int:
    """Run the ingestion scheduler as a standalone process."""
    parser = argparse.ArgumentParser(description="Poll the weather API and store observations")
    parser.add_argument("--once", action="store_true", help="Run a single ingestion cycle and exit")
    args = parser.parse_args(argv)

    config = get_config()
    logging.basicConfig(
        level=config.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    init_db()

    client = WeatherApiClient(config.provider())
    scheduler = IngestionScheduler(client, SessionLocal, config.scheduler())

    try:
        if args.once:
            outcome = scheduler.run_once()
            logger.info(f"Ingestion cycle outcome: {outcome.value}")
            return 0 if outcome in (IngestionOutcome.STORED, IngestionOutcome.DUPLICATE) else 1

        shutdown = threading.Event()

        def _handle_signal(signum, frame):
            logger.info(f"Received signal {signum}, shutting down")
            shutdown.set()

        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

        scheduler.start()
        shutdown.wait()
        scheduler.stop(timeout=config.weather_api_timeout + 5)
        return 0
    finally:
        client.close()


if __name__ == "__main__":
    raise SystemExit(main())
