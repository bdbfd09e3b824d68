"""RapidAPI weather client for fetching current conditions."""
import logging

import requests

from .config import ProviderConfig
from .exceptions import TransportError

logger = logging.getLogger(__name__)


class WeatherApiClient:
    """Client for the current-weather endpoint of the provider."""

    API_KEY_HEADER = "X-RapidAPI-Key"
    API_HOST_HEADER = "X-RapidAPI-Host"

    def __init__(self, config: ProviderConfig):
        """Initialize weather client.

        Args:
            config: Provider endpoint and credentials
        """
        self.config = config
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session carrying the RapidAPI headers.

        No retry adapter is mounted; a failed fetch is reported to the
        caller and the next scheduled cycle tries again.
        """
        session = requests.Session()
        session.headers.update({
            self.API_KEY_HEADER: self.config.api_key,
            self.API_HOST_HEADER: self.config.api_host,
        })
        return session

    def fetch_raw(self) -> bytes:
        """Fetch the current weather payload.

        Returns:
            Raw JSON response body

        Raises:
            TransportError: On connection failure, timeout or non-2xx status
        """
        logger.debug(f"Fetching current weather from {self.config.url}")

        try:
            response = self.session.get(self.config.url, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.error(f"Weather API returned HTTP {status_code}: {e}")
            raise TransportError(
                f"Weather API returned HTTP {status_code}", status_code=status_code
            ) from e
        except requests.Timeout as e:
            logger.error(f"Weather API timed out after {self.config.timeout}s: {e}")
            raise TransportError(f"Weather API timed out after {self.config.timeout}s") from e
        except requests.RequestException as e:
            logger.error(f"Failed to call weather API: {e}")
            raise TransportError(f"Failed to call weather API: {e}") from e

        return response.content

    def close(self):
        """Close the HTTP session."""
        self.session.close()
