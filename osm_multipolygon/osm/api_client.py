"""
Overpass API client

Fetches relations with inline member geometry ('out meta geom'), with
request spacing and retries for timeouts, throttling and gateway errors
"""

import time
from typing import Dict, Any, Optional

import requests
from loguru import logger

from ..config import APIConfig, get_config

# Overpass answers these when busy; worth another attempt
RETRYABLE_STATUS = (429, 502, 503, 504)


class OverpassAPIClient:
    """Client for the Overpass interpreter endpoint"""

    def __init__(self, api_config: Optional[APIConfig] = None):
        self.api = api_config or get_config().api
        self._last_request_time = 0.0

    def _rate_limit(self):
        """Keep at least min_request_interval between requests"""
        elapsed = time.time() - self._last_request_time
        if elapsed < self.api.min_request_interval:
            time.sleep(self.api.min_request_interval - elapsed)
        self._last_request_time = time.time()

    def _post(self, query: str) -> requests.Response:
        self._rate_limit()
        response = requests.post(
            self.api.overpass_url,
            data={"data": query},
            headers={
                "User-Agent": self.api.user_agent,
                "Content-Type": "application/x-www-form-urlencoded"
            },
            timeout=self.api.overpass_timeout
        )
        response.raise_for_status()
        return response

    def query(self, query: str) -> Dict[str, Any]:
        """
        Execute an Overpass QL query

        Waits retry_delay * attempt between attempts.

        Raises:
            RuntimeError: If the query still fails after max_retries attempts
        """
        attempts = self.api.max_retries
        for attempt in range(1, attempts + 1):
            try:
                return self._post(query).json()
            except requests.exceptions.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                if status not in RETRYABLE_STATUS or attempt == attempts:
                    logger.error(f"Overpass failed: HTTP {status} after {attempt} attempts")
                    raise RuntimeError(f"Overpass API HTTP error {status} after {attempt} attempts") from e
                reason = f"HTTP {status}"
            except requests.exceptions.RequestException as e:
                if attempt == attempts:
                    logger.error(f"Overpass failed after {attempts} attempts: {e}")
                    raise RuntimeError(f"Overpass API request failed after {attempts} attempts: {e}") from e
                reason = "timeout" if isinstance(e, requests.exceptions.Timeout) else str(e)

            wait_time = self.api.retry_delay * attempt
            logger.warning(f"Overpass {reason} (attempt {attempt}/{attempts}). Retrying in {wait_time}s...")
            time.sleep(wait_time)

        raise RuntimeError("Overpass API not queried: max_retries must be positive")

    def fetch_relation(self, relation_id: int) -> Dict[str, Any]:
        """
        Fetch one relation with metadata and inline member geometry

        Args:
            relation_id: OSM relation ID

        Returns:
            Overpass JSON response containing the relation
        """
        logger.info(f"Fetching relation {relation_id} from Overpass")
        query = f"""
        [out:json][timeout:{self.api.overpass_timeout}];
        relation({relation_id});
        out meta geom;
        """
        return self.query(query)
