"""Radio directory catalog fetcher.

Pulls the complete station list in one request per mirror from the
radio-browser.info JSON API.

API Documentation: https://api.radio-browser.info/
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from .base_fetcher import BaseFetcher, FetchError, MalformedPayloadError, get_json
from ..pipeline.models import StationRecord

logger = logging.getLogger(__name__)

SEARCH_PATH = "/json/stations/search"
DEFAULT_LIMIT = 500000


class StationCatalogFetcher(BaseFetcher):
    """Fetch the full raw station catalog, mirror by mirror."""

    source_id = "radio_browser"

    def __init__(self, mirrors: Sequence[str], limit: int = DEFAULT_LIMIT,
                 hide_broken: bool = True, timeout: float = 120.0,
                 user_agent: Optional[str] = None):
        super().__init__([m.rstrip("/") for m in mirrors])
        self.limit = limit
        self.hide_broken = hide_broken
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent} if user_agent else None

    def build_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"limit": self.limit}
        if self.hide_broken:
            params["hidebroken"] = "true"
        return params

    def _fetch_impl(self, source: str) -> List[Dict[str, Any]]:
        url = f"{source}{SEARCH_PATH}"
        logger.info(f"Fetching station catalog from {url}")
        data = get_json(url, params=self.build_params(), timeout=(10, self.timeout),
                        headers=self.headers)

        if not isinstance(data, list):
            raise MalformedPayloadError(
                f"expected a JSON array of stations, got {type(data).__name__}"
            )
        if data and not all(isinstance(item, dict) for item in data):
            raise MalformedPayloadError("station array contains non-object entries")
        return data

    def fetch_stations(self) -> List[StationRecord]:
        """
        Fetch and parse the catalog.

        Returns:
            StationRecords with a usable stream URL

        Raises:
            FetchError: If every mirror failed
        """
        raw = self.fetch()
        stations = [StationRecord.from_api(item) for item in raw]
        usable = [s for s in stations if s.stream_url]
        dropped = len(stations) - len(usable)
        if dropped:
            logger.info(f"Dropped {dropped} stations without any stream URL")
        logger.info(f"Fetched {len(usable)} stations total")
        return usable


__all__ = ["StationCatalogFetcher", "FetchError"]
