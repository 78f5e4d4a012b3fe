"""Base class for fetchers that walk an ordered list of sources (mirrors)."""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

# Request timeout (connect, read) in seconds
REQUEST_TIMEOUT = (10, 60)

# Session-level retry for network transients
_retry = Retry(total=1, allowed_methods=["GET"], backoff_factor=1, status_forcelist=[502, 503, 504])
_session = requests.Session()
_session.mount("https://", HTTPAdapter(max_retries=_retry))
_session.mount("http://", HTTPAdapter(max_retries=_retry))


class FetchError(Exception):
    """Exception raised when every source of a fetch has failed."""
    def __init__(self, source_id: str, message: str, original_error: Optional[Exception] = None):
        self.source_id = source_id
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_id}: {message}")


class MalformedPayloadError(ValueError):
    """A source answered, but not with the shape we expect."""
    pass


def get_json(url: str, params: Optional[dict] = None, timeout=REQUEST_TIMEOUT,
             headers: Optional[dict] = None) -> Any:
    """
    GET a JSON document from a URL, or read it from disk for local paths.

    Raises:
        requests.RequestException: network or HTTP status failure
        ValueError: body is not valid JSON
    """
    if not url.startswith(("http://", "https://")):
        with open(os.path.expanduser(url), "r", encoding="utf-8") as f:
            return json.load(f)

    response = _session.get(url, params=params, timeout=timeout, headers=headers)
    response.raise_for_status()
    return response.json()


class BaseFetcher(ABC):
    """
    Try each configured source in order until one yields a usable payload.

    A source failing with a network error, an HTTP error status, invalid JSON
    or a malformed payload is logged and skipped. Only when every source has
    failed is a ``FetchError`` raised.
    """

    source_id = "base"

    def __init__(self, sources: Sequence[str]):
        self.sources: List[str] = list(sources)

    @abstractmethod
    def _fetch_impl(self, source: str) -> Any:
        """
        Fetch from one source - to be overridden by subclasses.

        Args:
            source: A mirror base URL, a full URL, or a local path

        Returns:
            Parsed payload

        Raises:
            requests.RequestException, ValueError (incl. MalformedPayloadError), OSError
        """
        pass

    def fetch(self) -> Any:
        """
        Fetch from the first source that succeeds.

        Returns:
            The payload of the first successful source

        Raises:
            FetchError: If all sources are exhausted
        """
        if not self.sources:
            raise FetchError(self.source_id, "No sources configured")

        last_error: Optional[Exception] = None
        for attempt, source in enumerate(self.sources, start=1):
            try:
                payload = self._fetch_impl(source)
                if attempt > 1:
                    logger.info(f"{self.source_id}: succeeded on fallback source {source}")
                return payload
            except (requests.RequestException, ValueError, OSError) as e:
                last_error = e
                logger.warning(
                    f"{self.source_id}: source {attempt}/{len(self.sources)} failed ({source}): {e}"
                )

        logger.error(f"{self.source_id}: all {len(self.sources)} sources exhausted")
        raise FetchError(
            self.source_id,
            f"All {len(self.sources)} sources failed; last error: {last_error}",
            last_error,
        )
