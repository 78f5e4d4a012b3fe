"""
Stream liveness / CORS prober.

Simulates what the browser client will do with a stream URL: a cross-origin
request that must succeed, carry a permissive ``Access-Control-Allow-Origin``
and serve ``audio/*`` content. Each probe walks a small state machine:

    PENDING -> LIGHTWEIGHT_TRIED -> VERIFIED
                                 -> FULL_TRIED -> VERIFIED | REJECTED

The lightweight step is a HEAD request; some stream servers reject HEAD but
serve GET, so a streaming GET (body never read) is the second chance. A
verified probe is then gated by a plain reachability check.

No retries and no backoff: a failure or timeout is final for that URL.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import requests

from .models import StationRecord

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
DEFAULT_ORIGIN = "https://georadio.app"

# Malformed hosts (e.g. urllib3 LocationParseError, http.client.InvalidURL)
# surface as ValueError rather than a requests exception
PROBE_ERRORS = (requests.RequestException, ValueError)


class ProbeState(Enum):
    PENDING = "pending"
    LIGHTWEIGHT_TRIED = "lightweight_tried"
    FULL_TRIED = "full_tried"
    VERIFIED = "verified"
    REJECTED = "rejected"


TERMINAL_STATES = (ProbeState.VERIFIED, ProbeState.REJECTED)


@dataclass
class ProbeOutcome:
    """Result of probing one URL, with the states it passed through."""
    url: str
    state: ProbeState = ProbeState.PENDING
    status_code: Optional[int] = None
    reason: str = ""
    history: List[ProbeState] = field(default_factory=list)

    def advance(self, state: ProbeState, reason: str = "") -> None:
        if self.state in TERMINAL_STATES:
            raise ValueError(f"probe for {self.url} already {self.state.value}")
        self.history.append(self.state)
        self.state = state
        if reason:
            self.reason = reason

    def overturn(self, reason: str) -> None:
        """Reject a verified probe after the fact (the only way out of VERIFIED)."""
        if self.state != ProbeState.VERIFIED:
            raise ValueError(f"probe for {self.url} is {self.state.value}, not verified")
        self.history.append(self.state)
        self.state = ProbeState.REJECTED
        self.reason = reason

    @property
    def accepted(self) -> bool:
        return self.state == ProbeState.VERIFIED


def upgrade_to_https(url: str) -> str:
    """Rewrite http:// to https:// the way browsers auto-upgrade mixed content."""
    url = url.strip()
    if url.lower().startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


class StreamProber:
    """Sequential browser-simulation probes with a fixed per-request timeout."""

    def __init__(self, origin: str = DEFAULT_ORIGIN, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None, user_agent: Optional[str] = None):
        self.origin = origin.rstrip("/")
        self.timeout = timeout
        # Plain session: no adapter-level retries
        self.session = session or requests.Session()
        self.headers = {
            "Origin": self.origin,
            "Accept": "audio/*;q=1.0, */*;q=0.5",
        }
        if user_agent:
            self.headers["User-Agent"] = user_agent

    def rejection_reason(self, response) -> Optional[str]:
        """Why a response fails the browser checks, or None if it passes."""
        if response.status_code >= 400:
            return f"HTTP {response.status_code}"

        allow_origin = (response.headers.get("Access-Control-Allow-Origin") or "").strip()
        if allow_origin not in ("*", self.origin):
            return f"CORS not allowed (Access-Control-Allow-Origin={allow_origin or 'missing'})"

        content_type = (response.headers.get("Content-Type") or "").strip().lower()
        if not content_type.startswith("audio/"):
            return f"not audio (Content-Type={content_type or 'missing'})"
        return None

    def _lightweight_check(self, url: str) -> Tuple[bool, Optional[int], str]:
        try:
            response = self.session.head(url, headers=self.headers, timeout=self.timeout,
                                         allow_redirects=True)
        except PROBE_ERRORS as e:
            return False, None, f"HEAD failed: {type(e).__name__}"
        reason = self.rejection_reason(response)
        return reason is None, response.status_code, reason or ""

    def _full_check(self, url: str) -> Tuple[bool, Optional[int], str]:
        try:
            with self.session.get(url, headers=self.headers, timeout=self.timeout,
                                  stream=True, allow_redirects=True) as response:
                reason = self.rejection_reason(response)
                return reason is None, response.status_code, reason or ""
        except PROBE_ERRORS as e:
            return False, None, f"GET failed: {type(e).__name__}"

    def probe_outcome(self, url: str) -> ProbeOutcome:
        """Run the lightweight → full state machine for one URL."""
        outcome = ProbeOutcome(url=upgrade_to_https(url))

        ok, status, reason = self._lightweight_check(outcome.url)
        outcome.status_code = status
        outcome.advance(ProbeState.LIGHTWEIGHT_TRIED, reason)
        if ok:
            outcome.advance(ProbeState.VERIFIED)
            return outcome

        ok, status, reason = self._full_check(outcome.url)
        outcome.status_code = status
        outcome.advance(ProbeState.FULL_TRIED, reason)
        outcome.advance(ProbeState.VERIFIED if ok else ProbeState.REJECTED)
        return outcome

    def probe(self, url: str) -> bool:
        """Reachable, audio content, permissive CORS."""
        return self.probe_outcome(url).accepted

    def check_reachable(self, url: str) -> bool:
        """Plain reachability: any status below 400, no header requirements."""
        try:
            with self.session.get(url, timeout=self.timeout, stream=True,
                                  allow_redirects=True) as response:
                return response.status_code < 400
        except PROBE_ERRORS:
            return False

    def verify_station(self, station: StationRecord) -> ProbeOutcome:
        """Browser-simulation probe, then the reachability gate."""
        outcome = self.probe_outcome(station.stream_url)
        if outcome.accepted and not self.check_reachable(outcome.url):
            outcome.overturn("reachability re-check failed")
        return outcome

    def verify(self, station: StationRecord) -> bool:
        return self.verify_station(station).accepted
