"""HTTP client for Launch Library expedition data, with retries and a circuit breaker.

This module implements the ``ExpeditionSource`` port over ``httpx``. It adds:

- Request correlation: propagates ``X-Request-ID`` from the ContextVar set
  by the service middleware.
- A circuit breaker in front of the upstream API so an unhealthy or
  throttling upstream is not hammered, with a single trial call allowed
  after a cool-down.
- A retry policy with exponential backoff for transport errors and 5xx.
- Payload checking: a 2xx body that is not the expected JSON document is
  raised as ``UpstreamPayloadError`` and counts against the breaker.
"""

import threading
import time
from typing import Optional

import httpx

from shopping import settings
from shopping.expeditions.schemas import Expedition, ExpeditionResponse
from shopping.logs import REQUEST_ID_CTX, REQUEST_ID_HEADER, get_logger

logger = get_logger("expeditions")

ACTIVE_EXPEDITIONS_PARAMS = {"is_active": "true", "mode": "detailed"}

CLOSED, OPEN, HALF_OPEN = "CLOSED", "OPEN", "HALF_OPEN"


class CircuitOpenError(RuntimeError):
    """Raised instead of calling upstream while the breaker rejects calls."""


class UpstreamPayloadError(RuntimeError):
    """The upstream answered 2xx with a body that is not an expedition list."""


class CircuitBreaker:
    """Count consecutive upstream failures and stop calling once too many pile up.

    After ``fail_threshold`` failures in a row the circuit opens and every
    call is refused for ``reset_timeout`` seconds. The first call after
    that is let through as a trial (HALF_OPEN): success closes the
    circuit, failure opens it again for another full timeout.
    """

    def __init__(self, name: str, fail_threshold: int, reset_timeout: float):
        self.name = name
        self.fail_threshold = fail_threshold
        self.reset_timeout = reset_timeout
        self._lock = threading.RLock()
        self._failures = 0
        self._opened_at: Optional[float] = None
        self._trial_running = False

    @property
    def state(self) -> str:
        with self._lock:
            if self._opened_at is None:
                return CLOSED
            if time.monotonic() - self._opened_at < self.reset_timeout:
                return OPEN
            return HALF_OPEN

    def allow(self) -> str:
        """Admit a call or raise ``CircuitOpenError``; return the state it ran under."""
        with self._lock:
            current = self.state
            if current == OPEN or (current == HALF_OPEN and self._trial_running):
                raise CircuitOpenError(f"{self.name}: circuit {current.lower()}")
            if current == HALF_OPEN:
                self._trial_running = True
            return current

    def record_success(self):
        with self._lock:
            self._failures = 0
            self._opened_at = None
            self._trial_running = False

    def record_failure(self):
        with self._lock:
            self._failures += 1
            tripped = self._failures >= self.fail_threshold
            if self._trial_running or (tripped and self._opened_at is None):
                self._opened_at = time.monotonic()
            self._trial_running = False

    def release(self):
        """Free the trial slot when a call ends without a recorded outcome."""
        with self._lock:
            self._trial_running = False


launch_library_cb = CircuitBreaker(
    "launch-library",
    settings.HTTP_CIRCUIT_FAIL_THRESHOLD,
    settings.HTTP_CIRCUIT_RESET_TIMEOUT,
)


def _request_headers(circuit_state: str) -> dict:
    headers = {"Accept": "application/json", "X-Circuit-State": circuit_state}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers[REQUEST_ID_HEADER] = rid
    return headers


def _retry_policy() -> tuple[int, float]:
    """Return retry configuration as (max_attempts, backoff_base_seconds)."""
    return max(1, settings.HTTP_RETRY_MAX), settings.HTTP_RETRY_BACKOFF_BASE


def _backoff(attempt: int, base: float) -> float:
    return min(base * (2 ** (attempt - 1)), settings.HTTP_RETRY_MAX_SLEEP)


class LaunchLibraryClient:
    """Fetch active expeditions from the Launch Library 2 API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.base_url = (base_url or settings.LAUNCH_LIBRARY_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECS
        self.breaker = breaker or launch_library_cb

    def _parse(self, url: str, resp: httpx.Response) -> list[Expedition]:
        try:
            return ExpeditionResponse.model_validate(resp.json()).results
        except ValueError as e:
            # Covers undecodable JSON and pydantic validation errors alike.
            self.breaker.record_failure()
            logger.warning("launch library payload rejected", extra={"url": url, "error": str(e)})
            raise UpstreamPayloadError(f"{url}: unexpected response body") from e

    def fetch_active_expeditions(self) -> list[Expedition]:
        """GET the active expeditions in detailed mode.

        Transport errors and 5xx responses are retried with exponential
        backoff; other non-2xx responses are raised immediately.

        Returns:
            list[Expedition]: The ``results`` of the response.

        Raises:
            CircuitOpenError: When the breaker rejects the call.
            UpstreamPayloadError: When a 2xx body is not an expedition list.
            httpx.RequestError: For transport errors after retries.
            httpx.HTTPStatusError: For non-2xx responses.
        """
        url = f"{self.base_url}{settings.LAUNCH_LIBRARY_EXPEDITIONS_PATH}"
        max_attempts, backoff = _retry_policy()
        headers = _request_headers(self.breaker.allow())

        try:
            with httpx.Client(timeout=self.timeout) as client:
                for attempt in range(1, max_attempts + 1):
                    resp, error = None, None
                    try:
                        resp = client.get(url, params=ACTIVE_EXPEDITIONS_PARAMS, headers=headers)
                    except httpx.RequestError as e:
                        error = e

                    if resp is not None and resp.is_success:
                        expeditions = self._parse(url, resp)
                        self.breaker.record_success()
                        return expeditions
                    if resp is not None and resp.status_code < 500:
                        # A 4xx says nothing about upstream health.
                        self.breaker.record_success()
                        resp.raise_for_status()

                    if attempt == max_attempts:
                        self.breaker.record_failure()
                        logger.warning(
                            "launch library unavailable",
                            extra={"url": url, "attempts": attempt, "error": str(error) if error else resp.status_code},
                        )
                        if error is not None:
                            raise error
                        resp.raise_for_status()
                    time.sleep(_backoff(attempt, backoff))
        finally:
            self.breaker.release()
