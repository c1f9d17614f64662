"""
Worker Sessions
===============

Authenticated HTTP access to the job history server.  Each worker (a
thread or process slot in the caller's pool) owns exactly one
``WorkerSession``; sessions are never shared, so no locking is needed.

The authentication token is the worker's ``requests.Session``: it holds
the credentials and the ``hadoop.auth`` cookie handed out by the server
after the first authenticated request, so reusing it amortises the
authentication handshake across many calls.  Tokens eventually expire on
the server side, so the worker replaces its session after a rotation
interval.  The interval is drawn once per worker, uniformly in
``[30, 33)`` minutes, so that a pool of workers started together does
not re‑authenticate all at the same moment.

Rotation is only evaluated when ``maybe_rotate`` is called, which the
fetcher does once at the end of every fetch.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Dict, Optional

import requests

from .config import DEFAULT_TIMEOUT, FetcherConfig
from .errors import AuthenticationError, DecodeError, RemoteServiceError, ServiceUnavailableError

LOGGER = logging.getLogger(__name__)

ROTATION_BASE_SECONDS = 30 * 60.0
ROTATION_JITTER_SECONDS = 3 * 60.0

SessionFactory = Callable[[], requests.Session]


def default_session_factory(config: FetcherConfig) -> SessionFactory:
    """Return a factory building ``requests.Session`` objects for ``config``."""

    def _factory() -> requests.Session:
        session = requests.Session()
        session.headers.update({"Accept": "application/json"})
        if config.auth_user:
            session.auth = (config.auth_user, config.auth_password or "")
        if config.pseudo_auth_user:
            session.params = {"user.name": config.pseudo_auth_user}
        return session

    return _factory


def verify_service(url: str, session_factory: SessionFactory, timeout: float = DEFAULT_TIMEOUT) -> None:
    """Check that the history server answers at ``url``.

    Any HTTP response, whatever its status, proves the service is
    reachable.

    :raises ServiceUnavailableError: If no connection can be established.
    """
    session = session_factory()
    try:
        LOGGER.info("Connecting to the job history server at %s...", url)
        session.head(url, timeout=timeout)
    except requests.RequestException as exc:
        raise ServiceUnavailableError(f"Job history server at {url} is unreachable: {exc}") from exc
    finally:
        session.close()
    LOGGER.info("Connection success.")


class WorkerSession:
    """One worker's authenticated connection context.

    :param worker_id: Identifier of the worker within the caller's pool;
        only used for logging.
    :param session_factory: Builds a fresh ``requests.Session``.  Called
        lazily on first use and again on every rotation.
    :param timeout: Per request timeout in seconds.
    :param clock: Monotonic clock returning seconds.
    :param rng: Random source used to draw the rotation interval.
    """

    def __init__(
        self,
        worker_id: int,
        session_factory: Optional[SessionFactory] = None,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.worker_id = worker_id
        self.timeout = timeout
        self._factory = session_factory or requests.Session
        self._clock = clock
        self._rng = rng or random.Random()
        self._session: Optional[requests.Session] = None
        self.issued_at: Optional[float] = None
        self.rotation_interval: Optional[float] = None
        self.rotations = 0

    @property
    def session(self) -> Optional[requests.Session]:
        """The current token, or ``None`` before first use."""
        return self._session

    def _issue(self) -> requests.Session:
        self._session = self._factory()
        self.issued_at = self._clock()
        if self.rotation_interval is None:
            self.rotation_interval = ROTATION_BASE_SECONDS + self._rng.random() * ROTATION_JITTER_SECONDS
            LOGGER.info(
                "Worker %s update interval %.2f minutes", self.worker_id, self.rotation_interval / 60.0
            )
        return self._session

    def acquire(self, url: str) -> requests.Response:
        """Perform an authenticated GET of ``url`` and return the response.

        :raises AuthenticationError: On HTTP 401 or 403.
        :raises RemoteServiceError: On transport failures and other error statuses.
        """
        session = self._session or self._issue()
        LOGGER.debug("Worker %s fetching %s", self.worker_id, url)
        try:
            resp = session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RemoteServiceError(f"Request to {url} failed: {exc}", url=url) from exc
        if resp.status_code in (401, 403):
            raise AuthenticationError(
                f"Authentication rejected for {url} (HTTP {resp.status_code})",
                url=url,
                status_code=resp.status_code,
            )
        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise RemoteServiceError(
                f"Request to {url} returned HTTP {resp.status_code}", url=url, status_code=resp.status_code
            ) from exc
        return resp

    def read_json(self, url: str) -> Dict[str, Any]:
        """Fetch ``url`` and decode its body as a JSON object.

        :raises DecodeError: If the body is not a JSON object.
        """
        resp = self.acquire(url)
        try:
            data = resp.json()
        except ValueError as exc:
            raise DecodeError(f"Response from {url} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise DecodeError(f"Response from {url} is not a JSON object")
        return data

    def maybe_rotate(self) -> bool:
        """Replace the token if it is older than the rotation interval.

        :returns: ``True`` if a new token was issued.
        """
        if self._session is None or self.issued_at is None or self.rotation_interval is None:
            return False
        now = self._clock()
        if now - self.issued_at <= self.rotation_interval:
            return False
        LOGGER.info("Worker %s updates its authentication token", self.worker_id)
        self._session.close()
        self._session = self._factory()
        self.issued_at = now
        self.rotations += 1
        return True

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
