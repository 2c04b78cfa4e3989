"""Snapshot samplers for cpubars.

Two interchangeable strategies deliver snapshots from the metrics server:

- PollingSampler issues ``GET /api/cpus`` once per call. The app calls it
  from a fixed-interval timer without waiting for earlier requests, so
  several requests may be in flight and results are applied in the order
  they arrive, not the order they were issued.
- StreamingSampler keeps one WebSocket open on ``/realtime/cpus`` and yields
  messages strictly in arrival order. It never reconnects.
"""

import logging
from collections.abc import AsyncIterator, Callable
from urllib.parse import urlsplit, urlunsplit

import requests
import websockets

from cpubars.errors import SamplerError, TransportError
from cpubars.models import Sample, Snapshot, decode_snapshot

log = logging.getLogger(__name__)

API_PATH = "/api/cpus"
STREAM_PATH = "/realtime/cpus"

_STREAM_SCHEMES = {"http": "ws", "https": "wss", "ws": "ws", "wss": "wss"}


def api_url(base_url: str) -> str:
    """Polling endpoint for a server base URL."""
    return base_url.rstrip("/") + API_PATH


def stream_url(base_url: str) -> str:
    """Streaming endpoint for a server base URL, with http/https upgraded to ws/wss."""
    parts = urlsplit(base_url)
    scheme = _STREAM_SCHEMES.get(parts.scheme)
    if scheme is None:
        raise ValueError(f"unsupported URL scheme: {parts.scheme!r}")
    path = parts.path.rstrip("/") + STREAM_PATH
    return urlunsplit((scheme, parts.netloc, path, "", ""))


class PollingSampler:
    """
    Pull sampler that fetches one snapshot per call.

    Each call is an independent attempt: there is no retry, backoff or shared
    state between calls, so it is safe to call from several threads at once.
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the PollingSampler.

        Args:
            base_url: Server base URL, e.g. ``http://localhost:8080``.
            session: HTTP session to reuse. A new one is created if omitted.
            timeout: Request timeout in seconds. None waits indefinitely.
        """
        self._url = api_url(base_url)
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout

    @property
    def url(self) -> str:
        """The polled endpoint."""
        return self._url

    def fetch(self) -> Snapshot:
        """
        Fetch and decode the latest snapshot.

        Raises:
            TransportError: On a non-200 status or when no response arrived.
            DecodeError: If the body is not a JSON array of numbers.
        """
        try:
            response = self._session.get(self._url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise TransportError(None, str(exc)) from exc

        if response.status_code != 200:
            raise TransportError(response.status_code, response.reason or "")

        return decode_snapshot(response.content)

    def sample(self, sequence: int) -> Sample:
        """Fetch once and fold sampling failures into the returned Sample."""
        try:
            snapshot = self.fetch()
        except SamplerError as exc:
            return Sample(sequence=sequence, error=exc)
        return Sample(sequence=sequence, snapshot=snapshot)

    def close(self) -> None:
        """Release pooled HTTP connections."""
        self._session.close()


class StreamingSampler:
    """Push sampler reading snapshots from a single WebSocket connection."""

    def __init__(
        self,
        base_url: str,
        connect: Callable = websockets.connect,
    ) -> None:
        self._url = stream_url(base_url)
        self._connect = connect

    @property
    def url(self) -> str:
        """The streaming endpoint."""
        return self._url

    async def samples(self) -> AsyncIterator[Sample]:
        """
        Yield one Sample per inbound message, in arrival order.

        A message that fails to decode yields a Sample carrying the
        DecodeError; the connection stays open and later messages are still
        delivered. Connection failures propagate and end the iteration.
        """
        sequence = 0
        async with self._connect(self._url) as connection:
            log.info("Connected to %s", self._url)
            async for message in connection:
                sequence += 1
                try:
                    snapshot = decode_snapshot(message)
                except SamplerError as exc:
                    yield Sample(sequence=sequence, error=exc)
                    continue
                yield Sample(sequence=sequence, snapshot=snapshot)
        log.info("Stream %s closed by server", self._url)
