"""HTTP connection to the smart-home network server.

Every round-trip is a POST whose body is the hub's outgoing packets in
URL-safe base64 without padding. The response status decides what
happens next:

- 200: the body holds one base64 line per batch of packets for the hub
- 204: the network has nothing more to say; the run ends cleanly
- anything else, a timeout or a connection failure: fatal
"""

from __future__ import annotations

import base64
import binascii
import logging

import httpx

from ..errors import TransportClosed, TransportError

logger = logging.getLogger(__name__)

READ_TIMEOUT = 0.3  # seconds, per round-trip
CONTENT_TYPE = "application/x-www-form-urlencoded"
HEADERS = {"Content-Type": CONTENT_TYPE, "Accept": CONTENT_TYPE}


def encode_batch(data: bytes) -> bytes:
    """Encode raw packet bytes as unpadded URL-safe base64."""
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def decode_line(line: str) -> bytes:
    """Decode one unpadded URL-safe base64 line.

    Raises:
        binascii.Error: If the line is not valid base64.
    """
    line = line.strip()
    return base64.b64decode(line + "=" * (-len(line) % 4), altchars=b"-_", validate=True)


class HTTPConnection:
    """Request/response transport over HTTP.

    Usage::

        conn = HTTPConnection("http://localhost:9998")
        conn.open()
        received = conn.exchange(framed_packets)
        conn.close()
    """

    def __init__(
        self,
        url: str,
        timeout: float = READ_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def url(self) -> str:
        return self._url

    @property
    def connected(self) -> bool:
        return self._client is not None

    def open(self) -> None:
        """Create the underlying HTTP client if none was supplied."""
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout)
            self._owns_client = True
            logger.info("Opened HTTP transport to %s", self._url)

    def close(self) -> None:
        """Close the HTTP client if this connection created it."""
        if self._client is None:
            return
        try:
            if self._owns_client:
                self._client.close()
        finally:
            self._client = None
            logger.info("Closed HTTP transport to %s", self._url)

    def __enter__(self) -> HTTPConnection:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def exchange(self, data: bytes) -> bytes:
        """Send a batch of framed packets and return the received batch.

        Args:
            data: Zero or more framed packets, back to back.

        Returns:
            The raw bytes of every packet the server returned, concatenated.

        Raises:
            TransportClosed: On HTTP 204.
            TransportError: On any other non-200 status, a timeout, or a
                connection failure.
        """
        if self._client is None:
            self.open()

        try:
            response = self._client.post(
                self._url, content=encode_batch(data), headers=HEADERS
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Round-trip to {self._url} timed out after {self._timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Round-trip to {self._url} failed: {e}") from e

        if response.status_code == httpx.codes.NO_CONTENT:
            raise TransportClosed(f"{self._url} has no more data")
        if response.status_code != httpx.codes.OK:
            raise TransportError(
                f"{self._url} answered HTTP {response.status_code}"
            )

        received = bytearray()
        for line in response.text.splitlines():
            if not line.strip():
                continue
            try:
                received += decode_line(line)
            except (binascii.Error, ValueError) as e:
                logger.warning("Dropping undecodable line %r: %s", line, e)
        logger.debug("Sent %d bytes, received %d bytes", len(data), len(received))
        return bytes(received)
