import asyncio
import logging
import socket
from typing import NamedTuple

logger = logging.getLogger(__name__)


class UdpClientClosedError(OSError):
    """Raised when sending or receiving on a closed UdpClientWrapper."""


class UdpReceiveResult(NamedTuple):
    buffer: bytes
    remote_endpoint: tuple


class UdpClientWrapper:
    """Broadcast-enabled UDP socket with asyncio send/receive.

    Carries discovery datagrams only; it does not build probes or parse
    responses. A pending ``receive()`` is cancelled the usual asyncio way,
    and fails with UdpClientClosedError when the client is closed under it.
    """

    def __init__(self, ip_address: str | None = None, port: int = 0):
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._closed = False
        self._pending = set()
        try:
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            if ip_address is not None:
                self._sock.bind((ip_address, port))
            self._sock.setblocking(False)
        except OSError:
            self._sock.close()
            raise

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def local_endpoint(self):
        self._ensure_open()
        return self._sock.getsockname()

    def _ensure_open(self):
        if self._closed:
            raise UdpClientClosedError("UDP client is closed")

    async def send(self, datagram: bytes, endpoint) -> int:
        self._ensure_open()
        loop = asyncio.get_running_loop()
        sent = await loop.sock_sendto(self._sock, datagram, endpoint)
        logger.debug("Sent %s bytes to %s", sent, endpoint)
        return sent

    async def receive(self, bufsize: int = 65535) -> UdpReceiveResult:
        self._ensure_open()
        loop = asyncio.get_running_loop()
        pending = loop.create_task(loop.sock_recvfrom(self._sock, bufsize))
        self._pending.add(pending)
        try:
            data, remote = await pending
        except asyncio.CancelledError:
            if self._closed and pending.cancelled():
                raise UdpClientClosedError("UDP client closed while receiving") from None
            raise
        finally:
            self._pending.discard(pending)
        logger.debug("Received %s bytes from %s", len(data), remote)
        return UdpReceiveResult(data, remote)

    def close(self) -> None:
        """Close the socket; a pending ``receive()`` fails with UdpClientClosedError."""
        if self._closed:
            return
        self._closed = True

        pending = [task for task in self._pending if not task.done()]
        for task in pending:
            task.cancel()

        loop = pending[0].get_loop() if pending else None
        if loop is not None and not loop.is_closed():
            # the cancellations unregister the fd before the socket goes away
            loop.call_soon(self._close_socket)
        else:
            self._close_socket()

    def _close_socket(self):
        try:
            self._sock.close()
        except OSError:
            logger.debug("UDP socket close failed", exc_info=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()
