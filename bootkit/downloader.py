"""
HTTP Downloader

Fetches remote content for configuration items and the release feed.
Bodies are streamed in chunks. Every socket a request opens is shut down
when the context is cancelled, so a stalled transfer stops right away.
There is no retry: a failed request fails the item.
"""

import http.client
import json
import logging
import socket
import ssl
import threading
import urllib.error
import urllib.request
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional
from urllib.parse import urlparse

from . import __version__
from .context import ExecutionContext
from .errors import DownloadError, HTTPStatusError, InvalidURLError, WriteError
from .urls import convert_to_raw_github_url

logger = logging.getLogger(__name__)

# Raised when a connection is refused, reset, truncated or shut down
TRANSFER_ERRORS = (urllib.error.URLError, http.client.HTTPException, OSError)


class ConnectionTracker:
    """Sockets opened for one request, shut down together on cancellation"""

    def __init__(self):
        # Reentrant: shutdown() can run from a SIGINT handler on the main thread
        self._lock = threading.RLock()
        self._sockets: List[socket.socket] = []
        self._closed = False

    def add(self, sock: socket.socket) -> None:
        with self._lock:
            self._sockets.append(sock)
            closed = self._closed
        if closed:
            _shutdown_socket(sock)

    def shutdown(self) -> None:
        with self._lock:
            self._closed = True
            sockets = list(self._sockets)
        for sock in sockets:
            _shutdown_socket(sock)


def _shutdown_socket(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        logger.debug(f"Socket already closed: {e}")


def _tracked(connection_class, tracker: ConnectionTracker):
    class TrackedConnection(connection_class):
        def connect(self):
            super().connect()
            tracker.add(self.sock)

    return TrackedConnection


class TrackingHTTPHandler(urllib.request.HTTPHandler):
    def __init__(self, tracker: ConnectionTracker):
        super().__init__()
        self._connection_class = _tracked(http.client.HTTPConnection, tracker)

    def http_open(self, req):
        return self.do_open(self._connection_class, req)


class TrackingHTTPSHandler(urllib.request.HTTPSHandler):
    def __init__(self, tracker: ConnectionTracker):
        self._ssl_context = ssl.create_default_context()
        super().__init__(context=self._ssl_context)
        self._connection_class = _tracked(http.client.HTTPSConnection, tracker)

    def https_open(self, req):
        return self.do_open(self._connection_class, req, context=self._ssl_context)


class Downloader:
    """Streams HTTP GET responses to files"""

    def __init__(self, chunk_size: int = 64 * 1024, user_agent: Optional[str] = None):
        self.chunk_size = chunk_size
        self.user_agent = user_agent or f"bootkit/{__version__}"

    def resolve_url(self, url: str) -> str:
        """
        Normalize a source URL and make sure it can be requested

        Raises:
            InvalidURLError: the URL is malformed or has no scheme
        """
        converted = convert_to_raw_github_url(url)
        try:
            parsed = urlparse(converted)
        except ValueError as e:
            raise InvalidURLError(f"invalid configuration URL: {e}") from e
        if not parsed.scheme:
            raise InvalidURLError(
                "URL scheme is missing. Please provide a complete URL including http:// or https://"
            )
        return converted

    def build_opener(self, tracker: ConnectionTracker) -> urllib.request.OpenerDirector:
        return urllib.request.build_opener(TrackingHTTPHandler(tracker), TrackingHTTPSHandler(tracker))

    @contextmanager
    def _open(self, url: str, context: ExecutionContext,
              accept: Optional[str] = None) -> Iterator[http.client.HTTPResponse]:
        """Open url and yield the 200 response; cancelling the context aborts the transfer"""
        # Read the time left first so a deadline passing now is seen by check()
        timeout = context.remaining()
        context.check()

        headers = {'User-Agent': self.user_agent}
        if accept:
            headers['Accept'] = accept
        request = urllib.request.Request(url, headers=headers)

        tracker = ConnectionTracker()
        release = context.on_cancel(tracker.shutdown)
        try:
            try:
                response = self.build_opener(tracker).open(request, timeout=timeout)
            except urllib.error.HTTPError as e:
                e.close()
                raise HTTPStatusError(url, e.code) from e
            except TRANSFER_ERRORS + (ValueError,) as e:
                context.check()
                raise DownloadError(f"failed to download configuration: {e}") from e

            with response:
                if response.status != 200:
                    raise HTTPStatusError(url, response.status)
                yield response
        finally:
            release()

    def _read(self, response: http.client.HTTPResponse, context: ExecutionContext,
              amount: Optional[int], url: str) -> bytes:
        try:
            data = response.read(amount)
        except TRANSFER_ERRORS as e:
            context.check()
            raise DownloadError(f"failed to download {url}: {e}") from e
        context.check()
        return data

    def fetch_to_file(self, url: str, target: str, context: ExecutionContext) -> int:
        """
        Download url and write the body to target

        Returns:
            Number of bytes written

        Raises:
            InvalidURLError, HTTPStatusError, DownloadError, WriteError,
            ContextCancelledError
        """
        resolved = self.resolve_url(url)
        logger.debug(f"⬇️  Downloading {resolved} -> {target}")

        written = 0
        with self._open(resolved, context) as response:
            try:
                out = open(target, 'wb')
            except OSError as e:
                raise WriteError(f"failed to create configuration file: {e}") from e

            with out:
                while True:
                    chunk = self._read(response, context, self.chunk_size, resolved)
                    if not chunk:
                        break
                    try:
                        out.write(chunk)
                    except OSError as e:
                        raise WriteError(f"failed to write configuration: {e}") from e
                    written += len(chunk)

        logger.debug(f"✅ Wrote {written} bytes to {target}")
        return written

    def fetch_json(self, url: str, context: ExecutionContext) -> Any:
        """GET a JSON document"""
        with self._open(url, context, accept='application/json') as response:
            body = self._read(response, context, None, url)
        try:
            return json.loads(body)
        except ValueError as e:
            raise DownloadError(f"failed to decode JSON from {url}: {e}") from e
