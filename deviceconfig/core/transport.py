"""
HTTP transport helpers for the management API.

Uses ``http.client`` with persistent connection pooling (HTTP/1.1 keep-alive)
so that the parallel lookups of a config resolution share sockets per host.
"""

from __future__ import annotations

import http.client
import json
import logging
import threading
import urllib.parse
from typing import Any

from ..errors import ApiError

logger = logging.getLogger("deviceconfig")

_pool_lock = threading.Lock()
_pool: dict[tuple[str, str, int, int], http.client.HTTPConnection] = {}

_TIMEOUT = 15.0


def _split(url: str) -> tuple[tuple[str, str, int], str]:
    parsed = urllib.parse.urlparse(url)
    scheme = parsed.scheme or "http"
    host   = parsed.hostname or "localhost"
    port   = parsed.port or (443 if scheme == "https" else 80)
    path   = parsed.path or "/"
    if parsed.query:
        path += "?" + parsed.query
    return (scheme, host, port), path


def _get_conn(url: str) -> tuple[http.client.HTTPConnection, str]:
    """Return a keep-alive connection for the calling thread and the path of *url*.

    ``http.client`` connections are not thread-safe, so the pool is keyed by
    thread as well as by origin.
    """
    origin, path = _split(url)
    scheme, host, port = origin
    key = (*origin, threading.get_ident())
    with _pool_lock:
        conn = _pool.get(key)
        if conn is None:
            if scheme == "https":
                conn = http.client.HTTPSConnection(host, port, timeout=_TIMEOUT)
            else:
                conn = http.client.HTTPConnection(host, port, timeout=_TIMEOUT)
            _pool[key] = conn
    return conn, path


def _drop_conn(url: str) -> None:
    origin, _ = _split(url)
    with _pool_lock:
        conn = _pool.pop((*origin, threading.get_ident()), None)
    if conn is not None:
        conn.close()


def prune_pool() -> int:
    """Close pooled connections whose owning thread has exited.

    Returns the number of connections closed.
    """
    alive = {t.ident for t in threading.enumerate()}
    with _pool_lock:
        stale = [key for key in _pool if key[3] not in alive]
        conns = [_pool.pop(key) for key in stale]
    for conn in conns:
        conn.close()
    return len(conns)


def _request(
    method:  str,
    url:     str,
    body:    bytes | None = None,
    headers: dict | None = None,
) -> tuple[int, bytes]:
    """Execute an HTTP request with connection reuse and one retry on broken pipe."""
    hdrs = dict(headers or {})
    hdrs.setdefault("Connection", "keep-alive")
    hdrs.setdefault("Accept", "application/json")
    if body is not None:
        hdrs.setdefault("Content-Type", "application/json")

    for attempt in range(2):
        try:
            conn, path = _get_conn(url)
            conn.request(method, path, body=body, headers=hdrs)
            resp = conn.getresponse()
            return resp.status, resp.read()
        except (ConnectionError, http.client.RemoteDisconnected, OSError) as e:
            _drop_conn(url)
            if attempt == 0:
                logger.warning("%s %s: connection lost (%s), retrying", method, url, e)
                continue
            raise ApiError(f"{method} {url} failed: {e}") from e

    raise ApiError(f"{method} {url} failed: connection failed")


def _decode(data: bytes) -> Any:
    """Parse a JSON body; plain-text bodies are returned as a string."""
    text = data.decode("utf-8")
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def get_json(
    url:     str,
    headers: dict | None = None,
    params:  dict | None = None,
) -> Any:
    """GET *url* and return the parsed body. Raises ApiError on HTTP error."""
    if params:
        url += "?" + urllib.parse.urlencode(
            {k: v for k, v in params.items() if v is not None},
            quote_via=urllib.parse.quote,
        )
    status, data = _request("GET", url, headers=headers)
    if status >= 400:
        raise ApiError(f"GET {url} failed (HTTP {status}): {data.decode()}", status=status)
    return _decode(data)


def post_json(
    url:     str,
    body:    dict | None = None,
    headers: dict | None = None,
) -> Any:
    """POST JSON *body* to *url* and return the parsed body. Raises ApiError on error."""
    status, data = _request("POST", url, json.dumps(body or {}).encode(), headers)
    if status >= 400:
        raise ApiError(f"POST {url} failed (HTTP {status}): {data.decode()}", status=status)
    return _decode(data)
