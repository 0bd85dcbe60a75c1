import urllib3
from threading import Lock

from flask import current_app


_http_client = None
_http_timeout = None
_http_lock = Lock()


def get_http_client():
    """Shared pool for outbound metadata lookups, bounded by EMBED_FETCH_TIMEOUT."""
    global _http_client, _http_timeout

    timeout_seconds = float(current_app.config.get("EMBED_FETCH_TIMEOUT", 5))
    with _http_lock:
        if _http_client is not None and _http_timeout == timeout_seconds:
            return _http_client

        _http_client = urllib3.PoolManager(
            timeout=urllib3.Timeout(connect=timeout_seconds, read=timeout_seconds),
            retries=False,
            headers={"User-Agent": "socialfeed/1.0"},
        )
        _http_timeout = timeout_seconds
        return _http_client
