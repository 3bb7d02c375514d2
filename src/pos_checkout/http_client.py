from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import ApiError, TransportError

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Trace-ID"
RETRYABLE_METHODS = frozenset({"GET", "HEAD"})
# headers that change who is asking, and therefore what a GET may return
_IDENTITY_HEADERS = ("Authorization", "X-Company-ID")

JsonPayload = dict[str, Any] | list[Any] | None


@dataclass
class TraceContext:
    trace_id: str | None = None

    def ensure(self) -> str:
        if not self.trace_id:
            self.trace_id = str(uuid.uuid4())
        return self.trace_id

    def update_from_headers(self, headers: Mapping[str, str]) -> None:
        wanted = TRACE_HEADER.lower()
        for key, value in headers.items():
            if key.lower() == wanted and value:
                self.trace_id = value
                return

    def update_from_payload(self, payload: Mapping[str, object]) -> None:
        trace_id = payload.get("trace_id")
        if isinstance(trace_id, str) and trace_id:
            self.trace_id = trace_id


@dataclass
class LastOperation:
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


@dataclass
class ResponseCache:
    """Keeps decoded GET bodies for a few seconds.

    Catalog and campaign screens re-read the same lists on every keystroke;
    writes that change those lists drop matching entries explicitly.
    """

    ttl_seconds: float = 3.0
    _entries: dict[str, tuple[float, JsonPayload]] = field(default_factory=dict)

    @staticmethod
    def key_for(url: str, headers: Mapping[str, str], params: Mapping[str, Any] | None) -> str:
        identity = {name: headers[name] for name in _IDENTITY_HEADERS if name in headers}
        return json.dumps({"url": url, "identity": identity, "params": dict(params or {})}, sort_keys=True, default=str)

    def get(self, key: str) -> JsonPayload:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, payload = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return payload

    def put(self, key: str, payload: JsonPayload) -> None:
        self._entries[key] = (time.monotonic() + self.ttl_seconds, payload)

    def drop_matching(self, fragments: Iterable[str]) -> int:
        fragments = tuple(fragments)
        stale = [key for key in self._entries if any(fragment in key for fragment in fragments)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def pooled_session(max_connections: int) -> requests.Session:
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=max_connections, pool_maxsize=max_connections)
    for scheme in ("http://", "https://"):
        session.mount(scheme, adapter)
    return session


@dataclass
class HttpClient:
    config: ClientConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    cache: ResponseCache = field(default_factory=ResponseCache)
    enable_get_cache: bool = True
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = pooled_session(self.config.max_connections)
        if self.trace is None:
            self.trace = TraceContext()

    def url_for(self, path: str) -> str:
        return urljoin(self.config.api_base_url.rstrip("/") + "/", path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        operation: str = "unknown",
        use_get_cache: bool = True,
        invalidate_paths: list[str] | None = None,
    ) -> JsonPayload:
        """Send one request and return the decoded JSON body.

        Only GET and HEAD are retried, with exponential backoff, on transport
        errors and 5xx answers. A POST goes out exactly once, so a sale is
        never duplicated by this layer.
        """
        verb = method.upper()
        trace_id = self.trace.ensure()
        outgoing = {"Accept": "application/json", **(headers or {}), TRACE_HEADER: trace_id}
        url = self.url_for(path)

        cache_key: str | None = None
        if verb == "GET" and use_get_cache and self.enable_get_cache:
            cache_key = ResponseCache.key_for(url, outgoing, params)
            cached = self.cache.get(cache_key)
            if cached is not None:
                self.last_operation = LastOperation(operation, 0, "success(cache)", self.trace.trace_id)
                return cached

        started = time.monotonic()
        try:
            response = self._send(verb, url, outgoing, json_body, params)
        except requests.RequestException as exc:
            self._finish(operation, started, "transport_error")
            logger.warning("%s %s failed: %s", verb, path, type(exc).__name__)
            raise TransportError(
                code="TRANSPORT_ERROR",
                message=str(exc) or type(exc).__name__,
                details={"type": type(exc).__name__},
                trace_id=self.trace.trace_id,
                status_code=0,
            ) from exc

        self.trace.update_from_headers(response.headers)
        if not response.ok:
            error = self._error_from(response)
            self._finish(operation, started, "error")
            logger.info("%s %s -> HTTP %s", verb, path, response.status_code)
            raise error

        if verb != "GET" and invalidate_paths:
            self.cache.drop_matching(invalidate_paths)
        body = response.json() if response.content else None
        if cache_key is not None and body is not None:
            self.cache.put(cache_key, body)
        self._finish(operation, started, "success")
        return body

    def clear_cache(self) -> None:
        self.cache.clear()

    def _send(
        self,
        verb: str,
        url: str,
        headers: dict[str, str],
        json_body: dict[str, Any] | None,
        params: dict[str, Any] | None,
    ) -> requests.Response:
        attempts = self.config.retries + 1 if verb in RETRYABLE_METHODS else 1
        for attempt in range(1, attempts + 1):
            final = attempt == attempts
            try:
                response = self.session.request(
                    verb,
                    url,
                    headers=headers,
                    json=json_body,
                    params=params,
                    timeout=self.config.timeout,
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException:
                if final:
                    raise
            else:
                if response.status_code < 500 or final:
                    return response
            delay = self.config.retry_backoff_seconds * 2 ** (attempt - 1)
            logger.debug("retrying %s %s in %.2fs (%d/%d)", verb, url, delay, attempt + 1, attempts)
            time.sleep(delay)
        raise AssertionError("retry loop ended without a response")

    def _error_from(self, response: requests.Response) -> ApiError:
        try:
            payload: Any = response.json()
        except ValueError:
            payload = {"message": response.text}
        if not isinstance(payload, dict):
            payload = {"message": str(payload)}
        self.trace.update_from_payload(payload)
        return map_error(response.status_code, payload, self.trace.trace_id)

    def _finish(self, operation: str, started: float, result: str) -> None:
        self.last_operation = LastOperation(
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=self.trace.trace_id,
        )
