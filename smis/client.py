"""Async API client with retrying, de-duplicated and cached reads."""
import asyncio
import hashlib
import json
import logging
import re
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional
from urllib.parse import urlencode

import httpx

from .core.cache import DEFAULT_TTL, TTLCache

logger = logging.getLogger(__name__)

# In-flight fetches shared by every OptimizedFetcher, keyed by request key
_pending_requests: Dict[str, asyncio.Task] = {}

_MISSING = object()


def pending_request_count() -> int:
    return len(_pending_requests)


def is_retryable(error: BaseException) -> bool:
    """Only server errors are worth another attempt"""
    return isinstance(error, httpx.HTTPStatusError) and error.response.status_code >= 500


class OptimizedFetcher:
    """Wrap an async fetcher with retry, backoff and request de-duplication.

    A failed call is retried up to ``retries`` more times when the failure is
    an HTTP 5xx, sleeping ``retry_delay * 2**attempt`` seconds between
    attempts. Concurrent calls that derive the same request key share one
    in-flight task. ``abort()`` cancels the task started by the latest call.
    """

    def __init__(
        self,
        key: str,
        fetcher: Callable[..., Awaitable[Any]],
        retries: int = 3,
        retry_delay: float = 1.0,
        dedupe: bool = True,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.key = key
        self.fetcher = fetcher
        self.retries = retries
        self.retry_delay = retry_delay
        self.dedupe = dedupe
        self.on_success = on_success
        self.on_error = on_error
        self.retry_count = 0
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    def request_key(self, *args, **kwargs) -> str:
        payload = list(args) if not kwargs else [list(args), kwargs]
        return f"{self.key}-{json.dumps(payload, sort_keys=True, default=str)}"

    async def __call__(self, *args, **kwargs) -> Any:
        request_key = self.request_key(*args, **kwargs)

        task = _pending_requests.get(request_key) if self.dedupe else None
        if task is None:
            task = asyncio.ensure_future(self._execute(args, kwargs))
            if self.dedupe:
                _pending_requests[request_key] = task
                task.add_done_callback(lambda done: self._release(request_key, done))
        else:
            logger.debug(f"Joining in-flight request {request_key}")

        self._task = task
        # shield keeps a shared task alive when one of its waiters is cancelled
        return await asyncio.shield(task)

    async def _execute(self, args, kwargs) -> Any:
        attempt = 0
        while True:
            try:
                result = await self.fetcher(*args, **kwargs)
            except Exception as e:
                if attempt < self.retries and is_retryable(e):
                    delay = self.retry_delay * 2 ** attempt
                    logger.warning(f"{self.key} failed with {e.response.status_code}, retrying in {delay:.2f}s")
                    await self._sleep(delay)
                    attempt += 1
                    continue

                self.retry_count = attempt
                if self.on_error:
                    self.on_error(e)
                raise

            self.retry_count = 0
            if self.on_success:
                self.on_success(result)
            return result

    @staticmethod
    def _release(request_key: str, task: asyncio.Task):
        if _pending_requests.get(request_key) is task:
            del _pending_requests[request_key]

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def abort(self) -> bool:
        """Cancel the latest in-flight request; returns False if nothing was running"""
        if not self.in_flight:
            return False
        self._task.cancel()
        return True

    def close(self):
        self.abort()
        self._task = None


class SMISApiError(httpx.HTTPStatusError):
    """Non-2xx response, carrying the message from the error envelope"""

    def __init__(self, response: httpx.Response):
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        self.message = body.get("message") or response.reason_phrase
        self.details = body.get("details") or body.get("errors")
        super().__init__(f"{response.status_code} {self.message}", request=response.request, response=response)

    @property
    def status_code(self) -> int:
        return self.response.status_code


class SMISClient:
    """Client for the SMIS REST API.

    Reads go through an OptimizedFetcher and land in a TTLCache; any write
    drops cached reads under the same ``/api/<resource>`` root, plus any
    extra patterns the caller names. In-flight reads are only shared between
    clients holding the same token, and a read that overlaps an invalidation
    is returned but not cached.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        cache_ttl: float = DEFAULT_TTL,
        retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.base_url = base_url
        self.cache = TTLCache(cache_ttl)
        self._generation = 0
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self._fetcher = OptimizedFetcher(
            f"{base_url}:GET", self._fetch, retries=retries, retry_delay=retry_delay, sleep=sleep
        )
        self.token = token

    @property
    def token(self) -> Optional[str]:
        return self._token

    @token.setter
    def token(self, value: Optional[str]):
        self._token = value
        identity = hashlib.sha256(value.encode()).hexdigest()[:16] if value else "anonymous"
        self._fetcher.key = f"{self.base_url}:GET:{identity}"

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    @staticmethod
    def cache_key(path: str, params: Optional[Dict[str, Any]] = None) -> str:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        if not query:
            return f"GET {path}"
        return f"GET {path}?{urlencode(sorted(query.items()))}"

    @staticmethod
    def _unwrap(response: httpx.Response) -> Any:
        if response.is_error:
            raise SMISApiError(response)
        body = response.json()
        if isinstance(body, dict) and "success" in body:
            return body.get("data")
        return body

    async def _fetch(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self._http.get(path, params=params, headers=self._headers())
        return self._unwrap(response)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None,
                  use_cache: bool = True, ttl: Optional[float] = None) -> Any:
        params = {k: v for k, v in (params or {}).items() if v is not None} or None
        key = self.cache_key(path, params)
        if use_cache:
            cached = self.cache.get(key, _MISSING)
            if cached is not _MISSING:
                return cached

        generation = self._generation
        data = await self._fetcher(path, params)
        if use_cache and generation == self._generation:
            self.cache.set(key, data, ttl)
        return data

    async def _write(self, method: str, path: str, json_body: Any = None,
                     params: Optional[Dict[str, Any]] = None, invalidate: Iterable[str] = ()) -> Any:
        response = await self._http.request(method, path, json=json_body, params=params, headers=self._headers())
        data = self._unwrap(response)
        self.invalidate(path, *invalidate)
        return data

    async def post(self, path: str, json: Any = None, **kwargs) -> Any:
        return await self._write("POST", path, json, **kwargs)

    async def put(self, path: str, json: Any = None, **kwargs) -> Any:
        return await self._write("PUT", path, json, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self._write("DELETE", path, **kwargs)

    def invalidate(self, path: str, *patterns: str) -> int:
        """Drop cached reads under the path's resource root and any extra regex patterns"""
        self._generation += 1
        parts = [part for part in path.split("/") if part]
        root = "/" + "/".join(parts[:2])
        removed = self.cache.invalidate_pattern(f"^GET {re.escape(root)}(/|\\?|$)")
        for pattern in patterns:
            removed += self.cache.invalidate_pattern(pattern)
        return removed

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        data = await self.post("/api/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        self.clear_cache()
        return data["user"]

    async def logout(self):
        if self.token:
            await self.post("/api/auth/logout")
        self.token = None
        self.clear_cache()

    def clear_cache(self):
        self._generation += 1
        self.cache.clear()

    def abort(self) -> bool:
        return self._fetcher.abort()

    async def close(self):
        self._fetcher.close()
        self.clear_cache()
        await self._http.aclose()
