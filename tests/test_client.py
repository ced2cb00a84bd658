import asyncio

import httpx
import pytest

from smis import client as client_module
from smis.client import OptimizedFetcher, SMISApiError, SMISClient, is_retryable, pending_request_count


def envelope(data=None, message=None, status_code=200, **extra):
    body = {"success": status_code < 400, "data": data, **extra}
    if message:
        body["message"] = message
    return httpx.Response(status_code, json=body)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture(autouse=True)
def clean_registry():
    yield
    client_module._pending_requests.clear()


@pytest.fixture
def sleep():
    return RecordingSleep()


def make_client(handler, **kwargs) -> SMISClient:
    return SMISClient(base_url="http://smis.test", transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_get_unwraps_envelope_and_caches():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return envelope({"id": 1, "course_code": "CS101"})

    async with make_client(handler) as api:
        first = await api.get("/api/courses/1")
        second = await api.get("/api/courses/1")
        fresh = await api.get("/api/courses/1", use_cache=False)

    assert first == second == fresh == {"id": 1, "course_code": "CS101"}
    assert calls == ["/api/courses/1", "/api/courses/1"]


def test_cache_key_ignores_param_order_and_none():
    assert SMISClient.cache_key("/api/admin/users", {"role": "teacher", "page": 2, "search": None}) == \
        SMISClient.cache_key("/api/admin/users", {"page": 2, "role": "teacher"}) == \
        "GET /api/admin/users?page=2&role=teacher"
    assert SMISClient.cache_key("/api/admin/stats") == "GET /api/admin/stats"


@pytest.mark.asyncio
async def test_write_invalidates_cached_reads_of_the_resource():
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path))
        return envelope({"ok": True})

    async with make_client(handler) as api:
        await api.get("/api/admin/users", params={"role": "teacher"})
        await api.get("/api/admin/calendar")
        await api.get("/api/courses/1")

        await api.post("/api/admin/users", json={"email": "new@school.edu"})

        assert api.cache.keys() == ["GET /api/courses/1"]

        await api.get("/api/admin/users", params={"role": "teacher"})

    assert calls.count(("GET", "/api/admin/users")) == 2


@pytest.mark.asyncio
async def test_write_with_extra_invalidation_patterns():
    def handler(request):
        return envelope({"ok": True})

    async with make_client(handler) as api:
        await api.get("/api/courses/1")
        await api.get("/api/classes/")

        await api.post(
            "/api/hod/courses/manage",
            json={"action": "edit", "course_data": {"id": 1}},
            invalidate=[r"^GET /api/courses/"],
        )

        assert api.cache.keys() == ["GET /api/classes/"]


@pytest.mark.asyncio
async def test_server_errors_are_retried_with_backoff(sleep):
    responses = [envelope(message="Busy", status_code=503), envelope(message="Busy", status_code=502), envelope([1, 2])]

    def handler(request):
        return responses.pop(0)

    async with make_client(handler, retries=3, retry_delay=0.5, sleep=sleep) as api:
        data = await api.get("/api/activities/recent")

    assert data == [1, 2]
    assert sleep.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_gives_up_after_the_last_retry(sleep):
    calls = []

    def handler(request):
        calls.append(request)
        return envelope(message="Internal server error", status_code=500)

    async with make_client(handler, retries=2, retry_delay=1.0, sleep=sleep) as api:
        with pytest.raises(SMISApiError) as exc_info:
            await api.get("/api/hod/stats")

        assert not api.cache.has("GET /api/hod/stats")

    assert len(calls) == 3
    assert sleep.delays == [1.0, 2.0]
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Internal server error"


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(sleep):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(
            400,
            json={"success": False, "message": "Invalid fields: role", "details": {"error": "Validation Error"}},
        )

    async with make_client(handler, sleep=sleep) as api:
        with pytest.raises(SMISApiError) as exc_info:
            await api.get("/api/students/profile")

    assert len(calls) == 1
    assert sleep.delays == []
    assert exc_info.value.message == "Invalid fields: role"
    assert exc_info.value.details == {"error": "Validation Error"}


@pytest.mark.asyncio
async def test_error_without_json_body():
    def handler(request):
        return httpx.Response(502, text="<html>Bad Gateway</html>")

    async with make_client(handler, retries=0) as api:
        with pytest.raises(SMISApiError) as exc_info:
            await api.get("/health")

    assert exc_info.value.message == "Bad Gateway"
    assert exc_info.value.details is None


@pytest.mark.asyncio
async def test_concurrent_identical_reads_share_one_request():
    calls = []
    release = asyncio.Event()

    async def handler(request):
        calls.append(request.url.path)
        await release.wait()
        return envelope({"id": 7})

    async with make_client(handler) as api:
        tasks = [asyncio.ensure_future(api.get("/api/classes/7")) for _ in range(3)]
        await asyncio.sleep(0.01)
        assert pending_request_count() == 1

        release.set()
        results = await asyncio.gather(*tasks)

    assert results == [{"id": 7}] * 3
    assert calls == ["/api/classes/7"]
    assert pending_request_count() == 0


@pytest.mark.asyncio
async def test_reads_are_not_shared_across_tokens():
    async def handler(request):
        await asyncio.sleep(0.05)
        return envelope({"me": request.headers.get("Authorization")})

    transport = httpx.MockTransport(handler)
    alice = SMISClient(base_url="http://smis.test", token="alice", transport=transport)
    bob = SMISClient(base_url="http://smis.test", token="bob", transport=transport)

    async with alice, bob:
        results = await asyncio.gather(alice.get("/api/students/profile"), bob.get("/api/students/profile"))

    assert results == [{"me": "Bearer alice"}, {"me": "Bearer bob"}]


@pytest.mark.asyncio
async def test_changing_token_changes_the_request_key():
    async with make_client(lambda request: envelope()) as api:
        anonymous = api._fetcher.request_key("/api/auth/profile")
        api.token = "abc.def.ghi"
        signed_in = api._fetcher.request_key("/api/auth/profile")

    assert anonymous != signed_in
    assert "abc.def.ghi" not in signed_in


@pytest.mark.asyncio
async def test_cached_null_is_not_refetched():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return envelope(None)

    async with make_client(handler) as api:
        first = await api.get("/api/notifications/latest")
        second = await api.get("/api/notifications/latest")

    assert first is None and second is None
    assert calls == ["/api/notifications/latest"]


@pytest.mark.asyncio
async def test_write_during_read_keeps_stale_data_out_of_cache():
    calls = []
    release = asyncio.Event()

    async def handler(request):
        calls.append(request.method)
        if request.method == "GET":
            await release.wait()
            return envelope({"name": "Algorithms"})
        return envelope({"ok": True})

    async with make_client(handler) as api:
        read = asyncio.ensure_future(api.get("/api/courses/1"))
        await asyncio.sleep(0.01)

        await api.put("/api/courses/1", json={"name": "Advanced Algorithms"})
        release.set()

        assert await read == {"name": "Algorithms"}
        assert api.cache.keys() == []

        await api.get("/api/courses/1")
        assert api.cache.keys() == ["GET /api/courses/1"]

    assert calls == ["GET", "PUT", "GET"]


@pytest.mark.asyncio
async def test_abort_cancels_the_in_flight_read():
    started = asyncio.Event()

    async def handler(request):
        started.set()
        await asyncio.Event().wait()

    async with make_client(handler) as api:
        assert api.abort() is False

        task = asyncio.ensure_future(api.get("/api/hod/stats"))
        await started.wait()

        assert api.abort() is True
        with pytest.raises(asyncio.CancelledError):
            await task
        assert pending_request_count() == 0


@pytest.mark.asyncio
async def test_login_stores_token_and_logout_clears_it():
    seen = []

    def handler(request):
        seen.append(request.headers.get("Authorization"))
        if request.url.path == "/api/auth/login":
            return envelope({"token": "abc.def.ghi", "user": {"id": 3, "role": "teacher"}})
        return envelope({"id": 3})

    async with make_client(handler) as api:
        await api.get("/api/auth/profile")
        user = await api.login("teacher@school.edu", "Password123!")
        assert api.cache.size() == 0

        await api.get("/api/auth/profile")
        await api.logout()

    assert user == {"id": 3, "role": "teacher"}
    assert seen == [None, None, "Bearer abc.def.ghi", "Bearer abc.def.ghi"]
    assert api.token is None


@pytest.mark.asyncio
async def test_fetcher_callbacks_and_retry_count(sleep):
    attempts = []
    successes = []

    async def flaky(value):
        attempts.append(value)
        if len(attempts) < 3:
            request = httpx.Request("GET", "http://smis.test/flaky")
            raise httpx.HTTPStatusError("boom", request=request, response=httpx.Response(500, request=request))
        return value * 2

    fetcher = OptimizedFetcher("flaky", flaky, retries=3, retry_delay=0.1, on_success=successes.append, sleep=sleep)

    assert await fetcher(21) == 42
    assert successes == [42]
    assert fetcher.retry_count == 0
    assert sleep.delays == pytest.approx([0.1, 0.2])


@pytest.mark.asyncio
async def test_fetcher_does_not_retry_other_errors(sleep):
    errors = []

    async def broken():
        raise ValueError("bad payload")

    fetcher = OptimizedFetcher("broken", broken, on_error=errors.append, sleep=sleep)

    with pytest.raises(ValueError):
        await fetcher()

    assert len(errors) == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_fetcher_without_dedupe_runs_every_call():
    calls = []

    async def fetch(key):
        calls.append(key)
        await asyncio.sleep(0)
        return key

    fetcher = OptimizedFetcher("plain", fetch, dedupe=False)
    await asyncio.gather(fetcher("a"), fetcher("a"))

    assert calls == ["a", "a"]


def test_request_key_is_order_independent():
    fetcher = OptimizedFetcher("users", None)

    assert fetcher.request_key("/api/admin/users", page=1, role="hod") == \
        fetcher.request_key("/api/admin/users", role="hod", page=1)
    assert fetcher.request_key(1) != fetcher.request_key(2)


def test_is_retryable():
    request = httpx.Request("GET", "http://smis.test/")

    def status_error(code):
        return httpx.HTTPStatusError("x", request=request, response=httpx.Response(code, request=request))

    assert is_retryable(status_error(503))
    assert not is_retryable(status_error(429))
    assert not is_retryable(httpx.ConnectError("down"))
