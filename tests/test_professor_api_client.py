import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from courseintel.collectors import professor_api_client
from courseintel.collectors.professor_api_client import ProfessorApiClient, ProfessorApiError


class FakeProfessorApi:
    """Routes mimicking the Enhanced Professor API, with per-test behavior"""

    def __init__(self):
        self.requests = []
        self.health_status = 200
        self.delay = 0.0

    async def professor(self, request: web.Request) -> web.Response:
        self.requests.append(request)
        name = request.match_info["name"]
        if name == "Nobody":
            return web.json_response({"error": "not found"}, status=404)
        if name == "Broken":
            return web.Response(text="<html>oops</html>", content_type="text/html")
        if self.delay:
            await asyncio.sleep(self.delay)
        return web.json_response({"rating": 4.1, "name": name})

    async def search(self, request: web.Request) -> web.Response:
        self.requests.append(request)
        return web.json_response({"professors": [], "total_results": 0, "params": dict(request.query)})

    async def health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"}, status=self.health_status)


@pytest.fixture
def fake_api() -> FakeProfessorApi:
    return FakeProfessorApi()


@pytest_asyncio.fixture
async def api_client(fake_api):
    app = web.Application()
    app.router.add_get("/api/professor/{name}", fake_api.professor)
    app.router.add_get("/api/search", fake_api.search)
    app.router.add_get("/api/health", fake_api.health)

    server = TestServer(app)
    await server.start_server()
    client = ProfessorApiClient(str(server.make_url("/")))
    yield client
    await client.close()
    await server.close()


@pytest.mark.asyncio
async def test_fetch_professor_quotes_name(api_client, fake_api):
    data = await api_client.fetch_professor("Jane Doe")

    assert data == {"rating": 4.1, "name": "Jane Doe"}
    request = fake_api.requests[0]
    assert request.raw_path.endswith("/api/professor/Jane%20Doe")
    assert request.headers["User-Agent"] == professor_api_client.USER_AGENT


@pytest.mark.asyncio
async def test_non_2xx_raises_with_status(api_client):
    with pytest.raises(ProfessorApiError) as exc_info:
        await api_client.fetch_professor("Nobody")
    assert exc_info.value.status == 404


@pytest.mark.asyncio
async def test_invalid_json_raises(api_client):
    with pytest.raises(ProfessorApiError, match="Invalid JSON"):
        await api_client.fetch_professor("Broken")


@pytest.mark.asyncio
async def test_slow_response_times_out(api_client, fake_api, monkeypatch):
    monkeypatch.setattr(professor_api_client, "PROFESSOR_TIMEOUT", 0.1)
    fake_api.delay = 1.0

    with pytest.raises(ProfessorApiError, match="timed out") as exc_info:
        await api_client.fetch_professor("Jane Doe")
    assert exc_info.value.status is None


@pytest.mark.asyncio
async def test_search_passes_query_params(api_client):
    data = await api_client.search_professors({"q": "alex", "department": "CS", "min_rating": "0"})
    assert data["params"] == {"q": "alex", "department": "CS", "min_rating": "0"}


@pytest.mark.asyncio
async def test_ping_reports_health_status(api_client, fake_api):
    assert await api_client.ping() is True

    fake_api.health_status = 503
    assert await api_client.ping() is False


@pytest.mark.asyncio
async def test_unreachable_service_raises():
    server = TestServer(web.Application())
    await server.start_server()
    base_url = str(server.make_url("/"))
    await server.close()

    client = ProfessorApiClient(base_url)
    try:
        with pytest.raises(ProfessorApiError):
            await client.fetch_professor("Jane Doe")
        with pytest.raises(ProfessorApiError):
            await client.ping()
    finally:
        await client.close()
