"""
HTTP tests for the public website API with the CMS mocked out
"""
import json

import httpx
import pytest

from config.settings import Settings
from utils.rate_limit import MemoryRateLimitStore, RateLimiter, WEBSITE_RATE_LIMITS
from website import create_site_app

BOOKING_FORM = {
    "name": "  Grace <b>Hopper</b> ",
    "email": "Grace@Example.com",
    "date": "2030-01-07",
    "time": "10:00",
    "duration": "45",
    "notes": "<script>x</script>Line one\r\nLine two",
}


class FakeCms:
    """httpx.MockTransport handler that records requests and replays canned responses"""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": "Not Found"})
        route = self.routes[key]
        if isinstance(route, Exception):
            raise route
        status, payload = route
        return httpx.Response(status, json=payload)

    def bodies(self, path):
        return [json.loads(r.content) for r in self.requests if r.url.path == path]


def build_client(fake_cms, api_key="site-key", **overrides):
    settings = Settings(node_env="development", cms_url="http://cms.test", cms_api_key=api_key, **overrides)
    app = create_site_app(
        settings=settings,
        limiter=RateLimiter(WEBSITE_RATE_LIMITS, MemoryRateLimitStore()),
        transport=httpx.MockTransport(fake_cms),
    )
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://site.test")


@pytest.mark.asyncio
async def test_projects_list_maps_cms_page():
    fake = FakeCms({("GET", "/api/v1/projects/public"): (200, {
        "data": [{"id": 1, "title": "One"}],
        "meta": {"page": 2, "pageSize": 1, "total": 3, "totalPages": 3},
    })})

    async with build_client(fake) as client:
        response = await client.get("/api/projects", params={"page": 2, "limit": 1})

    assert response.status_code == 200
    assert response.headers["Cache-Control"] == "public, s-maxage=60, stale-while-revalidate=120"
    assert response.json() == {
        "projects": [{"id": 1, "title": "One"}],
        "pagination": {"page": 2, "limit": 1, "total": 3, "totalPages": 3, "hasNext": True, "hasPrev": True},
    }
    assert fake.requests[0].url.params["pageSize"] == "1"
    assert "x-cms-api-key" in fake.requests[0].headers


@pytest.mark.asyncio
async def test_projects_list_upstream_failure_is_502():
    fake = FakeCms({("GET", "/api/v1/projects/public"): (500, {"message": "Internal Server Error"})})

    async with build_client(fake) as client:
        response = await client.get("/api/projects")

    assert response.status_code == 502
    assert response.json()["projects"] == []


@pytest.mark.asyncio
async def test_featured_projects_degrade_gracefully():
    fake = FakeCms({("GET", "/api/v1/projects/featured"): httpx.ConnectError("refused")})

    async with build_client(fake) as client:
        response = await client.get("/api/projects/featured")

    assert response.status_code == 200
    assert response.json() == {"projects": [], "total": 0, "error": "Failed to fetch featured projects"}


@pytest.mark.asyncio
async def test_featured_projects_without_key_never_call_cms():
    fake = FakeCms()

    async with build_client(fake, api_key=None) as client:
        response = await client.get("/api/projects/featured")

    assert response.json()["projects"] == []
    assert fake.requests == []


@pytest.mark.asyncio
async def test_featured_projects():
    fake = FakeCms({("GET", "/api/v1/projects/featured"): (200, {"data": [{"id": 4}], "meta": {"total": 1}})})

    async with build_client(fake) as client:
        response = await client.get("/api/projects/featured")

    assert response.json() == {"projects": [{"id": 4}], "total": 1}


@pytest.mark.asyncio
async def test_project_detail_is_sanitized():
    fake = FakeCms({("GET", "/api/v2/projects/5"): (200, {"data": {
        "id": 5,
        "title": "Five",
        "detailed_content": '<p onclick="steal()">Hi</p><script>alert(1)</script>',
    }})})

    async with build_client(fake) as client:
        response = await client.get("/api/projects/5")

    project = response.json()["project"]
    assert project["technologies"] == []
    assert "<script>" not in project["detailed_content"]
    assert "onclick" not in project["detailed_content"]
    assert "Hi" in project["detailed_content"]


@pytest.mark.asyncio
async def test_project_detail_404_passthrough():
    async with build_client(FakeCms()) as client:
        response = await client.get("/api/projects/77")

    assert response.status_code == 404
    assert response.json() == {"error": "Project not found"}


@pytest.mark.asyncio
async def test_contact_forwards_and_tracks():
    fake = FakeCms({
        ("POST", "/api/v2/messages"): (201, {"data": {"id": 12}}),
        ("POST", "/api/v2/analytics/track"): (200, {"success": True, "eventId": 1}),
    })

    async with build_client(fake) as client:
        response = await client.post("/api/contact", json={
            "name": "Ada", "email": "ada@example.com", "message": "Hello",
        })

    assert response.status_code == 200
    assert response.json()["messageId"] == 12
    assert fake.bodies("/api/v2/messages")[0]["subject"] == "Contact Form Submission"
    assert fake.bodies("/api/v2/analytics/track")[0]["event_type"] == "contact_form_submission"


@pytest.mark.asyncio
async def test_contact_validation():
    async with build_client(FakeCms()) as client:
        missing = await client.post("/api/contact", json={"name": "Ada"})
        bad_email = await client.post("/api/contact", json={"name": "Ada", "email": "ada", "message": "Hi"})

    assert missing.status_code == 400
    assert missing.json() == {"success": False, "error": "Name, email, and message are required"}
    assert bad_email.json()["error"] == "Please provide a valid email address"


@pytest.mark.asyncio
async def test_analytics_always_succeeds():
    fake = FakeCms({("POST", "/api/v2/analytics/track"): (500, {"error": "boom"})})

    async with build_client(fake) as client:
        response = await client.post("/api/analytics", json={"event": "page_view", "page": "/"})

    assert response.json() == {"success": True}
    assert fake.bodies("/api/v2/analytics/track")[0]["page_url"] == "/"


@pytest.mark.asyncio
async def test_booking_is_sanitized_and_forwarded():
    fake = FakeCms({("POST", "/api/v2/bookings"): (201, {"data": {"id": 9, "status": "confirmed"}})})

    async with build_client(fake) as client:
        response = await client.post("/api/bookings", json=BOOKING_FORM)

    assert response.status_code == 201
    assert response.json() == {"data": {"id": 9, "status": "confirmed"}}
    sent = fake.bodies("/api/v2/bookings")[0]
    assert sent["name"] == "Grace Hopper"
    assert sent["email"] == "grace@example.com"
    assert sent["duration"] == 45
    assert sent["meeting_type"] == "45min"
    assert sent["notes"] == "xLine one\nLine two"
    assert sent["phone"] is None
    assert fake.requests[0].headers["x-cms-api-key"] == "site-key"


@pytest.mark.asyncio
async def test_booking_validation_details():
    async with build_client(FakeCms()) as client:
        response = await client.post("/api/bookings", json={
            "name": "G", "email": "nope", "date": "07/01/2030", "time": "24:00", "duration": 300,
        })

    body = response.json()
    assert response.status_code == 400
    assert body["error"] == "Validation failed"
    assert [d["field"] for d in body["details"]] == ["name", "email", "date", "time", "duration"]


@pytest.mark.asyncio
async def test_booking_without_key_is_503():
    fake = FakeCms()
    async with build_client(fake, api_key=None) as client:
        response = await client.post("/api/bookings", json=BOOKING_FORM)

    assert response.status_code == 503
    assert fake.requests == []


@pytest.mark.asyncio
async def test_booking_upstream_status_passthrough():
    fake = FakeCms({("POST", "/api/v2/bookings"): (409, {"error": "Slot taken"})})
    async with build_client(fake) as client:
        response = await client.post("/api/bookings", json=BOOKING_FORM)

    assert response.status_code == 409
    assert response.json() == {"success": False, "error": "Slot taken"}


@pytest.mark.asyncio
async def test_availability_proxy():
    payload = {"date": "2030-01-07", "duration": 30, "availableSlots": ["09:00"]}
    fake = FakeCms({("GET", "/api/v2/bookings/availability/2030-01-07"): (200, payload)})

    async with build_client(fake) as client:
        response = await client.get("/api/bookings/availability/2030-01-07")
        bad_duration = await client.get("/api/bookings/availability/2030-01-07", params={"duration": "10"})
        bad_date = await client.get("/api/bookings/availability/next-week")

    assert response.status_code == 200
    assert response.json() == payload
    assert response.headers["Cache-Control"] == "no-store"
    assert fake.requests[0].url.params["duration"] == "30"
    assert bad_duration.status_code == 400
    assert bad_date.status_code == 400


@pytest.mark.parametrize("limit,page_size", [("0", "1"), ("-5", "1"), ("500", "100"), ("abc", "12")])
@pytest.mark.asyncio
async def test_projects_limit_is_clamped(limit, page_size):
    fake = FakeCms({("GET", "/api/v1/projects/public"): (200, {"data": [], "meta": {"total": 0, "totalPages": 1}})})

    async with build_client(fake) as client:
        response = await client.get("/api/projects", params={"limit": limit, "page": "0"})

    assert response.json()["pagination"]["limit"] == int(page_size)
    assert response.json()["pagination"]["page"] == 1
    assert fake.requests[0].url.params["pageSize"] == page_size
