"""
Site Router - public website API, backed by the CMS
"""
import logging
import math
from typing import Any, Optional
from urllib.parse import quote

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from models.site import DATE_RE, parse_duration, to_int, validate_booking_request, validate_contact_request
from services.cms_client import CmsClient, CmsUpstreamError, MissingCmsApiKeyError, read_json
from utils.responses import site_error_response
from utils.security_utils import sanitize_html
from utils.validation import ValidationFailed, read_json_body

logger = logging.getLogger(__name__)

site_router = APIRouter(prefix="/api", tags=["site"])

DEFAULT_PROJECTS_LIMIT = 12
MAX_PROJECTS_LIMIT = 100
PROJECTS_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=120"
SERVICE_UNAVAILABLE = "Service unavailable. Please try again later."

# Transport failures, non-2xx answers and undecodable bodies
CMS_FAILURES = (httpx.HTTPError, CmsUpstreamError, ValueError)


def get_cms_client(request: Request) -> CmsClient:
    return request.app.state.cms_client


async def _json_body(request: Request) -> Optional[Any]:
    try:
        return await read_json_body(request)
    except ValidationFailed:
        return None


def _bounded(value: Optional[int], default: int, upper: Optional[int] = None) -> int:
    if value is None:
        return default
    value = max(value, 1)
    return min(value, upper) if upper else value


@site_router.get("/projects")
async def list_projects(request: Request, cms: CmsClient = Depends(get_cms_client)):
    """Published projects, paginated for the portfolio grid"""
    page = _bounded(to_int(request.query_params.get("page")), 1)
    limit = _bounded(to_int(request.query_params.get("limit")), DEFAULT_PROJECTS_LIMIT, MAX_PROJECTS_LIMIT)

    try:
        response = await cms.get(
            "/api/v1/projects/public",
            require_key=False,
            params={"page": page, "pageSize": limit},
        )
        payload = read_json(response)
    except CMS_FAILURES as e:
        logger.error(f"Error fetching projects: {e}")
        return JSONResponse(
            status_code=502,
            content={
                "projects": [],
                "pagination": {"page": 1, "limit": DEFAULT_PROJECTS_LIMIT, "total": 0, "totalPages": 0},
                "error": "Failed to fetch projects from CMS",
            },
        )

    projects = payload.get("data") or payload.get("projects") or []
    meta = payload.get("meta") or {}
    total = meta.get("total", len(projects))
    total_pages = meta.get("totalPages") or max(math.ceil(total / limit), 1)

    return JSONResponse(
        content={
            "projects": projects,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": total_pages,
                "hasNext": page < total_pages,
                "hasPrev": page > 1,
            },
        },
        headers={"Cache-Control": PROJECTS_CACHE_CONTROL},
    )


@site_router.get("/projects/featured")
async def featured_projects(cms: CmsClient = Depends(get_cms_client)):
    """Featured projects; an empty list when the CMS cannot be reached"""
    try:
        payload = read_json(await cms.get("/api/v1/projects/featured"))
    except MissingCmsApiKeyError:
        logger.error("CMS API key missing while fetching featured projects")
        payload = None
    except CMS_FAILURES as e:
        logger.error(f"Error fetching featured projects: {e}")
        payload = None

    if payload is None:
        return {"projects": [], "total": 0, "error": "Failed to fetch featured projects"}

    projects = payload.get("data") or payload.get("projects") or []
    total = (payload.get("meta") or {}).get("total", payload.get("total", len(projects)))
    return {"projects": projects, "total": total}


@site_router.get("/projects/{project_id}")
async def get_project(project_id: str, cms: CmsClient = Depends(get_cms_client)):
    try:
        response = await cms.get(f"/api/v2/projects/{quote(project_id, safe='')}", require_key=False)
        if response.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "Project not found"})
        payload = read_json(response)
    except CMS_FAILURES as e:
        logger.error(f"Error fetching project {project_id}: {e}")
        return JSONResponse(status_code=502, content={"error": "Failed to fetch project from CMS"})

    project = payload.get("data") or payload.get("project")
    if not project:
        return JSONResponse(status_code=404, content={"error": "Project not found"})

    technologies = project.get("technologies")
    return {
        "project": {
            **project,
            "technologies": technologies if isinstance(technologies, list) else [],
            "detailed_content": sanitize_html(project.get("detailed_content")),
        }
    }


async def record_contact_event(cms: CmsClient, data: dict, referrer: str) -> None:
    """Background analytics for a contact submission; failures are only logged."""
    try:
        response = await cms.post(
            "/api/v2/analytics/track",
            require_key=False,
            json={
                "event_type": "contact_form_submission",
                "event_data": {"name": data["name"], "email": data["email"], "subject": data["subject"]},
                "page_url": "/contact",
                "referrer": referrer,
            },
        )
        read_json(response)
    except CMS_FAILURES as e:
        logger.warning(f"Analytics tracking failed (non-blocking): {e}")


@site_router.post("/contact")
async def submit_contact(request: Request, background_tasks: BackgroundTasks, cms: CmsClient = Depends(get_cms_client)):
    """Forward a contact form submission to the CMS inbox"""
    data, error = validate_contact_request(await _json_body(request))
    if error:
        return site_error_response(error, 400)

    try:
        payload = read_json(await cms.post("/api/v2/messages", require_key=False, json=data))
    except CMS_FAILURES as e:
        logger.error(f"Error in contact API: {e}")
        return site_error_response("Failed to send message. Please try again later.", 500)

    background_tasks.add_task(record_contact_event, cms, data, request.headers.get("referer") or "")

    return {
        "success": True,
        "message": "Thank you for your message! I will get back to you soon.",
        "messageId": (payload.get("data") or {}).get("id"),
    }


@site_router.get("/contact")
async def contact_info():
    return {
        "message": "Contact API is working. Use POST to submit a message.",
        "requiredFields": ["name", "email", "message"],
        "optionalFields": ["subject"],
    }


@site_router.post("/analytics")
async def track_analytics(request: Request, cms: CmsClient = Depends(get_cms_client)):
    """Forward a page event; always reports success to the browser"""
    body = await _json_body(request)
    body = body if isinstance(body, dict) else {}

    try:
        response = await cms.post(
            "/api/v2/analytics/track",
            require_key=False,
            json={
                "event_type": body.get("event") or "page_view",
                "event_data": body.get("data") or {},
                "page_url": body.get("page") or "",
                "referrer": body.get("referrer") or request.headers.get("referer") or "",
            },
        )
        read_json(response)
    except CMS_FAILURES as e:
        logger.warning(f"Analytics error: {e}")

    return {"success": True}


@site_router.post("/bookings")
async def create_booking(request: Request, cms: CmsClient = Depends(get_cms_client)):
    """Validate a booking form and create the booking in the CMS"""
    body = await _json_body(request)
    if body is None:
        return site_error_response("Invalid JSON body", 400)

    data, errors = validate_booking_request(body)
    if errors:
        return site_error_response("Validation failed", 400, details=errors)

    try:
        payload = read_json(await cms.post("/api/v2/bookings", json=data))
    except MissingCmsApiKeyError:
        logger.error("CMS API key missing while creating a booking")
        return site_error_response(SERVICE_UNAVAILABLE, 503)
    except CmsUpstreamError as e:
        return site_error_response(e.error_message or "Failed to create booking", e.status_code)
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Error creating booking: {e}")
        return site_error_response("Failed to create booking. Please try again later.", 500)

    return JSONResponse(status_code=201, content=payload)


@site_router.get("/bookings/availability/{date}")
async def booking_availability(date: str, request: Request, cms: CmsClient = Depends(get_cms_client)):
    date = date.strip()
    if not DATE_RE.match(date):
        return JSONResponse(status_code=400, content={"error": "Date must be formatted as YYYY-MM-DD"})

    duration = parse_duration(request.query_params.get("duration"))
    if duration is None:
        return JSONResponse(status_code=400, content={"error": "Duration must be an integer between 15 and 240 minutes"})

    try:
        response = await cms.get(
            f"/api/v2/bookings/availability/{quote(date, safe='')}",
            params={"duration": duration},
        )
        payload = read_json(response)
    except MissingCmsApiKeyError:
        logger.error("CMS API key missing while fetching booking availability")
        return JSONResponse(status_code=503, content={"error": SERVICE_UNAVAILABLE})
    except CmsUpstreamError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"error": e.error_message or "Failed to fetch availability from CMS"},
        )
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Error fetching booking availability: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch booking availability"})

    return JSONResponse(content=payload, headers={"Cache-Control": "no-store"})