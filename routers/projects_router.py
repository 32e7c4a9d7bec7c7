"""
Projects Router - portfolio projects, v2 API and the v1 compatibility API
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from crud.project import PUBLISHED_STATUS, ProjectRepository
from database import get_db
from models.projects import ProjectOut, ProjectsQuery
from utils.responses import data_response, page_response, serialize, serialize_many
from utils.validation import NotFound, parse_id, parse_model, parse_query

projects_router = APIRouter(prefix="/api/v2/projects", tags=["projects"])
projects_v1_router = APIRouter(prefix="/api/v1/projects", tags=["projects-v1"])

PUBLIC_PAGE_SIZE = 50


async def _list(params: ProjectsQuery, db: AsyncSession, featured=None):
    rows, meta = await ProjectRepository(db).list_projects(params, featured=featured)
    return page_response(serialize_many(ProjectOut, rows), meta)


async def _get_by_id(raw_id: str, db: AsyncSession):
    project_id = parse_id(raw_id, "Project")
    project = await ProjectRepository(db).get_project_by_id(project_id)
    if project is None:
        raise NotFound("Project")
    return data_response(serialize(ProjectOut, project))


async def _get_by_slug(slug: str, db: AsyncSession):
    project = await ProjectRepository(db).get_project_by_slug(slug)
    if project is None:
        raise NotFound("Project")
    return data_response(serialize(ProjectOut, project))


@projects_router.get("")
async def list_projects(request: Request, db: AsyncSession = Depends(get_db)):
    """List projects with optional status/search filters"""
    return await _list(parse_query(ProjectsQuery, request), db)


@projects_router.get("/slug/{slug}")
async def get_project_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    return await _get_by_slug(slug, db)


@projects_router.get("/{project_id}")
async def get_project(project_id: str, db: AsyncSession = Depends(get_db)):
    return await _get_by_id(project_id, db)


@projects_v1_router.get("")
async def list_projects_v1(request: Request, db: AsyncSession = Depends(get_db)):
    return await _list(parse_query(ProjectsQuery, request), db)


def _published_query(request: Request) -> ProjectsQuery:
    """Published projects; page/pageSize may be overridden, status may not."""
    data = {"pageSize": PUBLIC_PAGE_SIZE}
    data.update(request.query_params)
    data["status"] = PUBLISHED_STATUS
    return parse_model(ProjectsQuery, data, "Invalid query parameters")


@projects_v1_router.get("/public")
async def list_public_projects(request: Request, db: AsyncSession = Depends(get_db)):
    """Published projects for the public website"""
    return await _list(_published_query(request), db)


@projects_v1_router.get("/featured")
async def list_featured_projects(db: AsyncSession = Depends(get_db)):
    params = ProjectsQuery(page=1, page_size=PUBLIC_PAGE_SIZE, status=PUBLISHED_STATUS)
    return await _list(params, db, featured=True)


@projects_v1_router.get("/slug/{slug}")
async def get_project_by_slug_v1(slug: str, db: AsyncSession = Depends(get_db)):
    return await _get_by_slug(slug, db)


@projects_v1_router.get("/{project_id}")
async def get_project_v1(project_id: str, db: AsyncSession = Depends(get_db)):
    return await _get_by_id(project_id, db)
