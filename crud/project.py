"""
ProjectRepository for database operations on Project model
"""

from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import Project
from models.common import PaginationMeta, build_meta
from models.projects import ProjectsQuery

PUBLISHED_STATUS = "published"


class ProjectRepository:
    """
    Repository class for Project database operations.
    Encapsulates all database logic for the Project model.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def _filters(self, status: Optional[str] = None, search: Optional[str] = None, featured: Optional[bool] = None):
        conditions = []
        if status:
            conditions.append(Project.status == status)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(
                Project.title.ilike(pattern),
                Project.short_description.ilike(pattern),
                Project.description.ilike(pattern),
            ))
        if featured is not None:
            conditions.append(Project.featured.is_(featured))
        return conditions

    async def list_projects(self, params: ProjectsQuery, featured: Optional[bool] = None) -> Tuple[List[Project], PaginationMeta]:
        """
        List projects matching the query, newest first within each sort_order.

        Args:
            params: Validated query (status, search, page, page_size)
            featured: Restrict to featured (True) or non-featured (False) projects

        Returns:
            Tuple of (projects on the requested page, pagination meta)
        """
        conditions = self._filters(params.status, params.search, featured)

        total = await self.db.scalar(select(func.count(Project.id)).where(*conditions))
        result = await self.db.execute(
            select(Project)
            .where(*conditions)
            .order_by(Project.sort_order.asc(), Project.created_at.desc())
            .offset(params.offset)
            .limit(params.page_size)
        )
        return list(result.scalars().all()), build_meta(params.page, params.page_size, total or 0)

    async def get_project_by_id(self, project_id: int) -> Optional[Project]:
        result = await self.db.execute(select(Project).where(Project.id == project_id))
        return result.scalar_one_or_none()

    async def get_project_by_slug(self, slug: str) -> Optional[Project]:
        result = await self.db.execute(select(Project).where(Project.slug == slug))
        return result.scalar_one_or_none()

    async def count_projects(self) -> int:
        return await self.db.scalar(select(func.count(Project.id))) or 0
