from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.common import PageQuery


class ProjectsQuery(PageQuery):
    status: Optional[str] = Field(default=None, min_length=1)
    search: Optional[str] = Field(default=None, min_length=1)


class ProjectImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    image_url: str
    alt_text: Optional[str] = None
    image_type: Optional[str] = None
    sort_order: int = 0


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: str
    short_description: Optional[str] = None
    description: Optional[str] = None
    detailed_content: Optional[str] = None
    status: str
    featured: bool = False
    sort_order: int = 0
    live_url: Optional[str] = None
    repo_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    project_images: List[ProjectImageOut] = []
