from datetime import datetime

from pydantic import BaseModel, Field


class Project(BaseModel):
    id: str = Field(description="Unique project identifier.")
    user_id: str = Field(description="Owner of the project.")
    name: str = Field(description="Project name.")
    description: str | None = Field(default=None, description="Optional description.")
    status: str = Field(default="active", description="Project lifecycle status.")
    created_at: datetime | None = Field(default=None, description="Creation timestamp.")
