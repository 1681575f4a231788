from pydantic import BaseModel, ConfigDict, Field


class Skill(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str = Field(max_length=100)
    level: str | None = Field(default=None, max_length=50)
    portfolio_user_id: int


class Project(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str = Field(max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    project_url: str | None = None
    portfolio_user_id: int


class PortfolioUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None = None
    bio: str | None = None
    profile_image_url: str | None = None
    application_user_id: str | None = None
    skills: list[Skill] = []
    projects: list[Project] = []
