from __future__ import annotations

from pydantic import BaseModel, Field, HttpUrl


class UpdateProfileRequest(BaseModel):
    full_name: str | None = Field(default=None, min_length=2, max_length=120)
    age: int | None = Field(default=None, ge=5, le=120)
    gender: str | None = Field(default=None, max_length=40)
    skills: list[str] | None = Field(default=None, max_length=30)
    description: str | None = Field(default=None, max_length=2000)
    achievements: str | None = Field(default=None, max_length=2000)
    linkedin_url: HttpUrl | None = None
    github_url: HttpUrl | None = None
