from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, StringConstraints


class CreatePlanRequest(BaseModel):
    skill_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=120)]
