from __future__ import annotations

from pydantic import BaseModel, Field

TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 150
MANUAL_DESCRIPTION_MAX_LENGTH = 5000


class RateContentRequest(BaseModel):
    rating: int = Field(ge=1, le=5)


class CommentRequest(BaseModel):
    body: str = Field(min_length=1, max_length=2000)


class ContentChatRequest(BaseModel):
    question: str = Field(min_length=1, max_length=2000)


class ContentQuizRequest(BaseModel):
    num_questions: int = Field(default=5, ge=1, le=10)
