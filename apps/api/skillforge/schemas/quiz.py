from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, model_validator

from skillforge.ai.schemas import QuizQuestion, QuizQuestionWithResult

AnswerIndex = Annotated[int, Field(ge=0, le=3)]


class GradeQuizRequest(BaseModel):
    content_text: str = Field(default="", max_length=100_000)
    questions: list[QuizQuestion] = Field(min_length=1, max_length=10)
    # One entry per question; null means unanswered.
    answers: list[AnswerIndex | None]

    @model_validator(mode="after")
    def _one_answer_per_question(self) -> "GradeQuizRequest":
        if len(self.answers) != len(self.questions):
            raise ValueError("answers must have one entry per question")
        return self


class GradeQuizResponse(BaseModel):
    score: int
    total_questions: int
    results: list[QuizQuestionWithResult]
    feedback_text: str


class MilestoneQuizAttemptRequest(BaseModel):
    answers: list[AnswerIndex | None] = Field(min_length=1, max_length=10)
