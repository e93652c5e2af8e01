"""Input and output contracts of the AI flows.

The model reply is the trust boundary: every reply is validated against one of
these models before it reaches a caller.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, StringConstraints, field_validator, model_validator

from skillforge.ai.media import DATA_URI_PATTERN

ContentType = Literal["video", "audio", "text"]

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class QuizQuestion(BaseModel):
    question_text: NonBlank = Field(description="The text of the quiz question.")
    options: list[str] = Field(
        min_length=4,
        max_length=4,
        description="Exactly four distinct answer options.",
    )
    correct_answer_index: int = Field(ge=0, le=3, description="0-based index of the correct option.")
    explanation: str | None = Field(default=None, description="Why the correct answer is right.")

    @field_validator("options")
    @classmethod
    def _distinct_options(cls, options: list[str]) -> list[str]:
        cleaned = [option.strip() for option in options]
        if any(not option for option in cleaned):
            raise ValueError("options must not be blank")
        if len({option.casefold() for option in cleaned}) != len(cleaned):
            raise ValueError("options must be distinct")
        return cleaned


class QuizQuestionWithResult(QuizQuestion):
    user_answer_index: int | None = Field(default=None, ge=0, le=3)
    is_correct: bool

    @model_validator(mode="after")
    def _correctness_matches_answer(self) -> "QuizQuestionWithResult":
        expected = self.user_answer_index is not None and self.user_answer_index == self.correct_answer_index
        if self.is_correct != expected:
            raise ValueError("is_correct must match user_answer_index; unanswered questions are never correct")
        return self

    @property
    def answered(self) -> bool:
        return self.user_answer_index is not None


class GenerateQuizInput(BaseModel):
    content_text: str = Field(min_length=50, description="Content the quiz is generated from.")
    num_questions: int = Field(ge=1, le=10, description="Number of questions to generate.")


class GenerateQuizOutput(BaseModel):
    questions: list[QuizQuestion] = Field(default_factory=list)


class SuggestQuizFeedbackInput(BaseModel):
    content_text: str
    quiz_results: list[QuizQuestionWithResult]


class SuggestQuizFeedbackOutput(BaseModel):
    feedback_text: str


class ChatbotInput(BaseModel):
    file_content: str = Field(description="Text, or transcript, of the content being discussed.")
    question: NonBlank


class ChatbotOutput(BaseModel):
    answer: str


class GlobalChatbotInput(BaseModel):
    question: NonBlank


class GlobalChatbotOutput(BaseModel):
    answer: str


class LearningMilestone(BaseModel):
    milestone_title: NonBlank
    description: NonBlank
    estimated_duration: NonBlank
    suggested_search_keywords: list[str] = Field(min_length=3, max_length=5)
    external_resource_suggestions: list[str] | None = None
    quiz: list[QuizQuestion] | None = None


class GenerateLearningPlanInput(BaseModel):
    skill_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=120)]


class GenerateLearningPlanOutput(BaseModel):
    skill_to_learn: str
    plan_title: str
    overview: str
    milestones: list[LearningMilestone] = Field(min_length=3, max_length=10)


class MilestoneDraft(BaseModel):
    """Model-facing milestone with relaxed constraints; completeness is checked by the flow."""

    milestone_title: str | None = None
    description: str | None = None
    estimated_duration: str | None = None
    suggested_search_keywords: list[str] | None = None
    external_resource_suggestions: list[str] | None = None
    quiz: list[dict] | None = None


class LearningPlanDraft(BaseModel):
    skill_to_learn: str | None = None
    plan_title: str | None = None
    overview: str | None = None
    milestones: list[MilestoneDraft] | None = None


class ValidateAndDescribeContentInput(BaseModel):
    content_data_uri: str = Field(description="Base64 data URI including the MIME type.")
    content_type: ContentType

    @field_validator("content_data_uri")
    @classmethod
    def _is_data_uri(cls, value: str) -> str:
        if not DATA_URI_PATTERN.match(value):
            raise ValueError("content_data_uri must look like 'data:<mimetype>;base64,<encoded_data>'")
        return value


class ValidateAndDescribeContentOutput(BaseModel):
    is_valid: bool
    description: str
