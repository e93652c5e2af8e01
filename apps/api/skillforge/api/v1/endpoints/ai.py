from __future__ import annotations

from fastapi import APIRouter, Depends

from skillforge.ai.errors import FlowError
from skillforge.ai.schemas import GenerateQuizInput, GlobalChatbotInput, SuggestQuizFeedbackInput
from skillforge.api.v1.deps import get_ai_service, get_current_user
from skillforge.api.v1.errors import flow_http_error
from skillforge.models.user import User
from skillforge.schemas.quiz import GradeQuizRequest, GradeQuizResponse
from skillforge.services.ai_service import AIService
from skillforge.services.quiz_service import quiz_service

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/quiz")
async def generate_quiz(
    payload: GenerateQuizInput,
    user: User = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service),
):
    try:
        result = await ai.generate_quiz(payload)
    except FlowError as exc:
        raise flow_http_error(exc) from exc
    return result.model_dump()


@router.post("/quiz/grade", response_model=GradeQuizResponse)
async def grade_quiz(
    payload: GradeQuizRequest,
    user: User = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service),
):
    try:
        graded = await quiz_service.grade_with_feedback(ai, payload.content_text, payload.questions, payload.answers)
    except FlowError as exc:
        raise flow_http_error(exc) from exc
    return GradeQuizResponse(
        score=graded.score,
        total_questions=graded.total_questions,
        results=graded.results,
        feedback_text=graded.feedback_text,
    )


@router.post("/quiz/feedback")
async def quiz_feedback(
    payload: SuggestQuizFeedbackInput,
    user: User = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service),
):
    try:
        result = await ai.suggest_quiz_feedback(payload)
    except FlowError as exc:
        raise flow_http_error(exc) from exc
    return result.model_dump()


@router.post("/chat")
async def chat(
    payload: GlobalChatbotInput,
    user: User = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service),
):
    try:
        result = await ai.ask_global_chatbot(payload)
    except FlowError as exc:
        raise flow_http_error(exc) from exc
    return result.model_dump()
