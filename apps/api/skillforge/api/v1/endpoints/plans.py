from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from skillforge.ai.errors import FlowError
from skillforge.api.v1.deps import get_ai_service, get_current_user
from skillforge.api.v1.errors import flow_http_error
from skillforge.core.database import get_db
from skillforge.models.learning_plan import LearningPlan, MilestoneQuizAttempt, PlanMilestone
from skillforge.models.user import User
from skillforge.schemas.learning import CreatePlanRequest
from skillforge.schemas.quiz import MilestoneQuizAttemptRequest
from skillforge.services.ai_service import AIService
from skillforge.services.plan_service import plan_service

router = APIRouter(prefix="/plans", tags=["plans"])


def _serialize_attempt(attempt: MilestoneQuizAttempt) -> dict:
    return {
        "id": attempt.id,
        "score": attempt.score,
        "total_questions": attempt.total_questions,
        "feedback": attempt.feedback,
        "attempted_at": attempt.attempted_at.isoformat() if attempt.attempted_at else None,
    }


def _serialize_milestone(milestone: PlanMilestone) -> dict:
    return {
        "index": milestone.position,
        "milestone_title": milestone.milestone_title,
        "description": milestone.description,
        "estimated_duration": milestone.estimated_duration,
        "suggested_search_keywords": milestone.suggested_search_keywords or [],
        "external_resource_suggestions": milestone.external_resource_suggestions,
        "quiz": milestone.quiz,
        "completed": milestone.completed,
        "quiz_attempts": [_serialize_attempt(attempt) for attempt in milestone.quiz_attempts],
    }


def _serialize_plan(plan: LearningPlan, with_milestones: bool = True) -> dict:
    data = {
        "id": plan.id,
        "skill_to_learn": plan.skill_to_learn,
        "plan_title": plan.plan_title,
        "overview": plan.overview,
        "status": plan.status,
        "progress": plan_service.progress(plan),
        "milestone_count": len(plan.milestones),
        "created_at": plan.created_at.isoformat() if plan.created_at else None,
    }
    if with_milestones:
        data["milestones"] = [_serialize_milestone(milestone) for milestone in plan.milestones]
    return data


@router.post("")
async def create_plan(
    payload: CreatePlanRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
):
    try:
        plan, created = await plan_service.start(db, ai, user, payload.skill_name)
    except FlowError as exc:
        raise flow_http_error(exc) from exc
    return {**_serialize_plan(plan), "resumed": not created}


@router.get("")
def list_plans(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    plans = (
        db.query(LearningPlan)
        .filter(LearningPlan.user_id == user.id)
        .order_by(LearningPlan.created_at.desc())
        .all()
    )
    return {"items": [_serialize_plan(plan, with_milestones=False) for plan in plans]}


@router.get("/{plan_id}")
def get_plan(plan_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _serialize_plan(plan_service.get_owned(db, user, plan_id))


@router.post("/{plan_id}/milestones/{index}/toggle")
def toggle_milestone(plan_id: str, index: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    plan = plan_service.get_owned(db, user, plan_id)
    milestone = plan_service.toggle_milestone(db, plan, index)
    return {
        "index": milestone.position,
        "completed": milestone.completed,
        "status": plan.status,
        "progress": plan_service.progress(plan),
    }


@router.post("/{plan_id}/milestones/{index}/quiz-attempts")
async def attempt_milestone_quiz(
    plan_id: str,
    index: int,
    payload: MilestoneQuizAttemptRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
):
    plan = plan_service.get_owned(db, user, plan_id)
    try:
        attempt, graded = await plan_service.record_quiz_attempt(db, ai, plan, index, payload.answers)
    except FlowError as exc:
        raise flow_http_error(exc) from exc
    return {
        **_serialize_attempt(attempt),
        "results": [result.model_dump() for result in graded.results],
    }
