from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from skillforge.ai.schemas import GenerateLearningPlanInput, GenerateLearningPlanOutput, QuizQuestion
from skillforge.models.learning_plan import LearningPlan, MilestoneQuizAttempt, PlanMilestone
from skillforge.models.user import User
from skillforge.services.ai_service import AIService
from skillforge.services.quiz_service import GradedQuiz, quiz_service

logger = logging.getLogger(__name__)

STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"


class PlanService:
    def find_in_progress(self, db: Session, user: User, skill_name: str) -> LearningPlan | None:
        return (
            db.query(LearningPlan)
            .filter(
                LearningPlan.user_id == user.id,
                LearningPlan.status == STATUS_IN_PROGRESS,
                func.lower(LearningPlan.skill_to_learn) == skill_name.strip().lower(),
            )
            .order_by(LearningPlan.created_at.desc())
            .first()
        )

    def persist(self, db: Session, user: User, skill_name: str, plan: GenerateLearningPlanOutput) -> LearningPlan:
        record = LearningPlan(
            user_id=user.id,
            skill_to_learn=skill_name.strip(),
            plan_title=plan.plan_title,
            overview=plan.overview,
            status=STATUS_IN_PROGRESS,
        )
        for position, milestone in enumerate(plan.milestones):
            record.milestones.append(
                PlanMilestone(
                    position=position,
                    milestone_title=milestone.milestone_title,
                    description=milestone.description,
                    estimated_duration=milestone.estimated_duration,
                    suggested_search_keywords=list(milestone.suggested_search_keywords),
                    external_resource_suggestions=milestone.external_resource_suggestions,
                    quiz=[q.model_dump() for q in milestone.quiz] if milestone.quiz else None,
                    completed=False,
                )
            )
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    async def start(self, db: Session, ai: AIService, user: User, skill_name: str) -> tuple[LearningPlan, bool]:
        """Return the user's open plan for the skill, or a newly generated one; the flag says which."""
        existing = self.find_in_progress(db, user, skill_name)
        if existing:
            logger.info("Resuming plan %s for skill %r", existing.id, skill_name)
            return existing, False

        generated = await ai.generate_learning_plan(GenerateLearningPlanInput(skill_name=skill_name))
        record = self.persist(db, user, skill_name, generated)
        logger.info("Created plan %s with %d milestones", record.id, len(record.milestones))
        return record, True

    def get_owned(self, db: Session, user: User, plan_id: str) -> LearningPlan:
        plan = db.query(LearningPlan).filter(LearningPlan.id == plan_id, LearningPlan.user_id == user.id).first()
        if not plan:
            raise HTTPException(status_code=404, detail="Learning plan not found")
        return plan

    def milestone_at(self, plan: LearningPlan, index: int) -> PlanMilestone:
        if index < 0 or index >= len(plan.milestones):
            raise HTTPException(status_code=404, detail="Milestone not found")
        return plan.milestones[index]

    def progress(self, plan: LearningPlan) -> int:
        total = len(plan.milestones)
        if not total:
            return 0
        completed = sum(1 for milestone in plan.milestones if milestone.completed)
        return round(completed / total * 100)

    def toggle_milestone(self, db: Session, plan: LearningPlan, index: int) -> PlanMilestone:
        milestone = self.milestone_at(plan, index)
        milestone.completed = not milestone.completed
        all_done = all(m.completed for m in plan.milestones)
        plan.status = STATUS_COMPLETED if all_done else STATUS_IN_PROGRESS
        db.commit()
        db.refresh(plan)
        return milestone

    async def record_quiz_attempt(
        self,
        db: Session,
        ai: AIService,
        plan: LearningPlan,
        index: int,
        answers: list[int | None],
    ) -> tuple[MilestoneQuizAttempt, GradedQuiz]:
        milestone = self.milestone_at(plan, index)
        if not milestone.quiz:
            raise HTTPException(status_code=400, detail="This milestone has no quiz")
        questions = [QuizQuestion.model_validate(item) for item in milestone.quiz]
        if len(answers) != len(questions):
            raise HTTPException(status_code=400, detail="answers must have one entry per question")

        study_text = f"{milestone.milestone_title}\n\n{milestone.description}"
        graded = await quiz_service.grade_with_feedback(ai, study_text, questions, answers)
        attempt = MilestoneQuizAttempt(
            milestone_id=milestone.id,
            score=graded.score,
            total_questions=graded.total_questions,
            feedback=graded.feedback_text,
        )
        db.add(attempt)
        db.commit()
        db.refresh(attempt)
        return attempt, graded


plan_service = PlanService()
