from __future__ import annotations

import logging

from pydantic import TypeAdapter, ValidationError

from skillforge.ai.errors import ModelInvocationError, PlanGenerationError
from skillforge.ai.flows.base import FailureMode, Flow, FlowPolicy
from skillforge.ai.schemas import (
    GenerateLearningPlanInput,
    GenerateLearningPlanOutput,
    LearningMilestone,
    LearningPlanDraft,
    MilestoneDraft,
    QuizQuestion,
)
from skillforge.utils.messages import PLAN_INCOMPLETE, PLAN_NO_MILESTONES

logger = logging.getLogger(__name__)

MIN_MILESTONES = 3
MAX_MILESTONES = 10
MIN_KEYWORDS = 3
MAX_KEYWORDS = 5

_quiz_adapter = TypeAdapter(list[QuizQuestion])


def _clean(values: list[str] | None) -> list[str]:
    return [value.strip() for value in values or [] if value and value.strip()]


def _text(value: str | None) -> str:
    return (value or "").strip()


def _is_incomplete(milestone: MilestoneDraft) -> bool:
    return (
        not _text(milestone.milestone_title)
        or not _text(milestone.description)
        or not _text(milestone.estimated_duration)
        or len(_clean(milestone.suggested_search_keywords)) < MIN_KEYWORDS
    )


class GenerateLearningPlanFlow(Flow[GenerateLearningPlanInput, GenerateLearningPlanOutput]):
    """Builds an ordered milestone plan for a skill. Any defect in the plan is raised, never patched over."""

    name = "generate_learning_plan"
    template = "generate_learning_plan"
    input_model = GenerateLearningPlanInput
    output_model = LearningPlanDraft
    default_policy = FlowPolicy(on_empty=FailureMode.RAISE, on_error=FailureMode.RAISE)
    supports_fallback = False

    def log_request(self, data: GenerateLearningPlanInput) -> None:
        logger.info("Generating learning plan for skill: %s", data.skill_name)

    def prompt_context(self, data: GenerateLearningPlanInput) -> dict:
        return {
            "skill_name": data.skill_name,
            "min_milestones": MIN_MILESTONES,
            "max_milestones": MAX_MILESTONES,
        }

    def is_empty(self, output: LearningPlanDraft) -> bool:
        return not output.milestones

    def empty_error(self, data: GenerateLearningPlanInput) -> Exception:
        return PlanGenerationError(PLAN_NO_MILESTONES)

    def invocation_error(self, exc: ModelInvocationError) -> Exception:
        return PlanGenerationError(f"Failed to generate learning plan: {exc}")

    def _milestone_quiz(self, draft: MilestoneDraft, position: int) -> list[QuizQuestion] | None:
        if not draft.quiz:
            return None
        try:
            return _quiz_adapter.validate_python(draft.quiz)
        except ValidationError:
            logger.warning(
                "Milestone %d (%s) has a malformed quiz, dropping it",
                position,
                draft.milestone_title or "Untitled",
            )
            return []

    def finalize(self, output: LearningPlanDraft, data: GenerateLearningPlanInput) -> GenerateLearningPlanOutput:
        incomplete = [m.milestone_title or "Untitled" for m in output.milestones if _is_incomplete(m)]
        if incomplete:
            logger.warning("Plan for %s has incomplete milestones: %s", data.skill_name, incomplete)
            raise PlanGenerationError(PLAN_INCOMPLETE)

        count = len(output.milestones)
        if not MIN_MILESTONES <= count <= MAX_MILESTONES:
            raise PlanGenerationError(
                f"AI generated {count} milestones; a plan needs between {MIN_MILESTONES} and {MAX_MILESTONES}."
            )

        milestones = []
        for position, draft in enumerate(output.milestones, start=1):
            keywords = _clean(draft.suggested_search_keywords)
            milestones.append(
                LearningMilestone(
                    milestone_title=_text(draft.milestone_title),
                    description=_text(draft.description),
                    estimated_duration=_text(draft.estimated_duration),
                    suggested_search_keywords=keywords[:MAX_KEYWORDS],
                    external_resource_suggestions=_clean(draft.external_resource_suggestions) or None,
                    quiz=self._milestone_quiz(draft, position),
                )
            )

        plan = GenerateLearningPlanOutput(
            skill_to_learn=_text(output.skill_to_learn) or data.skill_name,
            plan_title=_text(output.plan_title) or f"Learning plan: {data.skill_name}",
            overview=_text(output.overview),
            milestones=milestones,
        )
        logger.info("Generated %d milestones for plan: %s", len(plan.milestones), plan.plan_title)
        return plan
