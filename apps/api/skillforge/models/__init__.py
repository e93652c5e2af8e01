from __future__ import annotations

from skillforge.models.content import Content, ContentComment, ContentRating
from skillforge.models.learning_plan import LearningPlan, MilestoneQuizAttempt, PlanMilestone
from skillforge.models.user import Follow, User

__all__ = [
    "Content",
    "ContentComment",
    "ContentRating",
    "Follow",
    "LearningPlan",
    "MilestoneQuizAttempt",
    "PlanMilestone",
    "User",
]
