from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skillforge.core.database import Base


class LearningPlan(Base):
    __tablename__ = "learning_plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_to_learn: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    plan_title: Mapped[str] = mapped_column(String(255), nullable=False)
    overview: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="in-progress")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    user = relationship("User", back_populates="learning_plans")
    milestones = relationship(
        "PlanMilestone",
        back_populates="plan",
        cascade="all,delete-orphan",
        order_by="PlanMilestone.position",
    )


class PlanMilestone(Base):
    __tablename__ = "plan_milestones"
    __table_args__ = (UniqueConstraint("plan_id", "position", name="uq_plan_milestone_position"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    plan_id: Mapped[str] = mapped_column(String(36), ForeignKey("learning_plans.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    milestone_title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    estimated_duration: Mapped[str] = mapped_column(String(80), nullable=False)
    suggested_search_keywords: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    external_resource_suggestions: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    quiz: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    plan = relationship("LearningPlan", back_populates="milestones")
    quiz_attempts = relationship(
        "MilestoneQuizAttempt",
        back_populates="milestone",
        cascade="all,delete-orphan",
        order_by="MilestoneQuizAttempt.attempted_at",
    )


class MilestoneQuizAttempt(Base):
    __tablename__ = "milestone_quiz_attempts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    milestone_id: Mapped[str] = mapped_column(String(36), ForeignKey("plan_milestones.id", ondelete="CASCADE"), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    attempted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    milestone = relationship("PlanMilestone", back_populates="quiz_attempts")
