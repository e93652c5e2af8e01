from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skillforge.core.database import Base


class Content(Base):
    __tablename__ = "contents"
    __table_args__ = (CheckConstraint("content_type in ('video', 'audio', 'text')", name="ck_content_type"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    uploader_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(150), nullable=False)
    content_type: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    storage_path: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    download_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    text_body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    ai_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    brief_summary: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    is_valid: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    average_rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_ratings: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    uploader = relationship("User", back_populates="contents")
    ratings = relationship("ContentRating", back_populates="content", cascade="all,delete-orphan")
    comments = relationship(
        "ContentComment",
        back_populates="content",
        cascade="all,delete-orphan",
        order_by="ContentComment.created_at",
    )


class ContentRating(Base):
    __tablename__ = "content_ratings"
    __table_args__ = (
        UniqueConstraint("content_id", "user_id", name="uq_content_rating_user"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_rating_range"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    content_id: Mapped[str] = mapped_column(String(36), ForeignKey("contents.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    content = relationship("Content", back_populates="ratings")


class ContentComment(Base):
    __tablename__ = "content_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    content_id: Mapped[str] = mapped_column(String(36), ForeignKey("contents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    content = relationship("Content", back_populates="comments")
    author = relationship("User")
