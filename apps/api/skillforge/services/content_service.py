from __future__ import annotations

import logging
import mimetypes
import os
import time
from dataclasses import dataclass

from fastapi import HTTPException, UploadFile
from pydantic import ValidationError
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from skillforge.ai.errors import FlowError
from skillforge.ai.media import to_data_uri
from skillforge.ai.schemas import ValidateAndDescribeContentInput
from skillforge.core.config import settings
from skillforge.core.platform import Platform
from skillforge.models.content import Content, ContentRating
from skillforge.models.user import User
from skillforge.schemas.content import MANUAL_DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, TITLE_MIN_LENGTH
from skillforge.services.storage_service import safe_filename
from skillforge.utils.messages import REVIEW_SKIPPED_DESCRIPTIONS

logger = logging.getLogger(__name__)

CONTENT_TYPES = ("video", "audio", "text")
FACETS_CACHE_KEY = "contents:facets"
MIN_TEXT_BODY_LENGTH = 100
BRIEF_SUMMARY_LENGTH = 200
SEARCH_WINDOW = 200


@dataclass
class ReviewOutcome:
    is_valid: bool
    description: str


def parse_tags(raw: str | None) -> list[str]:
    tags: list[str] = []
    for tag in (raw or "").split(","):
        cleaned = tag.strip()
        if cleaned and cleaned.lower() not in {t.lower() for t in tags}:
            tags.append(cleaned)
    return tags


def _file_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def _mime_type(upload: UploadFile) -> str:
    # Parameters such as "; charset=utf-8" are not part of the media type.
    declared = (upload.content_type or "").split(";", 1)[0].strip().lower()
    if declared and declared != "application/octet-stream":
        return declared
    guessed, _ = mimetypes.guess_type(upload.filename or "")
    return guessed or "application/octet-stream"


def _model_accepts(mime_type: str) -> bool:
    return any(mime_type.startswith(prefix) for prefix in settings.ai_review_media_types)


class ContentService:
    def _validate_upload(
        self,
        title: str,
        content_type: str,
        tags: list[str],
        upload: UploadFile | None,
        text_body: str | None,
        manual_description: str | None,
    ) -> None:
        if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters",
            )
        if content_type not in CONTENT_TYPES:
            raise HTTPException(status_code=400, detail=f"content_type must be one of {', '.join(CONTENT_TYPES)}")
        if not tags:
            raise HTTPException(status_code=400, detail="Please add at least one tag")
        if manual_description and len(manual_description) > MANUAL_DESCRIPTION_MAX_LENGTH:
            raise HTTPException(status_code=400, detail="Manual description is too long")

        if content_type in ("video", "audio"):
            if upload is None:
                raise HTTPException(status_code=400, detail=f"A file is required for {content_type} content")
            if text_body:
                raise HTTPException(status_code=400, detail=f"{content_type.title()} content does not take a text body")
            return

        if upload is None and not text_body:
            raise HTTPException(status_code=400, detail="Either upload a text file or enter text content directly")
        if upload is not None and text_body:
            raise HTTPException(status_code=400, detail="Provide either a text file or text content, not both")
        if text_body and len(text_body.strip()) < MIN_TEXT_BODY_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Direct text input must be at least {MIN_TEXT_BODY_LENGTH} characters",
            )

    def _size_limit(self, content_type: str) -> int:
        if content_type == "text":
            return settings.max_text_file_bytes
        return settings.max_media_file_bytes

    async def _review(
        self,
        platform: Platform,
        content_type: str,
        mime_type: str,
        payload: bytes | None,
        manual_description: str | None,
    ) -> ReviewOutcome:
        manual = (manual_description or "").strip()
        if payload is None:
            logger.info("Skipping AI review, upload exceeds %d bytes", settings.max_ai_file_bytes)
            return ReviewOutcome(is_valid=True, description=manual or REVIEW_SKIPPED_DESCRIPTIONS["oversize"])
        if not payload:
            return ReviewOutcome(is_valid=True, description=manual or REVIEW_SKIPPED_DESCRIPTIONS["empty"])
        if not mime_type.startswith("text/") and not _model_accepts(mime_type):
            logger.info("Skipping AI review, model does not accept %s input", mime_type)
            return ReviewOutcome(is_valid=True, description=manual or REVIEW_SKIPPED_DESCRIPTIONS["unsupported"])

        try:
            result = await platform.ai.validate_and_describe_content(
                ValidateAndDescribeContentInput(
                    content_data_uri=to_data_uri(mime_type, payload),
                    content_type=content_type,
                )
            )
        except (FlowError, ValidationError) as exc:
            logger.warning("AI review failed, using manual description: %s", exc)
            return ReviewOutcome(is_valid=True, description=manual or REVIEW_SKIPPED_DESCRIPTIONS["failed"])

        if not result.is_valid:
            logger.info("AI flagged %s upload as not educational", content_type)
        return ReviewOutcome(is_valid=result.is_valid, description=result.description)

    async def upload(
        self,
        db: Session,
        platform: Platform,
        user: User,
        *,
        title: str,
        content_type: str,
        tags_raw: str,
        upload: UploadFile | None = None,
        text_body: str | None = None,
        manual_description: str | None = None,
    ) -> Content:
        title = title.strip()
        tags = parse_tags(tags_raw)
        text_body = text_body.strip() if text_body and text_body.strip() else None
        self._validate_upload(title, content_type, tags, upload, text_body, manual_description)

        storage_path = None
        download_url = None
        if upload is not None:
            size = _file_size(upload)
            limit = self._size_limit(content_type)
            if size > limit:
                raise HTTPException(
                    status_code=413,
                    detail=f"{content_type.title()} file size exceeds {limit // (1024 * 1024)}MB limit",
                )

            mime_type = _mime_type(upload)
            key = f"content/{content_type}/{user.id}/{int(time.time() * 1000)}_{safe_filename(upload.filename)}"
            if size <= settings.max_ai_file_bytes:
                payload = await upload.read()
                stored = platform.storage.save_bytes(key, payload)
            else:
                payload = None
                stored = platform.storage.save(key, upload.file)
            storage_path, download_url = stored.path, stored.url

            if content_type == "text" and payload and mime_type.startswith("text/"):
                text_body = payload.decode("utf-8", errors="replace")
        else:
            mime_type = "text/plain"
            payload = text_body.encode("utf-8")
            if len(payload) > settings.max_ai_file_bytes:
                payload = None

        review = await self._review(platform, content_type, mime_type, payload, manual_description)

        content = Content(
            uploader_id=user.id,
            title=title,
            content_type=content_type,
            tags=tags,
            storage_path=storage_path,
            download_url=download_url,
            text_body=text_body,
            ai_description=review.description,
            brief_summary=review.description[:BRIEF_SUMMARY_LENGTH],
            is_valid=review.is_valid,
        )
        try:
            db.add(content)
            db.commit()
        except Exception:
            db.rollback()
            if storage_path:
                platform.storage.delete(storage_path)
            raise
        db.refresh(content)
        await platform.cache.delete(FACETS_CACHE_KEY)
        logger.info("User %s uploaded %s content %s", user.id, content_type, content.id)
        return content

    def search(
        self,
        db: Session,
        *,
        q: str | None = None,
        content_type: str | None = None,
        tag: str | None = None,
        author_id: str | None = None,
        limit: int = 20,
    ) -> list[Content]:
        query = db.query(Content).join(User, Content.uploader_id == User.id)
        if content_type:
            query = query.filter(Content.content_type == content_type)
        if author_id:
            query = query.filter(Content.uploader_id == author_id)
        if q and q.strip():
            pattern = f"%{q.strip()}%"
            query = query.filter(
                or_(Content.title.ilike(pattern), Content.brief_summary.ilike(pattern), User.full_name.ilike(pattern))
            )
        query = query.order_by(Content.created_at.desc())

        if not tag:
            return query.limit(limit).all()

        # Tags live in a JSON column; match them after narrowing in SQL.
        wanted = tag.strip().lower()
        matches = [item for item in query.limit(SEARCH_WINDOW).all() if wanted in {t.lower() for t in item.tags or []}]
        return matches[:limit]

    async def facets(self, db: Session, platform: Platform) -> dict:
        async def build() -> dict:
            tags: set[str] = set()
            for (item_tags,) in db.query(Content.tags).all():
                tags.update(t for t in item_tags or [] if t)
            authors = (
                db.query(User.id, User.full_name)
                .join(Content, Content.uploader_id == User.id)
                .distinct()
                .order_by(User.full_name)
                .all()
            )
            return {
                "tags": sorted(tags, key=str.lower),
                "authors": [{"id": author_id, "full_name": name} for author_id, name in authors],
            }

        return await platform.cache.remember(FACETS_CACHE_KEY, build, ttl_seconds=settings.facets_cache_ttl_seconds)

    def rate(self, db: Session, content: Content, user: User, rating: int) -> Content:
        existing = (
            db.query(ContentRating)
            .filter(ContentRating.content_id == content.id, ContentRating.user_id == user.id)
            .first()
        )
        if existing:
            existing.rating = rating
        else:
            db.add(ContentRating(content_id=content.id, user_id=user.id, rating=rating))
        db.flush()

        average, total = (
            db.query(func.avg(ContentRating.rating), func.count(ContentRating.id))
            .filter(ContentRating.content_id == content.id)
            .one()
        )
        content.average_rating = round(float(average or 0.0), 2)
        content.total_ratings = int(total or 0)
        db.commit()
        db.refresh(content)
        return content

    async def delete(self, db: Session, platform: Platform, content: Content) -> None:
        if content.storage_path:
            platform.storage.delete(content.storage_path)
        db.delete(content)
        db.commit()
        await platform.cache.delete(FACETS_CACHE_KEY)

    def study_text(self, content: Content) -> str:
        return content.text_body or content.ai_description or content.title


content_service = ContentService()
