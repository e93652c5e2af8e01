from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from skillforge.ai.errors import FlowError
from skillforge.ai.schemas import ChatbotInput, GenerateQuizInput
from skillforge.api.v1.deps import get_current_user
from skillforge.api.v1.errors import flow_http_error
from skillforge.core.database import get_db
from skillforge.core.platform import Platform, get_platform
from skillforge.models.content import Content, ContentComment, ContentRating
from skillforge.models.user import User
from skillforge.schemas.content import CommentRequest, ContentChatRequest, ContentQuizRequest, RateContentRequest
from skillforge.services.content_service import CONTENT_TYPES, content_service

router = APIRouter(prefix="/contents", tags=["contents"])


def serialize_content(content: Content, detail: bool = False) -> dict:
    data = {
        "id": content.id,
        "title": content.title,
        "content_type": content.content_type,
        "tags": content.tags or [],
        "brief_summary": content.brief_summary,
        "download_url": content.download_url,
        "thumbnail_url": content.thumbnail_url,
        "is_valid": content.is_valid,
        "average_rating": content.average_rating,
        "total_ratings": content.total_ratings,
        "uploader": {"id": content.uploader.id, "full_name": content.uploader.full_name},
        "created_at": content.created_at.isoformat() if content.created_at else None,
    }
    if detail:
        data["ai_description"] = content.ai_description
        data["text_body"] = content.text_body
    return data


def _serialize_comment(comment: ContentComment) -> dict:
    return {
        "id": comment.id,
        "body": comment.body,
        "author": {"id": comment.author.id, "full_name": comment.author.full_name},
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
    }


def _get_content(db: Session, content_id: str) -> Content:
    content = db.get(Content, content_id)
    if not content:
        raise HTTPException(status_code=404, detail="Content not found")
    return content


@router.post("")
async def upload_content(
    title: str = Form(...),
    content_type: str = Form(...),
    tags: str = Form(...),
    text_body: str | None = Form(None),
    manual_description: str | None = Form(None),
    file: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    content = await content_service.upload(
        db,
        platform,
        user,
        title=title,
        content_type=content_type,
        tags_raw=tags,
        upload=file,
        text_body=text_body,
        manual_description=manual_description,
    )
    return serialize_content(content, detail=True)


@router.get("")
def list_contents(
    q: str | None = None,
    content_type: str | None = Query(None, alias="type"),
    tag: str | None = None,
    author_id: str | None = None,
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
):
    if content_type and content_type not in CONTENT_TYPES:
        raise HTTPException(status_code=400, detail=f"type must be one of {', '.join(CONTENT_TYPES)}")
    items = content_service.search(db, q=q, content_type=content_type, tag=tag, author_id=author_id, limit=limit)
    return {"items": [serialize_content(item) for item in items]}


@router.get("/facets")
async def facets(db: Session = Depends(get_db), platform: Platform = Depends(get_platform)):
    return await content_service.facets(db, platform)


@router.get("/{content_id}")
def get_content(content_id: str, db: Session = Depends(get_db)):
    return serialize_content(_get_content(db, content_id), detail=True)


@router.delete("/{content_id}")
async def delete_content(
    content_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    content = _get_content(db, content_id)
    if content.uploader_id != user.id:
        raise HTTPException(status_code=403, detail="Only the uploader can delete this content")
    await content_service.delete(db, platform, content)
    return {"ok": True}


@router.put("/{content_id}/rating")
def rate_content(
    content_id: str,
    payload: RateContentRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    content = content_service.rate(db, _get_content(db, content_id), user, payload.rating)
    return {
        "average_rating": content.average_rating,
        "total_ratings": content.total_ratings,
        "your_rating": payload.rating,
    }


@router.get("/{content_id}/rating")
def my_rating(content_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    content = _get_content(db, content_id)
    rating = (
        db.query(ContentRating)
        .filter(ContentRating.content_id == content.id, ContentRating.user_id == user.id)
        .first()
    )
    return {
        "average_rating": content.average_rating,
        "total_ratings": content.total_ratings,
        "your_rating": rating.rating if rating else None,
    }


@router.get("/{content_id}/comments")
def list_comments(content_id: str, db: Session = Depends(get_db)):
    content = _get_content(db, content_id)
    return {"items": [_serialize_comment(comment) for comment in content.comments]}


@router.post("/{content_id}/comments")
def add_comment(
    content_id: str,
    payload: CommentRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    content = _get_content(db, content_id)
    body = payload.body.strip()
    if not body:
        raise HTTPException(status_code=400, detail="Comment cannot be empty")
    comment = ContentComment(content_id=content.id, user_id=user.id, body=body)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return _serialize_comment(comment)


@router.delete("/{content_id}/comments/{comment_id}")
def delete_comment(
    content_id: str,
    comment_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = (
        db.query(ContentComment)
        .filter(ContentComment.id == comment_id, ContentComment.content_id == content_id)
        .first()
    )
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    if comment.user_id != user.id:
        raise HTTPException(status_code=403, detail="Only the author can delete this comment")
    db.delete(comment)
    db.commit()
    return {"ok": True}


@router.post("/{content_id}/chat")
async def chat_about_content(
    content_id: str,
    payload: ContentChatRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    content = _get_content(db, content_id)
    if not payload.question.strip():
        raise HTTPException(status_code=400, detail="Question cannot be empty")
    try:
        result = await platform.ai.ask_content_tutor(
            ChatbotInput(file_content=content_service.study_text(content), question=payload.question)
        )
    except FlowError as exc:
        raise flow_http_error(exc) from exc
    return {"answer": result.answer}


@router.post("/{content_id}/quiz")
async def quiz_for_content(
    content_id: str,
    payload: ContentQuizRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    content = _get_content(db, content_id)
    study_text = content_service.study_text(content)
    if len(study_text) < 50:
        raise HTTPException(status_code=400, detail="Not enough content to build a quiz")
    try:
        result = await platform.ai.generate_quiz(
            GenerateQuizInput(content_text=study_text, num_questions=payload.num_questions)
        )
    except FlowError as exc:
        raise flow_http_error(exc) from exc
    return {"content_id": content.id, "content_text": study_text, "questions": [q.model_dump() for q in result.questions]}
