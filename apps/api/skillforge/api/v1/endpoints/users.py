from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from skillforge.api.v1.deps import get_current_user
from skillforge.api.v1.endpoints.contents import serialize_content
from skillforge.core.database import get_db
from skillforge.models.content import Content
from skillforge.models.user import Follow, User
from skillforge.schemas.user import UpdateProfileRequest

router = APIRouter(prefix="/users", tags=["users"])

RECENT_UPLOADS = 10


def serialize_user(user: User, private: bool = False) -> dict:
    data = {
        "id": user.id,
        "full_name": user.full_name,
        "photo_url": user.photo_url,
        "skills": user.skills or [],
        "description": user.description,
        "achievements": user.achievements,
        "linkedin_url": user.linkedin_url,
        "github_url": user.github_url,
        "followers_count": user.followers_count,
        "following_count": user.following_count,
    }
    if private:
        data.update({"email": user.email, "age": user.age, "gender": user.gender})
    return data


def _get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _find_follow(db: Session, follower_id: str, followed_id: str) -> Follow | None:
    return db.query(Follow).filter(Follow.follower_id == follower_id, Follow.followed_id == followed_id).first()


@router.patch("/me")
def update_profile(payload: UpdateProfileRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    changes = payload.model_dump(exclude_unset=True)
    for field in ("linkedin_url", "github_url"):
        if changes.get(field) is not None:
            changes[field] = str(changes[field])
    if "skills" in changes and changes["skills"] is not None:
        changes["skills"] = [skill.strip() for skill in changes["skills"] if skill.strip()]
    if changes.get("full_name") is None:
        changes.pop("full_name", None)

    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return serialize_user(user, private=True)


@router.get("/{user_id}")
def get_profile(user_id: str, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    recent = (
        db.query(Content)
        .filter(Content.uploader_id == user.id)
        .order_by(Content.created_at.desc())
        .limit(RECENT_UPLOADS)
        .all()
    )
    return {**serialize_user(user), "recent_uploads": [serialize_content(item) for item in recent]}


@router.post("/{user_id}/follow")
def follow(user_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if user_id == user.id:
        raise HTTPException(status_code=400, detail="You cannot follow yourself")
    target = _get_user(db, user_id)

    if not _find_follow(db, user.id, target.id):
        db.add(Follow(follower_id=user.id, followed_id=target.id))
        user.following_count += 1
        target.followers_count += 1
        db.commit()
    return {"following": True, "followers_count": target.followers_count}


@router.delete("/{user_id}/follow")
def unfollow(user_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    target = _get_user(db, user_id)
    existing = _find_follow(db, user.id, target.id)
    if existing:
        db.delete(existing)
        user.following_count = max(0, user.following_count - 1)
        target.followers_count = max(0, target.followers_count - 1)
        db.commit()
    return {"following": False, "followers_count": target.followers_count}


@router.get("/{user_id}/followers")
def followers(user_id: str, db: Session = Depends(get_db)):
    target = _get_user(db, user_id)
    rows = (
        db.query(User)
        .join(Follow, Follow.follower_id == User.id)
        .filter(Follow.followed_id == target.id)
        .order_by(Follow.created_at.desc())
        .all()
    )
    return {"items": [serialize_user(row) for row in rows]}


@router.get("/{user_id}/following")
def following(user_id: str, db: Session = Depends(get_db)):
    target = _get_user(db, user_id)
    rows = (
        db.query(User)
        .join(Follow, Follow.followed_id == User.id)
        .filter(Follow.follower_id == target.id)
        .order_by(Follow.created_at.desc())
        .all()
    )
    return {"items": [serialize_user(row) for row in rows]}
