from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import id_token
from sqlalchemy.orm import Session

from skillforge.api.v1.deps import get_current_user
from skillforge.api.v1.endpoints.users import serialize_user
from skillforge.core.config import settings
from skillforge.core.database import get_db
from skillforge.core.security import create_access_token, get_password_hash, verify_password
from skillforge.models.user import User
from skillforge.schemas.auth import GoogleLoginRequest, LoginRequest, RegisterRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=email,
        full_name=payload.full_name.strip(),
        password_hash=get_password_hash(payload.password),
        age=payload.age,
        gender=payload.gender,
        skills=[skill.strip() for skill in payload.skills if skill.strip()],
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return TokenResponse(access_token=create_access_token(user.id))


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user or not user.password_hash or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return TokenResponse(access_token=create_access_token(user.id))


@router.post("/google", response_model=TokenResponse)
def google_sign_in(payload: GoogleLoginRequest, db: Session = Depends(get_db)):
    if not settings.google_client_id:
        raise HTTPException(status_code=400, detail="Google login not configured")

    try:
        info = id_token.verify_oauth2_token(payload.id_token, Request(), settings.google_client_id)
    except (ValueError, GoogleAuthError):
        logger.warning("Rejected Google ID token", exc_info=True)
        raise HTTPException(status_code=401, detail="Invalid Google token")

    sub = info.get("sub")
    email = (info.get("email") or "").lower()
    name = info.get("name") or "Google User"
    if not sub or not email:
        raise HTTPException(status_code=400, detail="Missing user claims in Google token")

    user = db.query(User).filter((User.google_sub == sub) | (User.email == email)).first()
    if not user:
        user = User(email=email, full_name=name, google_sub=sub, photo_url=info.get("picture"))
        db.add(user)
        db.commit()
        db.refresh(user)
    elif not user.google_sub:
        user.google_sub = sub
        db.commit()

    return TokenResponse(access_token=create_access_token(user.id))


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return serialize_user(user, private=True)
