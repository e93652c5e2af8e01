from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from skillforge.core.database import get_db
from skillforge.core.platform import Platform, get_platform
from skillforge.core.security import decode_access_token
from skillforge.models.user import User
from skillforge.services.ai_service import AIService

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise unauthorized

    user = db.get(User, user_id)
    if not user:
        raise unauthorized
    return user


def get_ai_service(platform: Platform = Depends(get_platform)) -> AIService:
    return platform.ai
