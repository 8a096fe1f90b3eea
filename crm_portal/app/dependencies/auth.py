"""Authentication dependencies for retrieving the current user and session."""

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from crm_portal.app.core.security import decode_access_token
from crm_portal.app.core.session_context import UserSession
from crm_portal.app.db.session import get_db
from crm_portal.app.models.user import User


def _bearer_token(authorization: str | None) -> str:
    # Expect Authorization: Bearer <token>
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    return authorization.split(" ", 1)[1]


def get_current_user(db: Session = Depends(get_db), authorization: str | None = Header(default=None)) -> User:
    token = _bearer_token(authorization)
    try:
        payload = decode_access_token(token)
    except ValueError:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user_id = payload.get("sub")
    try:
        user_id_int = int(user_id)
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = db.query(User).filter(User.id == user_id_int).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def get_user_session(
    current_user: User = Depends(get_current_user),
    authorization: str | None = Header(default=None),
) -> UserSession:
    return UserSession.load(current_user, token=_bearer_token(authorization))
