"""Operator profile: the email signature carried in the session context."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crm_portal.app.core.session_context import UserSession
from crm_portal.app.db.session import get_db
from crm_portal.app.dependencies.auth import get_user_session
from crm_portal.app.schemas.user import SignatureRead, SignatureUpdate

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("/signature", response_model=SignatureRead)
def get_signature(session: UserSession = Depends(get_user_session)):
    return SignatureRead(signature_html=session.signature_html)


@router.put("/signature", response_model=SignatureRead)
def update_signature(
    payload: SignatureUpdate,
    session: UserSession = Depends(get_user_session),
    db: Session = Depends(get_db),
):
    session.update_signature(payload.signature_html)
    session.persist(db)
    return SignatureRead(signature_html=session.signature_html)
