"""Email routes: single and bulk sends, campaigns, the sent log and templates.

The send routes are plain functions so FastAPI runs them in its threadpool;
provider calls and the pacing between batches block.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from crm_portal.app.core.session_context import UserSession
from crm_portal.app.db.session import get_db
from crm_portal.app.dependencies.auth import get_current_user, get_user_session
from crm_portal.app.models.email import EmailCampaign, EmailTemplate, SentEmail
from crm_portal.app.models.user import User
from crm_portal.app.schemas.email import (
    BulkSendRequest,
    BulkSendResult,
    CampaignDetail,
    CampaignRead,
    EmailSendRequest,
    SentEmailRead,
    TemplateCreate,
    TemplatePreview,
    TemplatePreviewRequest,
    TemplateRead,
    TemplateUpdate,
)
from crm_portal.app.services.aggregation import compute_campaign_rates
from crm_portal.app.services.email_service import bulk_send, render_placeholders, send_single_email
from crm_portal.app.services.mailer import EmailTransport, get_email_transport

router = APIRouter(prefix="/email", tags=["email"])


def _get_template(db: Session, template_id: int) -> EmailTemplate:
    template = db.query(EmailTemplate).filter(EmailTemplate.id == template_id).first()
    if not template:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    return template


def _campaign_fields(campaign: EmailCampaign) -> dict:
    return dict(
        id=campaign.id,
        name=campaign.name,
        subject=campaign.subject,
        status=campaign.status,
        total_recipients=campaign.total_recipients,
        sent_count=campaign.sent_count,
        failed_count=campaign.failed_count,
        opened_count=campaign.opened_count,
        clicked_count=campaign.clicked_count,
        created_at=campaign.created_at,
        sent_at=campaign.sent_at,
        **compute_campaign_rates(campaign),
    )


@router.post("/send", response_model=SentEmailRead)
def send_email(
    payload: EmailSendRequest,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_user_session),
    transport: EmailTransport = Depends(get_email_transport),
):
    sent = send_single_email(db, transport, session, payload)
    if sent.status != "sent":
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=sent.error_message or "Email failed")
    return sent


@router.post("/bulk-send", response_model=BulkSendResult)
def bulk_send_email(
    payload: BulkSendRequest,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_user_session),
    transport: EmailTransport = Depends(get_email_transport),
):
    if not payload.contact_ids:
        raise HTTPException(status_code=400, detail="No contacts selected")
    if payload.template_id is not None:
        _get_template(db, payload.template_id)
    return bulk_send(db, transport, session, payload)


@router.get("/campaigns", response_model=list[CampaignRead])
async def list_campaigns(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    campaigns = db.query(EmailCampaign).order_by(EmailCampaign.created_at.desc(), EmailCampaign.id.desc()).all()
    return [CampaignRead(**_campaign_fields(c)) for c in campaigns]


@router.get("/campaigns/{campaign_id}", response_model=CampaignDetail)
async def get_campaign(campaign_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    campaign = db.query(EmailCampaign).filter(EmailCampaign.id == campaign_id).first()
    if not campaign:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Campaign not found")
    emails = db.query(SentEmail).filter(SentEmail.campaign_id == campaign.id).order_by(SentEmail.id.asc()).all()
    return CampaignDetail(
        **_campaign_fields(campaign),
        emails=[SentEmailRead.model_validate(e) for e in emails],
    )


@router.get("/sent", response_model=list[SentEmailRead])
async def list_sent_emails(
    limit: int = Query(default=50, ge=1, le=500),
    contact_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(SentEmail)
    if contact_id is not None:
        query = query.filter(SentEmail.contact_id == contact_id)
    return query.order_by(SentEmail.sent_at.desc(), SentEmail.id.desc()).limit(limit).all()


@router.get("/templates", response_model=list[TemplateRead])
async def list_templates(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return db.query(EmailTemplate).order_by(EmailTemplate.name.asc()).all()


@router.get("/templates/{template_id}", response_model=TemplateRead)
async def get_template(template_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_template(db, template_id)


@router.post("/templates", response_model=TemplateRead, status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: TemplateCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    template = EmailTemplate(**payload.model_dump(), created_by=current_user.email)
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


@router.put("/templates/{template_id}", response_model=TemplateRead)
async def update_template(
    template_id: int,
    payload: TemplateUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    template = _get_template(db, template_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(template, field, value)
    db.commit()
    db.refresh(template)
    return template


@router.delete("/templates/{template_id}")
async def delete_template(template_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    template = _get_template(db, template_id)
    db.delete(template)
    db.commit()
    return {"status": "deleted", "id": template_id}


@router.post("/templates/{template_id}/preview", response_model=TemplatePreview)
async def preview_template(
    template_id: int,
    payload: TemplatePreviewRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    template = _get_template(db, template_id)
    return TemplatePreview(
        subject=render_placeholders(template.subject, payload.variables),
        body=render_placeholders(template.body, payload.variables),
        html_body=render_placeholders(template.html_body, payload.variables),
    )


@router.get("/{email_id}", response_model=SentEmailRead)
async def get_sent_email(email_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    sent = db.query(SentEmail).filter(SentEmail.id == email_id).first()
    if not sent:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Email not found")
    return sent
