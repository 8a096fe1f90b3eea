"""Champion routes: referral partners and their conversion against target."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from crm_portal.app.core.time import utc_now
from crm_portal.app.db.session import get_db
from crm_portal.app.dependencies.auth import get_current_user
from crm_portal.app.models.champion import Champion
from crm_portal.app.models.user import User
from crm_portal.app.schemas.champion import (
    ChampionCheck,
    ChampionCreate,
    ChampionFromEntity,
    ChampionRead,
    ChampionStats,
    ChampionUpdate,
)
from crm_portal.app.services.aggregation import compute_champion_conversion_rate, compute_champion_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/champions", tags=["champions"])


def _get_champion(db: Session, champion_id: int) -> Champion:
    champion = db.query(Champion).filter(Champion.id == champion_id).first()
    if not champion:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Champion not found")
    return champion


def _find_by_email(db: Session, email: str, exclude_id: int | None = None) -> Champion | None:
    query = db.query(Champion).filter(func.lower(Champion.email) == email.strip().lower())
    if exclude_id is not None:
        query = query.filter(Champion.id != exclude_id)
    return query.first()


def _apply(champion: Champion, payload: ChampionCreate | ChampionUpdate) -> None:
    for field, value in payload.model_dump().items():
        setattr(champion, field, value)
    champion.email = champion.email.strip()
    champion.conversion_rate = compute_champion_conversion_rate(champion.allocated_sale, champion.active_clients)
    champion.last_activity = utc_now()


@router.get("/", response_model=list[ChampionRead])
async def list_champions(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return db.query(Champion).order_by(Champion.performance_score.desc(), Champion.id.asc()).all()


@router.get("/stats", response_model=ChampionStats)
async def champion_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return compute_champion_stats(db.query(Champion).all())


@router.get("/check/{email}", response_model=ChampionCheck)
async def check_champion(email: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    champion = _find_by_email(db, email)
    if champion is None:
        return ChampionCheck(is_champion=False)
    return ChampionCheck(is_champion=True, champion=ChampionRead.model_validate(champion))


@router.post("/from-entity", response_model=ChampionRead, status_code=status.HTTP_201_CREATED)
async def designate_champion(
    payload: ChampionFromEntity, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    if not payload.email:
        raise HTTPException(status_code=400, detail="An email address is required to designate a champion")
    if _find_by_email(db, payload.email):
        raise HTTPException(status_code=400, detail="This person is already a champion")
    champion = Champion(
        name=payload.name,
        email=payload.email.strip(),
        phone=payload.phone or "",
        role=payload.role or "",
        organization_name=payload.organization_name or "",
        last_activity=utc_now(),
    )
    db.add(champion)
    db.commit()
    db.refresh(champion)
    logger.info("Designated champion %s from %s %s", champion.id, payload.source_type, payload.source_id)
    return champion


@router.delete("/by-email/{email}")
async def remove_champion_by_email(
    email: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    champion = _find_by_email(db, email)
    if not champion:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Champion not found")
    champion_id = champion.id
    db.delete(champion)
    db.commit()
    return {"status": "deleted", "id": champion_id}


@router.get("/{champion_id}", response_model=ChampionRead)
async def get_champion(champion_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_champion(db, champion_id)


@router.post("/", response_model=ChampionRead, status_code=status.HTTP_201_CREATED)
async def create_champion(
    payload: ChampionCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    if _find_by_email(db, payload.email):
        raise HTTPException(status_code=400, detail="A champion with this email already exists")
    champion = Champion()
    _apply(champion, payload)
    db.add(champion)
    db.commit()
    db.refresh(champion)
    logger.info("Created champion %s", champion.id)
    return champion


@router.put("/{champion_id}", response_model=ChampionRead)
async def update_champion(
    champion_id: int,
    payload: ChampionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    champion = _get_champion(db, champion_id)
    if _find_by_email(db, payload.email, exclude_id=champion.id):
        raise HTTPException(status_code=400, detail="A champion with this email already exists")
    _apply(champion, payload)
    db.commit()
    db.refresh(champion)
    return champion


@router.delete("/{champion_id}")
async def delete_champion(champion_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    champion = _get_champion(db, champion_id)
    db.delete(champion)
    db.commit()
    return {"status": "deleted", "id": champion_id}
