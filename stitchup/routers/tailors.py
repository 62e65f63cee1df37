from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from stitchup.core.database import get_db
from stitchup.deps import require_role
from stitchup.models.user import User
from stitchup.services.errors import ProfileSaveError
from stitchup.services.rate_card import KEY_SEPARATOR, OTHER_CATEGORY, SERVICE_TEMPLATES
from stitchup.services.tailors import get_tailor, list_tailors, save_profile, tailor_card, tailor_detail

router = APIRouter(prefix="/api", tags=["tailors"])


class TailorProfilePayload(BaseModel):
    pricing: Optional[Dict[str, Any]] = None
    skills: Optional[Dict[str, bool]] = None
    hours: Optional[Dict[str, str]] = None
    kyc: Optional[Dict[str, Any]] = None
    is_available: Optional[bool] = None
    heavy_tasks: Optional[int] = Field(default=None, ge=0)
    light_tasks: Optional[int] = Field(default=None, ge=0)
    years_exp: Optional[int] = Field(default=None, ge=0)
    about: Optional[str] = None
    address: Optional[str] = None


@router.get("/tailors")
def get_tailors(
    available: Optional[bool] = Query(default=None),
    q: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    return [tailor_card(tailor) for tailor in list_tailors(db, available=available, q=q)]


@router.get("/rate-card/templates")
def get_rate_card_templates():
    return {
        "templates": SERVICE_TEMPLATES,
        "other_category": OTHER_CATEGORY,
        "separator": KEY_SEPARATOR,
    }


@router.put("/tailors/me/profile")
def update_my_profile(
    payload: TailorProfilePayload,
    db: Session = Depends(get_db),
    user: User = Depends(require_role("tailor")),
):
    try:
        tailor = save_profile(db, user, payload.model_dump(exclude_unset=True))
    except ProfileSaveError as exc:
        raise HTTPException(status_code=500, detail="Failed to save profile") from exc
    return tailor_detail(tailor)


@router.get("/tailors/{tailor_id}")
def get_tailor_profile(tailor_id: str, db: Session = Depends(get_db)):
    tailor = get_tailor(db, tailor_id)
    if not tailor:
        raise HTTPException(status_code=404, detail="Tailor not found")
    return tailor_detail(tailor)
