from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from stitchup.core import config
from stitchup.core.database import get_db
from stitchup.deps import get_current_user
from stitchup.models.user import User
from stitchup.services.accounts import login_with_identity, serialize_user, signup, update_profile
from stitchup.services.auth import create_access_token
from stitchup.services.errors import AccountExists, AccountNotFound, OtpError
from stitchup.services.notifications import send_otp_code
from stitchup.services.otp import VerifiedIdentity, request_challenge, verify_challenge
from stitchup.services.session import emit_auth_changed

router = APIRouter(prefix="/auth", tags=["auth"])


class OtpRequestPayload(BaseModel):
    phone: str = Field(..., min_length=1)


class OtpVerifyPayload(BaseModel):
    verification_id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=4, max_length=8)


class SignupPayload(OtpVerifyPayload):
    name: str = Field(..., min_length=1)
    role: Literal["customer", "tailor"] = "customer"


class ProfilePayload(BaseModel):
    name: Optional[str] = None
    full_name: Optional[str] = None
    address: Optional[str] = None
    about: Optional[str] = None


def _verify(db: Session, payload: OtpVerifyPayload) -> VerifiedIdentity:
    try:
        return verify_challenge(db, payload.verification_id, payload.code)
    except OtpError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


def _session_response(user: User) -> dict:
    return {
        "access_token": create_access_token(user.id, extra={"role": user.role}),
        "token_type": "bearer",
        "user": serialize_user(user),
    }


@router.post("/otp/request")
def request_otp(payload: OtpRequestPayload, db: Session = Depends(get_db)):
    try:
        challenge, code = request_challenge(db, payload.phone)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    sent = send_otp_code(db, phone=challenge.phone, code=code, verification_id=challenge.id)
    response = {
        "verification_id": challenge.id,
        "expires_in": config.OTP_TTL_SECONDS,
        "sent": sent,
    }
    if config.OTP_DEV_ECHO:
        response["code"] = code
    return response


@router.post("/otp/verify")
def verify_otp(payload: OtpVerifyPayload, db: Session = Depends(get_db)):
    identity = _verify(db, payload)
    try:
        user = login_with_identity(db, identity)
    except AccountNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    emit_auth_changed(user, "login")
    return _session_response(user)


@router.post("/signup", status_code=201)
def signup_with_otp(payload: SignupPayload, db: Session = Depends(get_db)):
    identity = _verify(db, payload)
    try:
        user = signup(db, identity, name=payload.name, role=payload.role)
    except AccountExists as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    emit_auth_changed(user, "signup")
    return _session_response(user)


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return serialize_user(user)


@router.patch("/me")
def update_me(
    payload: ProfilePayload,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    user = update_profile(db, user, payload.model_dump(exclude_unset=True))
    emit_auth_changed(user, "profile")
    return serialize_user(user)
