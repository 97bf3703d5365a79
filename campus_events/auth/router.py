from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from campus_events.auth.deps import SESSION_COOKIE, get_current_user
from campus_events.core.config import settings
from campus_events.core.rbac import require
from campus_events.core.security import hash_password, verify_password, sign_session
from campus_events.db.models.user import User, Role
from campus_events.db.session import get_db

logger = logging.getLogger("campus_events.auth")

router = APIRouter(tags=["auth"])


def _user_dict(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "role_label": user.role_label,
    }


def _session_response(user: User, message: str, status_code: int = 200) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content={"success": True, "message": message, "data": _user_dict(user)},
    )
    resp.set_cookie(
        SESSION_COOKIE,
        sign_session(user.id),
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
        secure=settings.COOKIE_SECURE,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
    )
    return resp


@router.post("/login")
def login(
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    ok, new_hash = verify_password(password, user.password_hash) if user else (False, None)
    if not ok:
        return JSONResponse(status_code=401, content={"success": False, "message": "Email atau password salah"})

    if not user.is_active:
        return JSONResponse(status_code=403, content={"success": False, "message": "Akun ini tidak aktif"})

    if new_hash:
        user.password_hash = new_hash
        db.commit()

    return _session_response(user, "Login berhasil")


@router.post("/register")
def register(
    name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    email = email.strip().lower()
    require("@" in email, "Email tidak valid", 400)
    require(len(password) >= 6, "Password minimal 6 karakter", 400)
    exists = db.query(User).filter(User.email == email).first()
    require(exists is None, "Email sudah terdaftar", 409)

    user = User(name=name.strip(), email=email, password_hash=hash_password(password), role=Role.PARTICIPANT)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("New participant account user_id=%s", user.id)
    return _session_response(user, "Registrasi berhasil", status_code=201)


@router.post("/logout")
def logout():
    resp = JSONResponse({"success": True, "message": "Logout berhasil"})
    resp.delete_cookie(SESSION_COOKIE)
    return resp


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"success": True, "data": _user_dict(user)}
