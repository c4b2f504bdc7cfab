# backend/auth.py

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from passlib.context import CryptContext
from sqlalchemy.orm import Session

import config
import crud
import models      # absolute import
import schemas     # absolute import
from db import get_db  # absolute import
from errors import Forbidden, InvalidInput, Unauthenticated

logger = logging.getLogger("backend.auth")

SESSION_LIFETIME = timedelta(days=config.SESSION_DAYS)
MIN_USERNAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 4

# ─── Password hashing ───────────────────────────────────────────────────────────
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # stored value is not a hash we recognise
        return False

def validate_password(password: str, label: str = "Password") -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"{label} must be at least {MIN_PASSWORD_LENGTH} characters")

def validate_username(username: str) -> None:
    if len(username) < MIN_USERNAME_LENGTH:
        raise InvalidInput(f"Username must be at least {MIN_USERNAME_LENGTH} characters")

# ─── Session store ─────────────────────────────────────────────────────────────
def create_session(db: Session, user_id: str, now: datetime = None) -> str:
    created_at = now or models.utcnow()
    token = secrets.token_hex(32)
    db.add(models.AuthSession(
        token=token,
        user_id=user_id,
        created_at=created_at,
        expires_at=created_at + SESSION_LIFETIME,
    ))
    db.commit()
    logger.info("Session created for user %s", user_id)
    return token

def resolve_session(db: Session, token: Optional[str], now: datetime = None) -> Optional[models.User]:
    """Return the session's owner, or None when the token is absent, unknown or expired."""
    if not token:
        return None
    session = db.query(models.AuthSession).filter(models.AuthSession.token == token).first()
    if session is None:
        return None
    if (now or models.utcnow()) >= session.expires_at:
        db.delete(session)
        db.commit()
        return None
    return session.user

def delete_session(db: Session, token: Optional[str]) -> None:
    if not token:
        return
    deleted = (
        db.query(models.AuthSession)
          .filter(models.AuthSession.token == token)
          .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("Session revoked")

# ─── Dependencies: current user ────────────────────────────────────────────────
def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(config.SESSION_COOKIE_NAME)

def get_optional_user(
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db)
) -> Optional[models.User]:
    return resolve_session(db, token)

def get_current_user(user: Optional[models.User] = Depends(get_optional_user)) -> models.User:
    if user is None:
        raise Unauthenticated()
    return user

def require_admin(user: models.User = Depends(get_current_user)) -> models.User:
    if not user.is_admin:
        raise Forbidden()
    return user

def public_user(user: models.User) -> dict:
    return schemas.UserOut.model_validate(user).model_dump(by_alias=True)

def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="lax",
        max_age=int(SESSION_LIFETIME.total_seconds()),
        path="/",
    )

# ─── Login endpoint ────────────────────────────────────────────────────────────
@router.post("/login")
def login(form_data: schemas.LoginIn, response: Response, db: Session = Depends(get_db)):
    if not form_data.username or not form_data.password:
        raise InvalidInput("Username and password are required")

    user = crud.get_user_by_username(db, form_data.username)
    # same answer for unknown user and wrong password
    if not user or not verify_password(form_data.password, user.password_hash):
        logger.info("Failed login for %r", form_data.username)
        raise Unauthenticated("Invalid username or password")

    token = create_session(db, user.id)
    set_session_cookie(response, token)
    logger.info("User logged in: %s", user.username)
    return {"ok": True, "user": public_user(user)}

# ─── Logout endpoint ───────────────────────────────────────────────────────────
@router.post("/logout")
def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db)
):
    delete_session(db, token)
    response.delete_cookie(config.SESSION_COOKIE_NAME, path="/")
    return {"ok": True}

# ─── Current identity ──────────────────────────────────────────────────────────
@router.get("/session")
def current_session(user: Optional[models.User] = Depends(get_optional_user)):
    if user is None:
        return {"user": None}
    return {"user": public_user(user)}

# ─── Change own password ───────────────────────────────────────────────────────
@router.post("/change-password")
def change_password(
    body: schemas.PasswordChange,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    if not body.current_password or not body.new_password:
        raise InvalidInput("Current password and new password are required")
    validate_password(body.new_password, "New password")
    if not verify_password(body.current_password, current_user.password_hash):
        raise Unauthenticated("Current password is incorrect")

    crud.update_user_password(db, current_user.id, get_password_hash(body.new_password))
    logger.info("Password changed for user %s", current_user.id)
    return {"ok": True}
