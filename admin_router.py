# backend/admin_router.py

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import crud
import models
import schemas
from auth import get_password_hash, public_user, require_admin, validate_password, validate_username
from db import get_db
from errors import InvalidInput, NotFound

logger = logging.getLogger("backend.admin")

router = APIRouter(
    prefix="/admin/users",
    tags=["admin"]
)

# GET /admin/users → every account, oldest first
@router.get("")
def list_users(
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin)
):
    return {"users": [public_user(u) for u in crud.list_users(db)]}

# POST /admin/users → create an account
@router.post("")
def create_user(
    body: schemas.UserCreate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin)
):
    if not body.username or not body.password:
        raise InvalidInput("Username and password are required")
    validate_username(body.username)
    validate_password(body.password)

    user = crud.create_user(db, body.username, get_password_hash(body.password), body.is_admin)
    logger.info("Admin %s created user %s (admin=%s)", admin.username, user.username, user.is_admin)
    return {"ok": True, "user": public_user(user)}

# DELETE /admin/users/{user_id} → remove an account with its sessions and images
@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin)
):
    if admin.id == user_id:
        raise InvalidInput("Cannot delete your own account")
    if not crud.delete_user(db, user_id):
        raise NotFound("User not found")
    logger.info("Admin %s deleted user %s", admin.username, user_id)
    return {"ok": True}

# PATCH /admin/users/{user_id} → reset a password
@router.patch("/{user_id}")
def reset_password(
    user_id: str,
    body: schemas.PasswordReset,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin)
):
    if not body.password:
        raise InvalidInput("Password is required")
    validate_password(body.password)
    if not crud.update_user_password(db, user_id, get_password_hash(body.password)):
        raise NotFound("User not found")
    logger.info("Admin %s reset the password of user %s", admin.username, user_id)
    return {"ok": True}
