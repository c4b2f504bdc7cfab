# backend/backup_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import crud
import models
import schemas
from auth import get_current_user
from db import get_db

router = APIRouter(
    prefix="/persistence/backup",
    tags=["backup"]
)

# GET /persistence/backup → every chat plus the current user's settings
@router.get("")
def export_backup(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    return crud.backup_all(db, current_user.id)

# POST /persistence/backup → replace chats and the current user's settings
@router.post("")
def restore_backup(
    body: schemas.BackupIn,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    crud.restore_all(db, current_user.id, body)
    return {"ok": True}
