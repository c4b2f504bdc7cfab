# backend/settings_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import crud
import models
import schemas
from auth import get_current_user
from db import get_db

router = APIRouter(
    prefix="/persistence/config",
    tags=["settings"]
)

# GET /persistence/config → the current user's saved UI settings
@router.get("")
def load_settings(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    return {"config": crud.load_settings(db, current_user.id)}

# POST /persistence/config → upsert each key
@router.post("")
def save_settings(
    body: schemas.SettingsIn,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    crud.save_settings(db, current_user.id, body.config)
    return {"ok": True}
