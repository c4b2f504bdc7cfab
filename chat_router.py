# backend/chat_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import crud
import models
import schemas
from auth import get_current_user
from db import get_db
from errors import NotFound

router = APIRouter(
    prefix="/persistence/chats",
    tags=["chats"]
)


# ─── GET /persistence/chats ───────────────────────────────────────────────────
@router.get("")
def list_chats(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    return {"chats": crud.list_chats(db)}


# ─── POST /persistence/chats ──────────────────────────────────────────────────
@router.post("")
def save_chat(
    chat: schemas.ChatIn,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    crud.save_chat(db, chat)
    return {"ok": True}


# ─── GET /persistence/chats/{chat_id} ─────────────────────────────────────────
@router.get("/{chat_id}")
def get_chat(
    chat_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    chat = crud.get_chat(db, chat_id)
    if chat is None:
        raise NotFound()
    return crud.chat_as_dict(chat)


# ─── DELETE /persistence/chats/{chat_id} ──────────────────────────────────────
@router.delete("/{chat_id}")
def delete_chat(
    chat_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    crud.delete_chat(db, chat_id)
    return {"ok": True}
