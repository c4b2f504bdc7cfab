# backend/crud.py
"""
Entity store: users, chats, images and per-user settings.

Every function takes the request's SQLAlchemy session and commits its own
write, so each mutation is one transaction. Uniqueness is left to the
database: usernames rely on their unique constraint (an IntegrityError is
reported as Conflict), while chats, images and settings are written with the
dialect's INSERT ... ON CONFLICT DO UPDATE so a concurrent first save of the
same id still succeeds.
"""

import logging
import time
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models
import schemas
from errors import Conflict

logger = logging.getLogger("backend.store")

TITLE_LENGTH = 60

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def now_ms() -> int:
    return int(time.time() * 1000)


def upsert(db: Session, model, values: dict, keys: List[str]):
    """Insert a row, or update every non-key column when the key already exists."""
    dialect = db.get_bind().dialect.name
    try:
        insert = _UPSERT_DIALECTS[dialect]
    except KeyError:
        raise RuntimeError(f"Upserts are not supported on {dialect}")
    stmt = insert(model).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=keys,
        set_={name: stmt.excluded[name] for name in values if name not in keys},
    )
    db.execute(stmt)


# ─── Users ─────────────────────────────────────────────────────────────────────

def create_user(db: Session, username: str, password_hash: str, is_admin: bool = False) -> models.User:
    user = models.User(username=username, password_hash=password_hash, is_admin=is_admin)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Rejected duplicate username %r", username)
        raise Conflict("Username already exists")
    db.refresh(user)
    return user


def list_users(db: Session) -> List[models.User]:
    return (
        db.query(models.User)
          .order_by(models.User.created_at.asc(), models.User.id.asc())
          .all()
    )


def count_users(db: Session) -> int:
    return db.query(func.count(models.User.id)).scalar()


def get_user_by_id(db: Session, user_id: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.username == username).first()


def update_user_password(db: Session, user_id: str, password_hash: str) -> bool:
    updated = (
        db.query(models.User)
          .filter(models.User.id == user_id)
          .update({models.User.password_hash: password_hash}, synchronize_session=False)
    )
    db.commit()
    return updated > 0


def delete_user(db: Session, user_id: str) -> bool:
    user = get_user_by_id(db, user_id)
    if user is None:
        return False
    db.delete(user)
    db.commit()
    return True


# ─── Chats ─────────────────────────────────────────────────────────────────────

def message_text(content) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        pieces = []
        for part in content:
            if not isinstance(part, dict):
                continue
            if part.get("type") == "text" and part.get("text"):
                pieces.append(part["text"])
            elif (part.get("image_url") or {}).get("url"):
                pieces.append("[image]")
        return " ".join(pieces)
    return ""


def derive_title(messages: List[dict]) -> Optional[str]:
    first_user = next((m for m in messages if m.get("role") == "user"), None)
    if first_user is None:
        return None
    text = message_text(first_user.get("content"))
    return text[:TITLE_LENGTH] or None


def write_chat(db: Session, chat: schemas.ChatIn) -> None:
    """Stage the chat row and its full message list; the caller commits."""
    messages = [m.model_dump(mode="json") for m in chat.messages]
    created_at = chat.created_at
    if created_at is None:
        created_at = next((m["created_at"] for m in messages if m["created_at"]), None) or now_ms()
    title = chat.title or derive_title(messages) or f"Chat {chat.id[-4:]}"

    upsert(db, models.Chat, {"id": chat.id, "title": title, "created_at": created_at}, ["id"])
    db.query(models.ChatMessage).filter(
        models.ChatMessage.chat_id == chat.id
    ).delete(synchronize_session=False)
    db.add_all([
        models.ChatMessage(
            chat_id=chat.id,
            position=position,
            id=m["id"],
            role=m["role"],
            content=m["content"],
            reasoning=m["reasoning"],
            cost=m["cost"],
            pending=m["pending"],
            error=m["error"],
            created_at=m["created_at"] if m["created_at"] is not None else now_ms(),
            edited=m["edited"],
        )
        for position, m in enumerate(messages)
    ])
    # a later write of the same id in this transaction must see these rows
    db.flush()


def save_chat(db: Session, chat: schemas.ChatIn) -> models.Chat:
    """Create the chat or replace it wholesale; messages are never merged."""
    write_chat(db, chat)
    db.commit()
    return get_chat(db, chat.id)


def get_chat(db: Session, chat_id: str) -> Optional[models.Chat]:
    return db.query(models.Chat).filter(models.Chat.id == chat_id).first()


def chat_as_dict(chat: models.Chat) -> dict:
    return {
        "id": chat.id,
        "title": chat.title,
        "createdAt": chat.created_at,
        "messages": [
            {
                "id": m.id,
                "role": m.role,
                "content": m.content,
                "reasoning": m.reasoning,
                "cost": m.cost,
                "pending": m.pending,
                "error": m.error,
                "createdAt": m.created_at,
                "edited": m.edited,
            }
            for m in chat.messages
        ],
    }


def list_chats(db: Session) -> List[dict]:
    rows = (
        db.query(
            models.Chat.id,
            models.Chat.title,
            models.Chat.created_at,
            func.count(models.ChatMessage.row_id),
        )
          .outerjoin(models.ChatMessage, models.ChatMessage.chat_id == models.Chat.id)
          .group_by(models.Chat.id, models.Chat.title, models.Chat.created_at)
          .order_by(models.Chat.created_at.desc(), models.Chat.id.asc())
          .all()
    )
    return [
        {"id": chat_id, "title": title or "", "createdAt": created_at or 0, "messageCount": count}
        for chat_id, title, created_at, count in rows
    ]


def delete_chat(db: Session, chat_id: str) -> None:
    chat = get_chat(db, chat_id)
    if chat is not None:
        db.delete(chat)
        db.commit()


# ─── Images ────────────────────────────────────────────────────────────────────

def save_image(db: Session, image: schemas.ImageIn, owner_user_id: str) -> models.Image:
    """Upsert within the owner's scope; the owner always comes from the session."""
    values = image.model_dump()
    if values.get("created_at") is None:
        values["created_at"] = now_ms()
    values["owner_user_id"] = owner_user_id

    upsert(db, models.Image, values, ["owner_user_id", "id"])
    db.commit()
    return (
        db.query(models.Image)
          .filter(models.Image.id == image.id, models.Image.owner_user_id == owner_user_id)
          .first()
    )


def list_images(db: Session, owner_user_id: str) -> List[models.Image]:
    return (
        db.query(models.Image)
          .filter(models.Image.owner_user_id == owner_user_id)
          .order_by(models.Image.created_at.desc(), models.Image.id.asc())
          .all()
    )


def delete_image(db: Session, image_id: str, requester_user_id: str) -> bool:
    deleted = (
        db.query(models.Image)
          .filter(models.Image.id == image_id, models.Image.owner_user_id == requester_user_id)
          .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0


# ─── Settings ──────────────────────────────────────────────────────────────────

def load_settings(db: Session, user_id: str) -> dict:
    rows = db.query(models.UserSetting).filter(models.UserSetting.user_id == user_id).all()
    return {row.key: row.value for row in rows}


def write_settings(db: Session, user_id: str, config: dict) -> None:
    for key, value in config.items():
        upsert(db, models.UserSetting, {"user_id": user_id, "key": key, "value": value}, ["user_id", "key"])


def save_settings(db: Session, user_id: str, config: dict) -> None:
    write_settings(db, user_id, config)
    db.commit()


# ─── Backup ────────────────────────────────────────────────────────────────────

def backup_all(db: Session, user_id: str) -> dict:
    """Every chat in full plus the caller's settings."""
    chats = (
        db.query(models.Chat)
          .order_by(models.Chat.created_at.desc(), models.Chat.id.asc())
          .all()
    )
    return {
        "chats": [chat_as_dict(chat) for chat in chats],
        "config": load_settings(db, user_id),
    }


def restore_all(db: Session, user_id: str, backup: schemas.BackupIn) -> None:
    """Replace all chats and the caller's settings in a single transaction."""
    try:
        db.query(models.ChatMessage).delete(synchronize_session=False)
        db.query(models.Chat).delete(synchronize_session=False)
        db.query(models.UserSetting).filter(
            models.UserSetting.user_id == user_id
        ).delete(synchronize_session=False)
        if backup.config:
            write_settings(db, user_id, backup.config)
        for chat in backup.chats:
            write_chat(db, chat)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("User %s restored a backup of %d chats", user_id, len(backup.chats))
