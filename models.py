# backend/models.py

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from db import Base  # absolute import


def utcnow() -> datetime:
    # naive UTC, which is what SQLite hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)

    # One-to-many: sessions, images and settings go away with the user
    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")
    images = relationship("Image", back_populates="owner", cascade="all, delete-orphan")
    settings = relationship("UserSetting", back_populates="user", cascade="all, delete-orphan")


class AuthSession(Base):
    __tablename__ = "sessions"

    token = Column(String, primary_key=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    expires_at = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="sessions")


class Chat(Base):
    __tablename__ = "chats"

    id = Column(String, primary_key=True)            # chosen by the client
    title = Column(String, nullable=True)
    created_at = Column(BigInteger, nullable=True)   # epoch milliseconds

    messages = relationship(
        "ChatMessage",
        back_populates="chat",
        cascade="all, delete-orphan",
        order_by="ChatMessage.position",
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"
    __table_args__ = {"sqlite_autoincrement": True}

    row_id = Column(Integer, primary_key=True, autoincrement=True)
    chat_id = Column(String, ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    id = Column(String, nullable=True)
    role = Column(String, nullable=False)    # "user", "assistant" or "tool"
    content = Column(JSON, nullable=False)   # text or a list of content parts
    reasoning = Column(Text, nullable=True)
    cost = Column(Float, nullable=True)
    pending = Column(Boolean, nullable=False, default=False)
    error = Column(Text, nullable=True)
    created_at = Column(BigInteger, nullable=True)
    edited = Column(Boolean, nullable=False, default=False)

    chat = relationship("Chat", back_populates="messages")


class Image(Base):
    __tablename__ = "images"

    # ids are client-chosen, so they are only unique within one owner
    owner_user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    id = Column(String, primary_key=True)
    url = Column(Text, nullable=False)
    prompt = Column(Text, nullable=True)
    model = Column(String, nullable=True)
    size = Column(String, nullable=True)
    steps = Column(Integer, nullable=True)
    guidance_scale = Column(Float, nullable=True)
    seed = Column(BigInteger, nullable=True)
    cost = Column(Float, nullable=True)
    created_at = Column(BigInteger, nullable=True)
    source_image_url = Column(Text, nullable=True)

    owner = relationship("User", back_populates="images")


class UserSetting(Base):
    __tablename__ = "user_settings"

    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=True)

    user = relationship("User", back_populates="settings")
