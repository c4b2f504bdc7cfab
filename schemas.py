# backend/schemas.py

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

# ---------- User-related schemas ----------

class LoginIn(BaseModel):
    username: str
    password: str


class UserCreate(BaseModel):
    username: str
    password: str
    is_admin: bool = Field(False, alias="isAdmin")

    class Config:
        populate_by_name = True


class PasswordReset(BaseModel):
    password: str


class PasswordChange(BaseModel):
    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., alias="newPassword")

    class Config:
        populate_by_name = True


class UserOut(BaseModel):
    id: str
    username: str
    is_admin: bool = Field(..., serialization_alias="isAdmin")

    class Config:
        from_attributes = True  # was orm_mode in v1, renamed in v2


# ---------- Chat schemas ----------

class ImageUrl(BaseModel):
    url: str


class TextPart(BaseModel):
    type: Literal["text"]
    text: str


class ImagePart(BaseModel):
    type: Literal["image_url"]
    image_url: ImageUrl


ContentPart = Union[TextPart, ImagePart]


class MessageIn(BaseModel):
    role: Literal["user", "assistant", "tool"]
    content: Union[str, List[ContentPart]]
    id: Optional[str] = None
    reasoning: Optional[str] = None
    cost: Optional[float] = None
    pending: bool = False
    error: Optional[str] = None
    created_at: Optional[int] = Field(None, alias="createdAt")
    edited: bool = False

    class Config:
        populate_by_name = True


class ChatIn(BaseModel):
    id: str = Field(..., min_length=1)
    title: Optional[str] = None
    created_at: Optional[int] = Field(None, alias="createdAt")
    messages: List[MessageIn]

    class Config:
        populate_by_name = True


# ---------- Image schemas ----------

class ImageIn(BaseModel):
    id: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    prompt: Optional[str] = None
    model: Optional[str] = None
    size: Optional[str] = None
    steps: Optional[int] = None
    guidance_scale: Optional[float] = Field(None, alias="guidanceScale")
    seed: Optional[int] = None
    cost: Optional[float] = None
    created_at: Optional[int] = Field(None, alias="createdAt")
    source_image_url: Optional[str] = Field(None, alias="sourceImageUrl")

    class Config:
        populate_by_name = True


# ---------- Settings ----------

class SettingsIn(BaseModel):
    config: Dict[str, Any]


# ---------- Catalog requests ----------

class CatalogRequest(BaseModel):
    api_key: Optional[str] = Field(None, alias="apiKey")
    paid_token: Optional[str] = Field(None, alias="paidToken")
    scope: Optional[str] = None
    detailed: bool = False

    class Config:
        populate_by_name = True


class ModelPriceRequest(BaseModel):
    model: Optional[str] = None
    id: Optional[str] = None
    api_key: Optional[str] = Field(None, alias="apiKey")

    class Config:
        populate_by_name = True


# ---------- Backup ----------

class BackupIn(BaseModel):
    chats: List[ChatIn] = []
    config: Optional[Dict[str, Any]] = None
