# backend/image_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import crud
import models
import schemas
from auth import get_current_user
from db import get_db
from errors import NotFound

router = APIRouter(
    prefix="/persistence/images",
    tags=["images"]
)


def image_to_dict(image: models.Image) -> dict:
    return {
        "id": image.id,
        "url": image.url,
        "prompt": image.prompt,
        "model": image.model,
        "size": image.size,
        "steps": image.steps,
        "guidanceScale": image.guidance_scale,
        "seed": image.seed,
        "cost": image.cost,
        "createdAt": image.created_at,
        "sourceImageUrl": image.source_image_url,
    }


# GET /persistence/images → the current user's images only
@router.get("")
def list_images(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    return {"images": [image_to_dict(i) for i in crud.list_images(db, current_user.id)]}

# POST /persistence/images → owner is taken from the session, never the body
@router.post("")
def save_image(
    image: schemas.ImageIn,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    crud.save_image(db, image, current_user.id)
    return {"ok": True}

# DELETE /persistence/images/{image_id} → someone else's image reads as missing
@router.delete("/{image_id}")
def delete_image(
    image_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    if not crud.delete_image(db, image_id, current_user.id):
        raise NotFound("Image not found")
    return {"ok": True}
