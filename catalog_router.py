# backend/catalog_router.py

from typing import Optional

from fastapi import APIRouter, Depends, Request

import schemas
from catalog import PAID, SUBSCRIPTION, CatalogRegistry, nano_credential, openrouter_credential
from errors import InvalidInput, NotFound

router = APIRouter(tags=["catalog"])


def get_catalogs(request: Request) -> CatalogRegistry:
    return request.app.state.catalogs


def _scope(body: schemas.CatalogRequest) -> str:
    return PAID if body.scope == PAID else SUBSCRIPTION


# POST /nanogpt/models → text models
@router.post("/nanogpt/models")
def nanogpt_models(
    body: Optional[schemas.CatalogRequest] = None,
    catalogs: CatalogRegistry = Depends(get_catalogs)
):
    body = body or schemas.CatalogRequest()
    scope = _scope(body)
    credential = nano_credential(scope, body.api_key, body.paid_token)
    return catalogs.nano_models.fetch(scope, credential, body.detailed)


# POST /nanogpt/image-models → image models, subscription or paid
@router.post("/nanogpt/image-models")
def nanogpt_image_models(
    body: Optional[schemas.CatalogRequest] = None,
    catalogs: CatalogRegistry = Depends(get_catalogs)
):
    body = body or schemas.CatalogRequest()
    scope = _scope(body)
    credential = nano_credential(scope, body.api_key, body.paid_token)
    return catalogs.nano_image_models.fetch(scope, credential, body.detailed)


# POST /openrouter/models
@router.post("/openrouter/models")
def openrouter_models(
    body: Optional[schemas.CatalogRequest] = None,
    catalogs: CatalogRegistry = Depends(get_catalogs)
):
    body = body or schemas.CatalogRequest()
    return catalogs.openrouter_models.fetch(PAID, openrouter_credential(body.api_key))


# POST /openrouter/model-price → pricing of one model from the cached catalog
@router.post("/openrouter/model-price")
def openrouter_model_price(
    body: Optional[schemas.ModelPriceRequest] = None,
    catalogs: CatalogRegistry = Depends(get_catalogs)
):
    body = body or schemas.ModelPriceRequest()
    model_id = (body.model or body.id or "").strip()
    if not model_id:
        raise InvalidInput("Missing model id")
    pricing = catalogs.openrouter_pricing(model_id, body.api_key)
    if pricing is None:
        raise NotFound(f"Model not found: {model_id}")
    return {"model": model_id, "pricing": pricing}
