# backend/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
import crud
from db import Base, SessionLocal, engine

# IMPORT MODELS so that create_all() sees them
import models  # noqa: F401
from auth import get_password_hash
from catalog import CatalogRegistry
from errors import AppError

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("backend")


def seed_admin(db) -> None:
    """Create the bootstrap admin when the users table is still empty."""
    if not (config.ADMIN_USERNAME and config.ADMIN_PASSWORD):
        return
    if crud.count_users(db) > 0:
        return
    crud.create_user(db, config.ADMIN_USERNAME, get_password_hash(config.ADMIN_PASSWORD), True)
    logger.info("Created bootstrap admin %s", config.ADMIN_USERNAME)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables (users, sessions, chats, chat_messages, images, user_settings)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_admin(db)
    finally:
        db.close()
    logger.info("Application startup complete")
    yield


app = FastAPI(title="SuperKagi backend", lifespan=lifespan)
app.state.catalogs = CatalogRegistry()

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.APP_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ——————————————————————————————————————————————
# Error mapping
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error in %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

@app.get("/")
def root():
    return {"message": "Backend is running"}

# ——————————————————————————————————————————————
# Include authentication, admin, persistence and catalog routers
from auth import router as auth_router
from admin_router import router as admin_router
from chat_router import router as chat_router
from image_router import router as image_router
from settings_router import router as settings_router
from backup_router import router as backup_router
from catalog_router import router as catalog_router

app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(chat_router)
app.include_router(image_router)
app.include_router(settings_router)
app.include_router(backup_router)
app.include_router(catalog_router)
