# backend/config.py

import os
from dotenv import load_dotenv

# load .env file automatically
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/app.db")

# ─── Sessions ──────────────────────────────────────────────────────────────────
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "superkagi_session")
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))
APP_ORIGIN = os.getenv("APP_ORIGIN", "http://localhost:3545")
# only mark the cookie secure when the app is actually served over https
COOKIE_SECURE = APP_ORIGIN.startswith("https://")

# bootstrap admin, created on startup when the users table is empty
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")

# ─── Upstream catalogs ─────────────────────────────────────────────────────────
NANOGPT_API_KEY = os.getenv("NANOGPT_API_KEY", "")
NANOGPT_PAID_TOKEN = os.getenv("NANOGPT_PAID_TOKEN", "")
NANOGPT_BASE_URL = os.getenv("NANOGPT_BASE_URL", "https://nano-gpt.com/api/v1")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_MODELS_URL = "https://openrouter.ai/api/v1/models"

CATALOG_TTL_SECONDS = int(os.getenv("CATALOG_TTL_SECONDS", "300"))
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "15"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
