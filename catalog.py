# backend/catalog.py
"""
Short-TTL caching proxy for upstream model catalogs.

Upstream listing endpoints are rate limited, so every successful listing is
kept in memory for a few minutes, keyed by scope, credential and detail
level. Failures are never cached. The response shape differs between
upstreams, scopes and detail levels, so entries are pulled out by trying an
ordered list of shape matchers.
"""

import logging
import re
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests

import config
from errors import MissingCredential, UpstreamError, UpstreamUnavailable

logger = logging.getLogger("backend.catalog")

SUBSCRIPTION = "subscription"
PAID = "paid"
SCOPES = (SUBSCRIPTION, PAID)

Matcher = Callable[[Any], Optional[list]]


def cache_key(scope: str, credential: Optional[str], detailed: bool) -> str:
    return f"{scope}::{credential or 'none'}::{'detailed' if detailed else 'basic'}"


# ─── Shape matchers ────────────────────────────────────────────────────────────

def top_level_list(data):
    return data if isinstance(data, list) else None

def data_field(data):
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        return data["data"]
    return None

def models_field(data):
    if isinstance(data, dict) and isinstance(data.get("models"), list):
        return data["models"]
    return None

def models_image_values(data):
    models = data.get("models") if isinstance(data, dict) else None
    if isinstance(models, dict) and isinstance(models.get("image"), dict):
        return list(models["image"].values())
    return None

def models_values(data):
    models = data.get("models") if isinstance(data, dict) else None
    if isinstance(models, dict):
        return list(models.values())
    return None


SUBSCRIPTION_MATCHERS = (top_level_list, data_field, models_field)
PAID_MATCHERS = (models_field, data_field, models_image_values, models_values, top_level_list)
OPENROUTER_MATCHERS = (data_field,)


def extract_entries(data: Any, matchers: Sequence[Matcher]) -> list:
    """Return the first non-empty list a matcher finds, else []."""
    for matcher in matchers:
        found = matcher(data)
        if found:
            return found
    return []


# ─── Cache ─────────────────────────────────────────────────────────────────────

class CatalogCache:
    """In-memory map of key -> (payload, fetched_at); entries expire on read."""

    def __init__(self, ttl: float = config.CATALOG_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, tuple] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[dict]:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        payload, fetched_at = entry
        if self.clock() - fetched_at < self.ttl:
            return payload
        return None

    def put(self, key: str, payload: dict) -> None:
        with self._lock:
            self._entries[key] = (payload, self.clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self):
        return len(self._entries)


# ─── Upstream catalog ──────────────────────────────────────────────────────────

def auth_headers(scope: str, credential: Optional[str]) -> Dict[str, str]:
    if not credential:
        return {}
    if scope == SUBSCRIPTION:
        return {"x-api-key": credential}
    return {"Authorization": f"Bearer {credential}"}


def parse_body(resp) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


class UpstreamCatalog:
    """One upstream listing endpoint served through a CatalogCache."""

    def __init__(
        self,
        name: str,
        url_for: Callable[[str, bool], str],
        matchers_for: Callable[[str], Sequence[Matcher]],
        cache: CatalogCache = None,
        http=None,
        timeout: float = config.UPSTREAM_TIMEOUT,
        extra_headers: Dict[str, str] = None,
    ):
        self.name = name
        self.url_for = url_for
        self.matchers_for = matchers_for
        self.cache = cache if cache is not None else CatalogCache()
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout
        self.extra_headers = extra_headers or {}

    def fetch(self, scope: str, credential: Optional[str], detailed: bool = False) -> dict:
        """Return {"models": [...], "raw": <upstream payload>}."""
        key = cache_key(scope, credential, detailed)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("%s catalog cache hit (%s)", self.name, scope)
            return cached

        url = self.url_for(scope, detailed)
        headers = {**self.extra_headers, **auth_headers(scope, credential)}
        logger.info("Fetching %s catalog (%s, detailed=%s)", self.name, scope, detailed)
        try:
            resp = self.http.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("%s catalog request failed: %s", self.name, e)
            raise UpstreamUnavailable(f"Request to {self.name} failed")

        data = parse_body(resp)
        if not resp.ok:
            logger.warning("%s catalog returned status %s", self.name, resp.status_code)
            raise UpstreamError(f"{self.name} model fetch failed", status=resp.status_code, body=data)

        payload = {"models": extract_entries(data, self.matchers_for(scope)), "raw": data}
        self.cache.put(key, payload)
        return payload


# ─── NanoGPT URLs ──────────────────────────────────────────────────────────────

_NANO_SUFFIXES = (
    r"/api/subscription/v1$",
    r"/api/paid/v1$",
    r"/api/v1thinking$",
    r"/api/v1legacy$",
    r"/api/v1$",
    r"/v1thinking$",
    r"/v1legacy$",
    r"/v1$",
)


def nano_root(base: str = None) -> str:
    """Strip API-version and chat suffixes from a NanoGPT base URL."""
    root = (base or config.NANOGPT_BASE_URL).rstrip("/")
    root = re.sub(r"/chat/completions$", "", root, flags=re.I)
    for suffix in _NANO_SUFFIXES:
        root = re.sub(suffix, "", root, flags=re.I)
    return root


def _with_detail(url: str, detailed: bool) -> str:
    return f"{url}?detailed=true" if detailed else url


def nano_text_models_url(scope: str, detailed: bool, base: str = None) -> str:
    tier = "paid" if scope == PAID else "subscription"
    return _with_detail(f"{nano_root(base)}/api/{tier}/v1/models", detailed)


def nano_image_models_url(scope: str, detailed: bool, base: str = None) -> str:
    if scope == PAID:
        return _with_detail(f"{nano_root(base)}/api/models/image", detailed)
    return _with_detail(f"{nano_root(base)}/api/subscription/v1/image-models", detailed)


def openrouter_models_url(scope: str, detailed: bool) -> str:
    return config.OPENROUTER_MODELS_URL


# ─── Credentials ───────────────────────────────────────────────────────────────

def nano_credential(scope: str, api_key: Optional[str] = None, paid_token: Optional[str] = None) -> Optional[str]:
    """Pick the credential for a NanoGPT scope; subscription cannot go without one."""
    api_key = (api_key or "").strip() or config.NANOGPT_API_KEY
    if scope == PAID:
        return (paid_token or "").strip() or config.NANOGPT_PAID_TOKEN or api_key or None
    if not api_key:
        raise MissingCredential("Missing NanoGPT API key")
    return api_key


def openrouter_credential(api_key: Optional[str] = None) -> str:
    key = (api_key or "").strip() or config.OPENROUTER_API_KEY
    if not key:
        raise MissingCredential("Missing OpenRouter API key")
    return key


def find_model(models: List[dict], model_id: str) -> Optional[dict]:
    target = model_id.lower()
    for model in models:
        if not isinstance(model, dict):
            continue
        for field in ("id", "model", "name", "canonical_slug"):
            value = model.get(field)
            if isinstance(value, str) and value.lower() == target:
                return model
    return None


class CatalogRegistry:
    """The process-lifetime set of catalogs, owned by the app."""

    def __init__(self, http=None, clock: Callable[[], float] = time.monotonic, ttl: float = config.CATALOG_TTL_SECONDS):
        http = http if http is not None else requests.Session()

        def new_cache():
            return CatalogCache(ttl=ttl, clock=clock)

        def nano_matchers(scope):
            return PAID_MATCHERS if scope == PAID else SUBSCRIPTION_MATCHERS

        self.nano_models = UpstreamCatalog(
            "NanoGPT", nano_text_models_url, nano_matchers, cache=new_cache(), http=http,
        )
        self.nano_image_models = UpstreamCatalog(
            "NanoGPT image", nano_image_models_url, nano_matchers, cache=new_cache(), http=http,
        )
        self.openrouter_models = UpstreamCatalog(
            "OpenRouter",
            openrouter_models_url,
            lambda scope: OPENROUTER_MATCHERS,
            cache=new_cache(),
            http=http,
            extra_headers={"HTTP-Referer": config.APP_ORIGIN, "X-Title": "SuperKagi"},
        )

    def openrouter_pricing(self, model_id: str, api_key: Optional[str] = None) -> Optional[dict]:
        payload = self.openrouter_models.fetch(PAID, openrouter_credential(api_key))
        model = find_model(payload["models"], model_id)
        return model.get("pricing") if model else None
