# main.py
from dotenv import load_dotenv
load_dotenv()

import os
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from medstock.config import get_settings

# Router utama v1 (dilindungi X-Api-Key via dependencies di routers.py)
from medstock.presentation.routers import router as v1_router
from medstock.presentation.routes.share import landing_router

settings = get_settings()

app = FastAPI(
    title="MedStock",
    version=settings.app_version,
)

# --- logging config HARUS di atas ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app_logger = logging.getLogger("medstock.request")

@app.middleware("http")
async def log_requests(request: Request, call_next):
    app_logger.info(f"➡️ Incoming {request.method} {request.url.path}")
    try:
        response = await call_next(request)
        app_logger.info(f"⬅️ Completed {request.method} {request.url.path} -> {response.status_code}")
        return response
    except Exception:
        app_logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}")
        raise

# ─────────────────────────────────────────────────────────────
# CORS (atur via env: CORS_ALLOW_ORIGINS="https://foo.com,https://bar.com")
# ─────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials="*" not in settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────
app.include_router(v1_router, tags=["api"])
app.include_router(landing_router, tags=["share"])

@app.get("/")
async def root():
    return {
        "name": "MedStock",
        "version": settings.app_version,
        "ok": True,
    }

@app.get("/healthz")
async def healthz():
    # Liveness: proses hidup
    return {"ok": True}

@app.get("/readyz")
async def readyz():
    """
    Readiness: komponen eksternal siap?
    - Mongo ping (snapshot store)
    - Redis ping (staging import)
    - OPENAI_API_KEY tersedia (sugesti/ekstraksi; opsional)
    """
    from medstock.container import get_cache, get_llm, get_snapshot_repo

    checks = {}
    ok = True

    try:
        checks["mongo"] = await get_snapshot_repo().ping()
        ok = ok and checks["mongo"]
    except Exception as e:
        checks["mongo"] = False
        checks["mongo_error"] = str(e)
        ok = False

    try:
        checks["redis"] = await get_cache().ping()
        ok = ok and checks["redis"]
    except Exception as e:
        checks["redis"] = False
        checks["redis_error"] = str(e)
        ok = False

    # LLM config (opsional, tidak mempengaruhi ok)
    checks["openai_configured"] = get_llm().configured()

    return {"ok": ok, **checks}

# ─────────────────────────────────────────────────────────────
# Startup: baca snapshot sekali dari persistence
# ─────────────────────────────────────────────────────────────
@app.on_event("startup")
async def load_inventory():
    from medstock.container import get_inventory_uc
    n = await get_inventory_uc().load()
    app_logger.info(f"📦 Inventory loaded: {n} record(s)")
