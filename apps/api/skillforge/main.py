from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import skillforge.models  # noqa: F401  registers tables on Base.metadata
from skillforge.api.v1.router import api_router
from skillforge.core.config import settings
from skillforge.core.database import Base, engine
from skillforge.core.platform import Platform
from skillforge.core.rate_limit import RateLimitMiddleware

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    Path(settings.storage_dir).mkdir(parents=True, exist_ok=True)
    platform = getattr(app.state, "platform", None) or Platform(settings)
    app.state.platform = platform
    await platform.cache.connect()
    logger.info("SkillForge API started (cache backend: %s)", platform.cache.backend)
    yield
    await platform.close()


app = FastAPI(
    title="SkillForge API",
    version="1.0.0",
    description="Skill-sharing platform with AI quizzes, tutoring and learning plans.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
if settings.rate_limit_enabled:
    app.add_middleware(
        RateLimitMiddleware,
        limit=settings.rate_limit_per_minute,
        ai_limit=settings.ai_rate_limit_per_minute,
        window_seconds=60,
    )


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(api_router, prefix=settings.api_v1_prefix)
app.mount(settings.public_storage_url, StaticFiles(directory=settings.storage_dir, check_dir=False), name="files")
