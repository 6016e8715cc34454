import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from candidate_onboarding.config import settings
from candidate_onboarding.middleware.exceptions import register_exception_handlers
from candidate_onboarding.routers import candidates, documents, health, onboarding, users
from candidate_onboarding.utils.cache import close_redis

logger = logging.getLogger("candidate_onboarding")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting candidate onboarding service (%s)", settings.environment)
    yield
    await close_redis()


app = FastAPI(
    title="Candidate Onboarding",
    description="Identity and candidate profile service backing the onboarding wizard",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(users.router, prefix="/api/v2/users", tags=["users"])
app.include_router(candidates.router, prefix="/api/v2/candidates", tags=["candidates"])
app.include_router(onboarding.router, prefix="/api/v2/onboarding", tags=["onboarding"])
app.include_router(documents.router, prefix="/api/v2/documents", tags=["documents"])
