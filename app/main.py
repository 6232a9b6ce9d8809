"""FastAPI application entrypoint."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.adapters.base import GatewayRuntime, GitClient
from app.adapters.git import CliGitClient
from app.adapters.openclaw import OpenClawRuntime
from app.config import Settings, settings
from app.database import init_db
from app.routers import admin_skills, api_keys, gateways, orgs, user_skills, users
from app.services.gateway_service import GatewayService
from app.services.repo_cache import RepoCache
from app.services.skill_installer import SkillInstaller
from app.services.skill_scanner import SkillScanner

# ── Logging setup ────────────────────────────────────────────────────
_log_level = os.environ.get("CLAWHUDDLE_LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)


def configure_services(app: FastAPI, cfg: Settings, git: GitClient, runtime: GatewayRuntime) -> None:
    """Build the skill and gateway services once and hang them on ``app.state``."""
    cache = RepoCache(
        cfg.data_dir, git,
        clone_timeout=cfg.git_clone_timeout,
        pull_timeout=cfg.git_pull_timeout,
    )
    app.state.scanner = SkillScanner(cache)
    app.state.gateways = GatewayService(cfg, SkillInstaller(cfg.data_dir, cache), runtime)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    configure_services(app, settings, CliGitClient(), OpenClawRuntime(host=settings.gateway_host))
    logger.info("Data directory: %s", settings.data_dir.resolve())

    yield


app = FastAPI(
    title="ClawHuddle",
    description="Team control plane for per-member OpenClaw gateways",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],  # Next.js dev
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(users.router, prefix="/api", tags=["users"])
app.include_router(orgs.router, prefix="/api/orgs", tags=["orgs"])
app.include_router(admin_skills.router, prefix="/api/orgs/{org_id}/admin/skills", tags=["admin-skills"])
app.include_router(user_skills.router, prefix="/api/orgs/{org_id}/me/skills", tags=["skills"])
app.include_router(api_keys.router, prefix="/api/orgs/{org_id}/api-keys", tags=["api-keys"])
app.include_router(gateways.router, prefix="/api/orgs/{org_id}", tags=["gateways"])


@app.get("/health")
async def health():
    return {"status": "ok", "service": "clawhuddle"}
