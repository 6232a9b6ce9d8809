"""Gateway service — deploy, start, stop and remove per-member OpenClaw gateways.

Every member owns ``<data_dir>/gateways/<member_id>/``::

    openclaw.json                      gateway config (port, token, skills)
    .env                               provider keys exported to the gateway
    agents/main/agent/auth-profiles.json
    skills/<name>/...                  written by SkillInstaller
    gateway.log, gateway.pid           written by the runtime
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
import shutil
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.base import GatewayRuntime
from app.config import Settings
from app.models.organization import OrgMember
from app.schemas.api_key import PROVIDER_ENV_VARS
from app.schemas.organization import GatewayStatusResponse
from app.services import api_key_service, skill_service
from app.services.errors import GatewayError, InstallationError
from app.services.skill_installer import InstallReport, SkillInstaller
from app.utils.locks import KeyedLocks

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("running", "deploying")


def build_openclaw_config(*, port: int, token: str, skills: list[str], version: str) -> dict:
    config: dict = {
        "meta": {
            "lastTouchedVersion": version,
            "lastTouchedAt": datetime.now(timezone.utc).isoformat(),
        },
        "commands": {"native": "auto", "nativeSkills": "auto"},
        "gateway": {
            "mode": "local",
            "port": port,
            "auth": {"mode": "token", "token": token},
        },
    }
    if skills:
        config["skills"] = [{"path": f"skills/{name}"} for name in skills]
    return config


def build_auth_profiles(keys: dict[str, str]) -> dict:
    return {
        "version": 1,
        "profiles": {
            f"{provider}:default": {"type": "api_key", "provider": provider, "key": key}
            for provider, key in keys.items()
        },
    }


def build_env(keys: dict[str, str]) -> dict[str, str]:
    """Map provider keys onto the environment variables the gateway reads."""
    return {PROVIDER_ENV_VARS[p]: key for p, key in keys.items() if p in PROVIDER_ENV_VARS}


def _write_gateway_files(
    gateway_dir: Path, config: dict, env: dict[str, str], auth_profiles: dict
) -> None:
    gateway_dir.mkdir(parents=True, exist_ok=True)
    (gateway_dir / "openclaw.json").write_text(json.dumps(config, indent=2) + "\n")

    lines = [f"{k}={v}" for k, v in sorted(env.items())]
    env_path = gateway_dir / ".env"
    env_path.write_text("\n".join(lines) + "\n" if lines else "")
    env_path.chmod(0o600)

    agent_dir = gateway_dir / "agents" / "main" / "agent"
    agent_dir.mkdir(parents=True, exist_ok=True)
    profiles_path = agent_dir / "auth-profiles.json"
    profiles_path.write_text(json.dumps(auth_profiles, indent=2) + "\n")
    profiles_path.chmod(0o600)


class GatewayService:
    def __init__(self, settings: Settings, installer: SkillInstaller, runtime: GatewayRuntime):
        self.settings = settings
        self.installer = installer
        self.runtime = runtime
        self._locks = KeyedLocks()

    def gateway_dir(self, member: OrgMember) -> Path:
        return self.installer.skills_dir(member.id).parent

    async def _allocate_port(self, db: AsyncSession, member: OrgMember) -> int:
        stmt = select(OrgMember.gateway_port).where(
            OrgMember.gateway_port.is_not(None), OrgMember.id != member.id
        )
        used = set((await db.execute(stmt)).scalars().all())
        for port in range(self.settings.gateway_port_start, self.settings.gateway_port_end + 1):
            if port not in used:
                return port
        raise GatewayError("No free gateway port left")

    async def _set_status(self, db: AsyncSession, member: OrgMember, status: str | None) -> None:
        member.gateway_status = status
        await db.commit()

    async def deploy(self, db: AsyncSession, member: OrgMember) -> InstallReport:
        """Install the member's skills, write the gateway config and (re)start it."""
        async with self._locks.hold(member.id):
            if member.gateway_port is None:
                member.gateway_port = await self._allocate_port(db, member)
            if not member.gateway_token:
                member.gateway_token = secrets.token_urlsafe(32)
            await self._set_status(db, member, "deploying")

            skills = await skill_service.effective_skills(db, member.org_id, member.user_id)
            try:
                report = await self.installer.install_all(member.id, skills)
            except InstallationError:
                await self._set_status(db, member, "stopped")
                raise

            keys = {row.provider: plain for row, plain in await api_key_service.get_decrypted_keys(db, member.org_id)}
            env = build_env(keys)
            config = build_openclaw_config(
                port=member.gateway_port,
                token=member.gateway_token,
                skills=report.installed,
                version=self.settings.openclaw_version,
            )
            gateway_dir = self.gateway_dir(member)
            try:
                await asyncio.to_thread(_write_gateway_files, gateway_dir, config, env, build_auth_profiles(keys))
            except OSError as exc:
                await self._set_status(db, member, "stopped")
                raise InstallationError(f"Could not write gateway config in {gateway_dir}: {exc}") from exc

            try:
                await self.runtime.start(
                    gateway_dir, port=member.gateway_port, token=member.gateway_token, env=env,
                )
            except GatewayError:
                await self._set_status(db, member, "stopped")
                raise

            await self._set_status(db, member, "running")
            logger.info("Deployed gateway for member %s on port %d", member.id, member.gateway_port)
            return report

    async def redeploy(self, db: AsyncSession, member: OrgMember) -> InstallReport:
        # Port and token are kept on the member row, so deploy reuses them
        return await self.deploy(db, member)

    async def redeploy_if_active(self, db: AsyncSession, member: OrgMember) -> None:
        """Redeploy after a skill change; failures are logged, never raised."""
        if member.gateway_port is None or member.gateway_status not in ACTIVE_STATUSES:
            return
        try:
            await self.redeploy(db, member)
        except (GatewayError, InstallationError) as exc:
            logger.error("Redeploy for member %s failed: %s", member.id, exc)

    async def start(self, db: AsyncSession, member: OrgMember) -> None:
        """Start an already-deployed gateway without reinstalling skills."""
        gateway_dir = self.gateway_dir(member)
        async with self._locks.hold(member.id):
            if member.gateway_port is None or not (gateway_dir / "openclaw.json").exists():
                raise GatewayError("Gateway has not been deployed")

            keys = {row.provider: plain for row, plain in await api_key_service.get_decrypted_keys(db, member.org_id)}
            try:
                await self.runtime.start(
                    gateway_dir, port=member.gateway_port, token=member.gateway_token or "", env=build_env(keys),
                )
            except GatewayError:
                await self._set_status(db, member, "stopped")
                raise
            await self._set_status(db, member, "running")

    async def stop(self, db: AsyncSession, member: OrgMember) -> None:
        async with self._locks.hold(member.id):
            await self.runtime.stop(self.gateway_dir(member))
            await self._set_status(db, member, "stopped")
        logger.info("Stopped gateway for member %s", member.id)

    async def remove(self, db: AsyncSession, member: OrgMember) -> None:
        """Stop the gateway, delete its directory and release its port."""
        gateway_dir = self.gateway_dir(member)
        async with self._locks.hold(member.id):
            await self.runtime.stop(gateway_dir)
            try:
                await asyncio.to_thread(shutil.rmtree, gateway_dir)
            except FileNotFoundError:
                pass
            except OSError as exc:
                raise InstallationError(f"Could not remove {gateway_dir}: {exc}") from exc

            member.gateway_port = None
            member.gateway_token = None
            member.gateway_status = None
            await db.commit()
        logger.info("Removed gateway for member %s", member.id)

    async def status(self, member: OrgMember) -> GatewayStatusResponse:
        running = False
        if member.gateway_port is not None:
            running = await self.runtime.is_running(member.gateway_port)

        skills_dir = self.gateway_dir(member) / "skills"
        installed = await asyncio.to_thread(
            lambda: sorted(p.name for p in skills_dir.iterdir() if p.is_dir()) if skills_dir.is_dir() else []
        )
        return GatewayStatusResponse(
            member_id=member.id,
            gateway_status=member.gateway_status,
            gateway_port=member.gateway_port,
            running=running,
            installed_skills=installed,
        )
