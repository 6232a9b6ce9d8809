"""Per-member gateway control — the caller's own gateway and admin overrides."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.deps import get_gateway_service, get_org_member, require_org_admin
from app.models.organization import OrgMember
from app.schemas.organization import GatewayStatusResponse
from app.services import org_service
from app.services.errors import GatewayError, InstallationError
from app.services.gateway_service import GatewayService

logger = logging.getLogger(__name__)

router = APIRouter()

ACTIONS = ("deploy", "start", "stop", "remove")


async def _run_action(
    action: str, db: AsyncSession, member: OrgMember, gateways: GatewayService
) -> GatewayStatusResponse:
    try:
        if action == "deploy":
            await gateways.deploy(db, member)
        elif action == "start":
            await gateways.start(db, member)
        elif action == "stop":
            await gateways.stop(db, member)
        else:
            await gateways.remove(db, member)
    except GatewayError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    except InstallationError as exc:
        logger.error("Gateway %s for member %s failed: %s", action, member.id, exc)
        raise HTTPException(status_code=500, detail=str(exc))
    return await gateways.status(member)


@router.get("/me/gateway", response_model=GatewayStatusResponse)
async def my_gateway_status(
    member: OrgMember = Depends(get_org_member),
    gateways: GatewayService = Depends(get_gateway_service),
):
    return await gateways.status(member)


@router.post("/me/gateway/{action}", response_model=GatewayStatusResponse)
async def control_my_gateway(
    action: str,
    member: OrgMember = Depends(get_org_member),
    db: AsyncSession = Depends(get_db),
    gateways: GatewayService = Depends(get_gateway_service),
):
    # Removing a gateway is reserved for admins
    if action not in ("deploy", "start", "stop"):
        raise HTTPException(status_code=404, detail=f"Unknown gateway action: {action}")
    return await _run_action(action, db, member, gateways)


@router.post("/members/{member_id}/gateway/{action}", response_model=GatewayStatusResponse)
async def control_member_gateway(
    member_id: str,
    action: str,
    admin: OrgMember = Depends(require_org_admin),
    db: AsyncSession = Depends(get_db),
    gateways: GatewayService = Depends(get_gateway_service),
):
    if action not in ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown gateway action: {action}")
    member = await org_service.get_member(db, admin.org_id, member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    return await _run_action(action, db, member, gateways)
