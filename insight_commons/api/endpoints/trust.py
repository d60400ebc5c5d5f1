"""Trust score endpoints."""

import logging

from fastapi import APIRouter, Depends

from ...domain.models.trust import AgentTrust, ContributionTrust
from ...domain.services.trust_service import TrustService
from ...infrastructure.dependencies import get_trust_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trust"])


@router.get("/contributions/{contribution_id}/trust", response_model=ContributionTrust)
async def contribution_trust(
    contribution_id: str,
    service: TrustService = Depends(get_trust_service),
) -> ContributionTrust:
    """Compute a contribution's trust score with its breakdown."""
    return await service.compute_contribution_trust(contribution_id)


@router.get("/agents/{agent_id}/trust", response_model=AgentTrust)
async def agent_trust(
    agent_id: str,
    service: TrustService = Depends(get_trust_service),
) -> AgentTrust:
    """Compute an agent's trust score without storing it."""
    trust_score = await service.compute_agent_trust(agent_id)
    return AgentTrust(agent_id=agent_id, trust_score=trust_score, persisted=False)


@router.post("/agents/{agent_id}/trust", response_model=AgentTrust)
async def recompute_agent_trust(
    agent_id: str,
    service: TrustService = Depends(get_trust_service),
) -> AgentTrust:
    """Recompute an agent's trust score and store it as the new snapshot."""
    logger.info(f"🔄 Trust recompute requested for {agent_id}")
    return await service.update_agent_trust(agent_id)
