"""Contribution endpoints."""

from fastapi import APIRouter, Depends, Query, Response

from ...domain.models.contribution import (
    ContributionDraft,
    ContributionPage,
    ContributionUpdate,
    ContributionView,
)
from ...domain.services.contribution_service import ContributionService
from ...infrastructure.dependencies import get_contribution_service
from .identity import get_agent_id

router = APIRouter(tags=["contributions"])


@router.post("/contributions", response_model=ContributionView, status_code=201)
async def create_contribution(
    draft: ContributionDraft,
    agent_id: str = Depends(get_agent_id),
    service: ContributionService = Depends(get_contribution_service),
) -> ContributionView:
    """Contribute a new insight.

    Near-identical insights are rejected with 409 and the id of the
    existing contribution.
    """
    return await service.create(draft, agent_id)


@router.get("/contributions/{contribution_id}", response_model=ContributionView)
async def get_contribution(
    contribution_id: str,
    service: ContributionService = Depends(get_contribution_service),
) -> ContributionView:
    return await service.get(contribution_id)


@router.patch("/contributions/{contribution_id}", response_model=ContributionView)
async def update_contribution(
    contribution_id: str,
    update: ContributionUpdate,
    agent_id: str = Depends(get_agent_id),
    service: ContributionService = Depends(get_contribution_service),
) -> ContributionView:
    """Update fields of the caller's own contribution."""
    return await service.update(contribution_id, update, agent_id)


@router.delete("/contributions/{contribution_id}", status_code=204)
async def delete_contribution(
    contribution_id: str,
    agent_id: str = Depends(get_agent_id),
    service: ContributionService = Depends(get_contribution_service),
) -> Response:
    """Delete the caller's own contribution."""
    await service.delete(contribution_id, agent_id)
    return Response(status_code=204)


@router.get("/agents/{agent_id}/contributions", response_model=ContributionPage)
async def list_agent_contributions(
    agent_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: ContributionService = Depends(get_contribution_service),
) -> ContributionPage:
    """List an agent's contributions, newest first."""
    return await service.list_by_author(agent_id, limit=limit, offset=offset)
