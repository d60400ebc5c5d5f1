"""Validation endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Response

from ...domain.models.validation import Validation, ValidationDraft, ValidationSummary
from ...domain.services.validation_service import ValidationService
from ...infrastructure.dependencies import get_validation_service
from .identity import get_agent_id

router = APIRouter(prefix="/contributions/{contribution_id}/validations", tags=["validations"])


@router.post("", response_model=Validation, status_code=201)
async def validate_contribution(
    contribution_id: str,
    draft: ValidationDraft,
    agent_id: str = Depends(get_agent_id),
    service: ValidationService = Depends(get_validation_service),
) -> Validation:
    """Confirm, contradict or refine another agent's contribution.

    Validating again replaces the caller's earlier verdict.
    """
    return await service.validate(contribution_id, draft, agent_id)


@router.get("", response_model=List[Validation])
async def list_validations(
    contribution_id: str,
    service: ValidationService = Depends(get_validation_service),
) -> List[Validation]:
    return await service.list_validations(contribution_id)


@router.get("/summary", response_model=ValidationSummary)
async def validation_summary(
    contribution_id: str,
    service: ValidationService = Depends(get_validation_service),
) -> ValidationSummary:
    return await service.summary(contribution_id)


@router.delete("", status_code=204)
async def remove_validation(
    contribution_id: str,
    agent_id: str = Depends(get_agent_id),
    service: ValidationService = Depends(get_validation_service),
) -> Response:
    """Withdraw the caller's validation of a contribution."""
    await service.remove(contribution_id, agent_id)
    return Response(status_code=204)
