"""Domain statistics endpoint."""

from typing import List

from fastapi import APIRouter, Depends

from ...domain.models.domain import DomainStat
from ...domain.services.domain_service import DomainService
from ...infrastructure.dependencies import get_domain_service

router = APIRouter(tags=["domains"])


@router.get("/domains", response_model=List[DomainStat])
async def list_domains(service: DomainService = Depends(get_domain_service)) -> List[DomainStat]:
    """Domains ordered by contribution count, most active first."""
    return await service.list_domains()
