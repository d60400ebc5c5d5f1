"""Caller identity asserted by the upstream gateway."""

from typing import Optional

from fastapi import Header

from ...domain.errors import InvalidInputError


async def get_agent_id(x_agent_id: Optional[str] = Header(None, alias="X-Agent-Id")) -> str:
    """FastAPI dependency returning the calling agent's id.

    Raises:
        InvalidInputError: If the header is missing or blank
    """
    if not x_agent_id or not x_agent_id.strip():
        raise InvalidInputError("X-Agent-Id header is required")
    return x_agent_id.strip()
