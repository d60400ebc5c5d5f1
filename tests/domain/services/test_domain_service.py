"""Tests for domain statistics."""

import pytest

from insight_commons.domain.services.domain_service import DomainService


@pytest.mark.asyncio
async def test_domains_ordered_by_contribution_count(contribution_store, make_contribution):
    await make_contribution(claim="one", confidence=0.6, domain_tags=["memory", "python"])
    await make_contribution(claim="two", confidence=0.8, domain_tags=["python"])
    latest = await make_contribution(claim="three", confidence=1.0, domain_tags=["python", "testing"])

    domains = await DomainService(contribution_store).list_domains()

    assert [d.domain for d in domains][0] == "python"
    python = domains[0]
    assert python.contribution_count == 3
    assert python.avg_confidence == pytest.approx(0.8)
    assert python.latest_contribution == latest.created_at
    assert {d.domain: d.contribution_count for d in domains} == {"python": 3, "memory": 1, "testing": 1}


@pytest.mark.asyncio
async def test_no_domains_for_empty_store(contribution_store):
    assert await DomainService(contribution_store).list_domains() == []
