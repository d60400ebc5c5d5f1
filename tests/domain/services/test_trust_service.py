"""Tests for contribution and agent trust."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from insight_commons.domain.errors import InternalError, NotFoundError
from insight_commons.domain.models.validation import Validation, ValidationSignal, ValidationSummary
from insight_commons.domain.services.trust_service import TrustService


async def add_validations(validation_store, contribution_id: str, *signals: ValidationSignal) -> None:
    for index, signal in enumerate(signals):
        await validation_store.upsert(
            Validation(contribution_id=contribution_id, agent_id=f"validator-{index}", signal=signal)
        )


@pytest.mark.asyncio
async def test_contribution_trust_without_validations(trust_service, make_contribution):
    """Test that trust is author trust times confidence when nobody validated."""
    contribution = await make_contribution(author_id="alice", confidence=0.8)

    trust = await trust_service.compute_contribution_trust(contribution.id)

    assert trust.score == 0.4
    assert trust.breakdown.base == 0.4
    assert trust.breakdown.boost == 0
    assert (trust.breakdown.confirmed, trust.breakdown.contradicted, trust.breakdown.refined) == (0, 0, 0)


@pytest.mark.asyncio
async def test_confirmations_raise_contribution_trust(trust_service, make_contribution, validation_store):
    contribution = await make_contribution(author_id="alice", confidence=0.8)
    await add_validations(
        validation_store, contribution.id, ValidationSignal.CONFIRMED, ValidationSignal.CONFIRMED
    )

    trust = await trust_service.compute_contribution_trust(contribution.id)

    assert trust.breakdown.boost == pytest.approx(0.2)
    assert trust.score == pytest.approx(0.6)


@pytest.mark.asyncio
async def test_contradiction_costs_more_than_confirmation_earns(
    trust_service, make_contribution, validation_store
):
    contribution = await make_contribution(author_id="alice", confidence=0.8)
    await add_validations(validation_store, contribution.id, ValidationSignal.CONTRADICTED)

    trust = await trust_service.compute_contribution_trust(contribution.id)

    assert trust.breakdown.boost == pytest.approx(-0.15)
    assert trust.score == pytest.approx(0.25)


@pytest.mark.asyncio
async def test_refinements_add_a_small_boost(trust_service, make_contribution, validation_store):
    contribution = await make_contribution(author_id="alice", confidence=0.8)
    await add_validations(validation_store, contribution.id, ValidationSignal.REFINED)

    trust = await trust_service.compute_contribution_trust(contribution.id)

    assert trust.score == pytest.approx(0.45)


@pytest.mark.asyncio
async def test_contribution_trust_is_clamped(trust_service, make_contribution, validation_store):
    """Test both ends of the [0, 1] range."""
    high = await make_contribution(author_id="carol", confidence=1.0, embedding=[1.0] + [0.0] * 7)
    low = await make_contribution(author_id="alice", confidence=0.1, embedding=[0.0, 1.0] + [0.0] * 6)
    await add_validations(validation_store, high.id, *[ValidationSignal.CONFIRMED] * 5)
    await add_validations(validation_store, low.id, *[ValidationSignal.CONTRADICTED] * 5)

    assert (await trust_service.compute_contribution_trust(high.id)).score == 1.0
    assert (await trust_service.compute_contribution_trust(low.id)).score == 0.0


@pytest.mark.asyncio
async def test_unknown_author_uses_default_trust(trust_service, make_contribution):
    contribution = await make_contribution(author_id="ghost", confidence=1.0)

    trust = await trust_service.compute_contribution_trust(contribution.id)

    assert trust.score == pytest.approx(0.5)


@pytest.mark.asyncio
async def test_unknown_contribution_raises_not_found(trust_service):
    with pytest.raises(NotFoundError):
        await trust_service.compute_contribution_trust("missing")


@pytest.mark.asyncio
async def test_collaborator_failure_becomes_internal_error(agent_directory, validation_store):
    store = AsyncMock()
    store.get.side_effect = ConnectionError("timeout")
    service = TrustService(store, agent_directory, validation_store)

    with pytest.raises(InternalError):
        await service.compute_contribution_trust("anything")


@pytest.mark.asyncio
async def test_agent_trust_rises_with_net_positive_contribution(
    trust_service, make_contribution, validation_store, agent_directory
):
    """Test the baseline plus one net-positive contribution, and persistence."""
    contribution = await make_contribution(author_id="alice")
    await add_validations(validation_store, contribution.id, ValidationSignal.CONFIRMED)

    assert await trust_service.compute_agent_trust("alice") == pytest.approx(0.52)

    updated = await trust_service.update_agent_trust("alice")

    assert updated.trust_score == pytest.approx(0.52)
    assert updated.persisted is True
    assert (await agent_directory.get("alice")).trust_score == pytest.approx(0.52)


@pytest.mark.asyncio
async def test_agent_trust_counts_net_verdicts_only(
    trust_service, make_contribution, validation_store
):
    """Test that ties and refinements leave agent trust unchanged."""
    positive = await make_contribution(author_id="bob", embedding=[1.0] + [0.0] * 7)
    negative = await make_contribution(author_id="bob", embedding=[0.0, 1.0] + [0.0] * 6)
    tied = await make_contribution(author_id="bob", embedding=[0.0, 0.0, 1.0] + [0.0] * 5)
    refined = await make_contribution(author_id="bob", embedding=[0.0, 0.0, 0.0, 1.0] + [0.0] * 4)
    await add_validations(validation_store, positive.id, ValidationSignal.CONFIRMED, ValidationSignal.REFINED)
    await add_validations(validation_store, negative.id, ValidationSignal.CONTRADICTED)
    await add_validations(
        validation_store, tied.id, ValidationSignal.CONFIRMED, ValidationSignal.CONTRADICTED
    )
    await add_validations(validation_store, refined.id, ValidationSignal.REFINED, ValidationSignal.REFINED)

    assert await trust_service.compute_agent_trust("bob") == pytest.approx(0.5 + 0.02 - 0.03)


@pytest.mark.asyncio
async def test_agent_without_contributions_has_baseline_trust(trust_service):
    assert await trust_service.compute_agent_trust("alice") == 0.5


@pytest.mark.asyncio
async def test_agent_trust_is_bounded(agent_directory):
    """Test the floor and ceiling with many contributions."""
    store = AsyncMock()
    validations = AsyncMock()
    contributions = [SimpleNamespace(id=f"c{i}") for i in range(40)]
    store.list_by_author.return_value = contributions
    service = TrustService(store, agent_directory, validations)

    validations.summaries.return_value = {c.id: ValidationSummary(confirmed=1) for c in contributions}
    assert await service.compute_agent_trust("carol") == 1.0

    validations.summaries.return_value = {c.id: ValidationSummary(contradicted=1) for c in contributions}
    assert await service.compute_agent_trust("carol") == 0.1


@pytest.mark.asyncio
async def test_update_unknown_agent_raises_not_found(trust_service):
    with pytest.raises(NotFoundError):
        await trust_service.update_agent_trust("ghost")
