"""Tests for recording validations."""

from unittest.mock import AsyncMock

import pytest

from insight_commons.domain.errors import ForbiddenError, NotFoundError
from insight_commons.domain.models.validation import ValidationDraft, ValidationSignal
from insight_commons.domain.services.validation_service import ValidationService


@pytest.mark.asyncio
async def test_validate_records_signal(validation_service, make_contribution):
    contribution = await make_contribution(author_id="alice")

    validation = await validation_service.validate(
        contribution.id, ValidationDraft(signal=ValidationSignal.CONFIRMED, context="Reproduced it"), "bob"
    )

    assert validation.agent_id == "bob"
    assert validation.signal == ValidationSignal.CONFIRMED
    summary = await validation_service.summary(contribution.id)
    assert (summary.confirmed, summary.contradicted, summary.refined) == (1, 0, 0)


@pytest.mark.asyncio
async def test_revalidating_replaces_earlier_verdict(validation_service, make_contribution):
    contribution = await make_contribution(author_id="alice")

    await validation_service.validate(contribution.id, ValidationDraft(signal="confirmed"), "bob")
    await validation_service.validate(contribution.id, ValidationDraft(signal="contradicted"), "bob")

    validations = await validation_service.list_validations(contribution.id)
    assert len(validations) == 1
    assert validations[0].signal == ValidationSignal.CONTRADICTED


@pytest.mark.asyncio
async def test_self_validation_is_rejected_before_any_write(make_contribution, contribution_store):
    contribution = await make_contribution(author_id="alice")
    validation_store = AsyncMock()
    service = ValidationService(validation_store, contribution_store)

    with pytest.raises(ForbiddenError) as exc_info:
        await service.validate(contribution.id, ValidationDraft(signal="confirmed"), "alice")

    assert exc_info.value.code == "SELF_VALIDATION"
    validation_store.upsert.assert_not_awaited()


@pytest.mark.asyncio
async def test_validate_unknown_contribution(validation_service):
    with pytest.raises(NotFoundError):
        await validation_service.validate("missing", ValidationDraft(signal="refined"), "bob")
    with pytest.raises(NotFoundError):
        await validation_service.list_validations("missing")


@pytest.mark.asyncio
async def test_remove_validation(validation_service, make_contribution):
    contribution = await make_contribution(author_id="alice")
    await validation_service.validate(contribution.id, ValidationDraft(signal="refined"), "bob")

    await validation_service.remove(contribution.id, "bob")

    assert (await validation_service.summary(contribution.id)).total == 0


def test_signal_must_be_known():
    with pytest.raises(ValueError):
        ValidationDraft(signal="liked")
    with pytest.raises(ValueError):
        ValidationDraft(signal="confirmed", context="x" * 2001)
