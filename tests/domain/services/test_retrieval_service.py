"""Tests for the retrieval orchestrator."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from insight_commons.domain.errors import InternalError
from insight_commons.domain.models.contribution import Contribution
from insight_commons.domain.models.search import (
    RESPONSE_SOURCE,
    SearchMode,
    SearchRequest,
    TrustLevel,
)
from insight_commons.domain.models.validation import Validation, ValidationSignal
from insight_commons.domain.ports.contribution_store import RankedContribution
from insight_commons.domain.services.query_expander import expand_query_with_lenses, lens_names
from insight_commons.domain.services.retrieval_service import RetrievalService, gather_or_cancel


def unit_vector(index: int):
    vector = [0.0] * 16
    vector[index] = 1.0
    return vector


QUESTION = "How should I handle agent memory?"


@pytest.mark.asyncio
async def test_vector_search_ranks_by_similarity(retrieval_service, embeddings, make_contribution):
    """Test that the closest contribution comes first with author and validations attached."""
    embeddings.vectors[QUESTION] = unit_vector(0)
    best = await make_contribution(claim="best", embedding=unit_vector(0), author_id="bob")
    await make_contribution(claim="other", embedding=unit_vector(1))

    response = await retrieval_service.search(SearchRequest(question=QUESTION))

    assert response.results[0].id == best.id
    assert response.results[0].relevance == pytest.approx(1.0)
    assert response.results[0].expansion_lens is None
    assert response.results[0].contributor.display_name == "Bob"
    assert response.results[0].contributor.trust_score == 0.7
    assert response.results[0].validations.total == 0
    assert response.total_matches == len(response.results) == 2
    assert response.trust_level == TrustLevel.UNVERIFIED
    assert response.expansions is None
    assert response.source == RESPONSE_SOURCE
    assert "instructions" in response.warning


@pytest.mark.asyncio
async def test_context_is_appended_to_primary_query(retrieval_service, embeddings, make_contribution):
    await make_contribution()

    await retrieval_service.search(SearchRequest(question=QUESTION, context="Long-running agents"))

    assert embeddings.calls == [f"{QUESTION}\n\nLong-running agents"]


@pytest.mark.asyncio
async def test_lexical_search_skips_embedding(retrieval_service, embeddings, make_contribution):
    match = await make_contribution(claim="Write-ahead logs protect agent memory")
    await make_contribution(claim="Unrelated note about databases", embedding=unit_vector(1))

    response = await retrieval_service.search(
        SearchRequest(question="agent memory", search_mode=SearchMode.LEXICAL)
    )

    assert embeddings.calls == []
    assert [result.id for result in response.results] == [match.id]


@pytest.mark.asyncio
async def test_hybrid_fuses_both_methods(embeddings, agent_directory, validation_store):
    """Test that an item found lexically and semantically outranks single-method items."""
    a = Contribution(id="A", claim="lexical only", confidence=0.5, author_id="alice")
    b = Contribution(id="B", claim="semantic only", confidence=0.5, author_id="alice")
    c = Contribution(id="C", claim="both", confidence=0.5, author_id="alice")

    store = AsyncMock()
    store.vector_search.return_value = [
        RankedContribution(contribution=b, score=0.9),
        RankedContribution(contribution=c, score=0.8),
    ]
    store.lexical_search.return_value = [
        RankedContribution(contribution=a, score=0.7),
        RankedContribution(contribution=c, score=0.5),
    ]
    service = RetrievalService(embeddings, store, agent_directory, validation_store)

    response = await service.search(SearchRequest(question=QUESTION, search_mode=SearchMode.HYBRID))

    scores = {result.id: result.relevance for result in response.results}
    assert response.results[0].id == "C"
    assert scores["C"] > scores["A"]
    assert scores["C"] > scores["B"]
    assert len(scores) == 3
    store.vector_search.assert_awaited_once()
    store.lexical_search.assert_awaited_once()


@pytest.mark.asyncio
async def test_hybrid_truncates_to_max_results(embeddings, agent_directory, validation_store):
    rows = [
        RankedContribution(
            contribution=Contribution(id=f"c{i}", claim=f"claim {i}", confidence=0.5, author_id="alice"),
            score=1.0 - i / 10,
        )
        for i in range(4)
    ]
    store = AsyncMock()
    store.vector_search.return_value = rows[:2]
    store.lexical_search.return_value = rows[2:]
    service = RetrievalService(embeddings, store, agent_directory, validation_store)

    response = await service.search(
        SearchRequest(question=QUESTION, search_mode=SearchMode.HYBRID, max_results=3)
    )

    assert len(response.results) == 3
    assert response.total_matches == 3


@pytest.mark.asyncio
async def test_filters_are_passed_to_every_search(embeddings, agent_directory, validation_store):
    store = AsyncMock()
    store.vector_search.return_value = []
    service = RetrievalService(embeddings, store, agent_directory, validation_store)

    await service.search(
        SearchRequest(
            question=QUESTION,
            domain_tags=["agent-memory"],
            min_confidence=0.6,
            max_results=7,
            expand=True,
        )
    )

    options = [call.args[1] for call in store.vector_search.await_args_list]
    assert len(options) == 5
    assert all(o.domain_tags == ["agent-memory"] and o.min_confidence == 0.6 for o in options)
    assert sorted(o.max_results for o in options) == [3, 3, 3, 3, 7]


@pytest.mark.asyncio
async def test_expansion_tags_lens_hits_and_records_metadata(
    retrieval_service, embeddings, make_contribution
):
    """Test that a contribution only a lens finds is tagged with that lens."""
    request = SearchRequest(question=QUESTION, context="ignored by lenses", expand=True)
    embeddings.vectors[request.query_text] = unit_vector(0)
    analogies_text = dict(expand_query_with_lenses(QUESTION))["ANALOGIES"]
    embeddings.vectors[analogies_text] = unit_vector(1)

    direct = await make_contribution(claim="direct", embedding=unit_vector(0))
    analogous = await make_contribution(claim="analogous", embedding=unit_vector(1))

    response = await retrieval_service.search(request)

    by_id = {result.id: result for result in response.results}
    assert by_id[direct.id].expansion_lens is None
    assert by_id[analogous.id].expansion_lens == "ANALOGIES"
    assert by_id[analogous.id].relevance == pytest.approx(1.0)
    assert len(response.results) == 2

    assert response.expansions.lenses_used == lens_names()
    # 2 direct rows plus 2 rows from each of the 4 lenses
    assert response.expansions.total_before_dedup == 10

    expected_calls = [request.query_text] + [text for _, text in expand_query_with_lenses(QUESTION)]
    assert sorted(embeddings.calls) == sorted(expected_calls)


@pytest.mark.asyncio
async def test_expansion_metadata_recorded_when_no_lens_hit_survives(retrieval_service, embeddings):
    response = await retrieval_service.search(SearchRequest(question=QUESTION, expand=True))

    assert response.results == []
    assert response.expansions.lenses_used == lens_names()
    assert response.expansions.total_before_dedup == 0


@pytest.mark.asyncio
async def test_validated_trust_level(retrieval_service, make_contribution, validation_store):
    contribution = await make_contribution()
    await validation_store.upsert(
        Validation(contribution_id=contribution.id, agent_id="bob", signal=ValidationSignal.CONFIRMED)
    )

    response = await retrieval_service.search(SearchRequest(question=QUESTION))

    assert response.trust_level == TrustLevel.VALIDATED
    assert response.results[0].validations.confirmed == 1


@pytest.mark.asyncio
async def test_unknown_author_is_reported_as_unknown(retrieval_service, make_contribution):
    await make_contribution(author_id="ghost")

    response = await retrieval_service.search(SearchRequest(question=QUESTION))

    assert response.results[0].contributor.display_name == "Unknown"
    assert response.results[0].contributor.trust_score == 0.0


@pytest.mark.asyncio
async def test_related_domains_and_value_signal(retrieval_service, embeddings, make_contribution):
    embeddings.vectors[QUESTION] = unit_vector(0)
    await make_contribution(claim="one", domain_tags=["memory", "python"])
    await make_contribution(claim="two", domain_tags=["python"], embedding=unit_vector(1))

    response = await retrieval_service.search(SearchRequest(question=QUESTION))

    assert response.related_domains == ["python", "memory"]
    assert response.value_signal.message == "Found a very closely related insight."


@pytest.mark.asyncio
async def test_empty_corpus_returns_empty_response(retrieval_service):
    response = await retrieval_service.search(SearchRequest(question=QUESTION))

    assert response.results == []
    assert response.total_matches == 0
    assert response.related_domains == []
    assert response.value_signal is None


@pytest.mark.asyncio
async def test_embedding_failure_becomes_internal_error(contribution_store, agent_directory, validation_store):
    gateway = AsyncMock()
    gateway.generate.side_effect = ConnectionError("embedding API down")
    service = RetrievalService(gateway, contribution_store, agent_directory, validation_store)

    with pytest.raises(InternalError) as exc_info:
        await service.search(SearchRequest(question=QUESTION))

    assert exc_info.value.details["cause"] == "ConnectionError"


@pytest.mark.asyncio
async def test_single_lens_failure_fails_the_request(
    embeddings, contribution_store, agent_directory, validation_store
):
    causes_text = dict(expand_query_with_lenses(QUESTION))["CAUSES"]

    class FlakyGateway(type(embeddings)):
        async def generate(self, text):
            if text == causes_text:
                raise TimeoutError("lens timed out")
            return await super().generate(text)

    service = RetrievalService(FlakyGateway(), contribution_store, agent_directory, validation_store)

    with pytest.raises(InternalError):
        await service.search(SearchRequest(question=QUESTION, expand=True))


@pytest.mark.asyncio
async def test_gather_or_cancel_cancels_pending_work():
    cancelled = []

    async def slow():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    async def fail():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        await gather_or_cancel(slow(), fail())

    assert cancelled == [True]


@pytest.mark.asyncio
async def test_gather_or_cancel_preserves_order():
    async def value(v, delay):
        await asyncio.sleep(delay)
        return v

    assert await gather_or_cancel(value("a", 0.02), value("b", 0)) == ["a", "b"]


@pytest.mark.parametrize(
    "requested, expected",
    [
        (None, 5), (0, 1), (-3, 1), (1, 1), (12, 12), (20, 20), (50, 20),
        (float("inf"), 20), (float("-inf"), 1),
    ],
)
def test_max_results_is_clamped(requested, expected):
    assert SearchRequest(question=QUESTION, max_results=requested).max_results == expected


@pytest.mark.parametrize("raw, expected", [("1e400", 20), ("-1e400", 1)])
def test_infinite_max_results_is_clamped(raw, expected):
    request = SearchRequest.model_validate_json(f'{{"question": "q", "max_results": {raw}}}')

    assert request.max_results == expected


def test_nan_max_results_is_rejected():
    with pytest.raises(ValueError):
        SearchRequest(question=QUESTION, max_results=float("nan"))


class RendezvousStore:
    """Store whose searches only return once ``parties`` of them are in flight together."""

    def __init__(self, parties: int):
        self.parties = parties
        self.arrived = 0
        self.all_arrived = asyncio.Event()

    async def _arrive(self):
        self.arrived += 1
        if self.arrived >= self.parties:
            self.all_arrived.set()
        await asyncio.wait_for(self.all_arrived.wait(), timeout=1.0)

    async def vector_search(self, vector, options):
        await self._arrive()
        return []

    async def lexical_search(self, text, options):
        await self._arrive()
        return []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "mode, expand, parties",
    [
        (SearchMode.HYBRID, False, 2),  # vector + lexical
        (SearchMode.VECTOR, True, 5),  # primary + four lenses
        (SearchMode.HYBRID, True, 6),
    ],
)
async def test_searches_overlap_in_time(embeddings, agent_directory, validation_store, mode, expand, parties):
    store = RendezvousStore(parties)
    service = RetrievalService(embeddings, store, agent_directory, validation_store)

    response = await service.search(SearchRequest(question=QUESTION, search_mode=mode, expand=expand))

    assert store.arrived == parties
    assert response.results == []
