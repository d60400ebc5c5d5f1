"""Retrieval orchestration: question in, ranked and trust-annotated results out."""

import asyncio
import logging
from typing import Awaitable, Dict, List, Sequence, Tuple

from ..errors import InsightCommonsError, InternalError
from ..models.agent import AgentSummary
from ..models.search import (
    ExpansionMetadata,
    ScoredResult,
    SearchMode,
    SearchRequest,
    SearchResponse,
    TrustLevel,
)
from ..ports.agent_directory import AgentDirectory
from ..ports.contribution_store import ContributionStore, RankedContribution, SearchOptions
from ..ports.embedding_gateway import EmbeddingGateway
from ..ports.validation_store import ValidationAggregate
from .query_expander import expand_query_with_lenses
from .ranking import (
    Candidate,
    compute_value_signal,
    merge_expansions,
    reciprocal_rank_fusion,
    related_domains,
)

logger = logging.getLogger(__name__)

EXPANSION_RESULTS_PER_LENS = 3

LensHits = Tuple[str, List[RankedContribution]]


async def gather_or_cancel(*aws: Awaitable) -> list:
    """Run awaitables concurrently and return their results in order.

    If any of them fails, or the caller is cancelled, the ones still
    running are cancelled before the error propagates.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class RetrievalService:
    """Turns a natural-language question into a ranked, deduplicated response.

    All state is request-local; one instance serves concurrent searches.

    Pipeline:
        1. Embed the question (plus context) for vector and hybrid modes
        2. Vector search, lexical search, or both fused by reciprocal rank
        3. Optionally search four lens rephrasings and merge their hits
        4. Attach author and validation summaries to surviving results
        5. Derive related domains, value signal and trust level
    """

    def __init__(
        self,
        embedding_gateway: EmbeddingGateway,
        contribution_store: ContributionStore,
        agent_directory: AgentDirectory,
        validations: ValidationAggregate,
    ):
        """Initialize the service.

        Args:
            embedding_gateway: Text to vector conversion
            contribution_store: Vector and lexical search backend
            agent_directory: Author lookups
            validations: Per-contribution signal counts
        """
        self._embeddings = embedding_gateway
        self._store = contribution_store
        self._agents = agent_directory
        self._validations = validations
        logger.info("🔧 RetrievalService initialized")

    async def search(self, request: SearchRequest) -> SearchResponse:
        """Search contributions by meaning, keywords, or both.

        Args:
            request: Question, filters and search options

        Returns:
            Ranked results with related domains and trust framing

        Raises:
            InternalError: If any collaborator call fails
        """
        logger.info(
            f"🔍 Search ({request.search_mode.value}, expand={request.expand}): "
            f"{request.question[:100]}"
        )

        try:
            response = await self._search(request)
        except InsightCommonsError:
            raise
        except Exception as e:
            logger.error(f"❌ Search failed: {type(e).__name__}: {e}", exc_info=True)
            raise InternalError("Search failed", details={"cause": type(e).__name__}) from e

        logger.info(
            f"✅ Search complete: {response.total_matches} results, "
            f"trust level {response.trust_level.value}"
        )
        return response

    async def _search(self, request: SearchRequest) -> SearchResponse:
        options = SearchOptions(
            max_results=request.max_results,
            min_confidence=request.min_confidence,
            domain_tags=request.domain_tags or None,
        )

        if request.expand:
            (primary, method_row_count), lens_hits = await gather_or_cancel(
                self._primary_search(request, options),
                self._expanded_search(request.question, options),
            )
            candidates = merge_expansions(primary, lens_hits, request.max_results)
            expansions = ExpansionMetadata(
                lenses_used=[lens for lens, _ in lens_hits],
                total_before_dedup=method_row_count + sum(len(hits) for _, hits in lens_hits),
            )
            logger.info(
                f"🔭 Expansion merged {expansions.total_before_dedup} rows into {len(candidates)} results"
            )
        else:
            primary, _ = await self._primary_search(request, options)
            candidates = primary[:request.max_results]
            expansions = None

        results = await self._assemble(candidates)
        validated = any(result.validations.total > 0 for result in results)

        return SearchResponse(
            results=results,
            related_domains=related_domains(results),
            total_matches=len(results),
            value_signal=compute_value_signal(results),
            expansions=expansions,
            trust_level=TrustLevel.VALIDATED if validated else TrustLevel.UNVERIFIED,
        )

    async def _primary_search(
        self,
        request: SearchRequest,
        options: SearchOptions,
    ) -> Tuple[List[Candidate], int]:
        """Run the direct query in the requested mode.

        Returns:
            Candidates for the direct query and the total number of rows the
            individual methods returned before fusion
        """
        query_text = request.query_text

        if request.search_mode == SearchMode.LEXICAL:
            rows = await self._store.lexical_search(query_text, options)
            return [Candidate.from_ranked(row) for row in rows], len(rows)

        embedding = await self._embeddings.generate(query_text)

        if request.search_mode == SearchMode.VECTOR:
            rows = await self._store.vector_search(embedding, options)
            return [Candidate.from_ranked(row) for row in rows], len(rows)

        vector_rows, lexical_rows = await gather_or_cancel(
            self._store.vector_search(embedding, options),
            self._store.lexical_search(query_text, options),
        )
        fused = reciprocal_rank_fusion([vector_rows, lexical_rows], limit=request.max_results)
        logger.debug(
            f"Hybrid fused {len(vector_rows)} vector + {len(lexical_rows)} lexical rows "
            f"into {len(fused)}"
        )
        return fused, len(vector_rows) + len(lexical_rows)

    async def _expanded_search(self, question: str, options: SearchOptions) -> List[LensHits]:
        """Search every lens rephrasing of the original question concurrently."""
        lens_options = options.model_copy(update={"max_results": EXPANSION_RESULTS_PER_LENS})
        expansions = expand_query_with_lenses(question)

        hits = await gather_or_cancel(
            *(self._search_lens(text, lens_options) for _, text in expansions)
        )
        return [(lens, lens_hits) for (lens, _), lens_hits in zip(expansions, hits)]

    async def _search_lens(self, text: str, options: SearchOptions) -> List[RankedContribution]:
        embedding = await self._embeddings.generate(text)
        return await self._store.vector_search(embedding, options)

    async def _assemble(self, candidates: Sequence[Candidate]) -> List[ScoredResult]:
        """Join candidates with author and validation summaries."""
        if not candidates:
            return []

        author_ids = list(dict.fromkeys(c.contribution.author_id for c in candidates))
        authors, summaries = await gather_or_cancel(
            self._author_summaries(author_ids),
            self._validations.summaries([c.id for c in candidates]),
        )

        return [
            ScoredResult.build(
                candidate.contribution,
                contributor=authors[candidate.contribution.author_id],
                validations=summaries.get(candidate.id),
                relevance=candidate.relevance,
                expansion_lens=candidate.expansion_lens,
            )
            for candidate in candidates
        ]

    async def _author_summaries(self, author_ids: List[str]) -> Dict[str, AgentSummary]:
        agents = await gather_or_cancel(*(self._agents.get(author_id) for author_id in author_ids))
        return {
            author_id: AgentSummary.from_agent(agent) if agent else AgentSummary.unknown(author_id)
            for author_id, agent in zip(author_ids, agents)
        }
