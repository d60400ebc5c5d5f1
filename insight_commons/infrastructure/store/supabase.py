"""Supabase-backed stores, talking to PostgREST over HTTP.

Vector search, lexical search, duplicate lookup, validation summaries and
domain statistics are SQL functions in the database, called through the
``/rpc`` endpoint.
"""

import json
import logging
from collections import Counter
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from ...domain.errors import NotFoundError
from ...domain.models.agent import Agent
from ...domain.models.contribution import Contribution
from ...domain.models.domain import DomainStat
from ...domain.models.validation import Validation, ValidationSignal, ValidationSummary
from ...domain.ports.contribution_store import RankedContribution, SearchOptions
from ...domain.services.ranking import cosine_similarity

logger = logging.getLogger(__name__)

AGENT_COLUMNS = "id,display_name,description,trust_score,created_at"
SIMILAR_MAX_RESULTS = 5


class SupabaseConfig(BaseModel):
    """Connection settings for a Supabase project."""

    url: str = Field(..., description="Project URL, e.g. https://xyz.supabase.co")
    service_key: str = Field(..., description="Service role key")
    timeout: float = Field(default=30.0, description="HTTP timeout in seconds")


class SupabaseError(Exception):
    """A PostgREST call returned an error status."""

    def __init__(self, action: str, status_code: int, message: str):
        super().__init__(f"Failed to {action}: {message} ({status_code})")
        self.status_code = status_code


class SupabaseClient:
    """Thin async PostgREST client shared by the Supabase stores."""

    def __init__(self, config: SupabaseConfig):
        self._config = config
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        """Create the HTTP client."""
        if not self._config.url or not self._config.service_key:
            raise ConnectionError("Failed to initialize Supabase: SUPABASE_URL and SUPABASE_SERVICE_KEY are required")
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self._config.url.rstrip('/')}/rest/v1",
                timeout=self._config.timeout,
                headers={
                    "apikey": self._config.service_key,
                    "Authorization": f"Bearer {self._config.service_key}",
                    "Content-Type": "application/json",
                },
            )
        logger.info(f"✅ Supabase client ready: {self._config.url}")

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        action: str,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Any = None,
        prefer: Optional[str] = None,
    ) -> httpx.Response:
        """Send a request and raise ``SupabaseError`` on an error status.

        Args:
            action: Human readable description used in error messages
            method: HTTP method
            path: Table path or ``rpc/<function>``
            params: PostgREST query parameters
            payload: JSON body
            prefer: Value for the ``Prefer`` header

        Returns:
            The successful response
        """
        if not self._client:
            raise RuntimeError("Supabase client not initialized")

        headers = {"Prefer": prefer} if prefer else None
        response = await self._client.request(
            method, path, params=params, json=payload, headers=headers
        )
        if response.is_error:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise SupabaseError(action, response.status_code, message)
        return response

    async def rpc(self, action: str, function: str, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        response = await self.request(action, "POST", f"rpc/{function}", payload=payload)
        return response.json() or []

    async def count(self, action: str, table: str, params: Dict[str, Any]) -> int:
        """Exact row count from the ``Content-Range`` header."""
        response = await self.request(
            action, "HEAD", table, params={**params, "select": "id"}, prefer="count=exact"
        )
        content_range = response.headers.get("content-range", "*/0")
        total = content_range.rsplit("/", 1)[-1]
        return int(total) if total.isdigit() else 0


def parse_vector(value: Any) -> List[float]:
    """pgvector columns arrive as ``"[0.1,0.2,...]"`` strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [float(v) for v in json.loads(value)]
    return [float(v) for v in value]


def contribution_from_row(row: Dict[str, Any]) -> Contribution:
    return Contribution(
        id=str(row["id"]),
        claim=row["claim"],
        reasoning=row.get("reasoning"),
        applicability=row.get("applicability"),
        limitations=row.get("limitations"),
        confidence=row["confidence"],
        domain_tags=row.get("domain_tags") or [],
        author_id=row["agent_id"],
        embedding=parse_vector(row.get("embedding")),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def contribution_to_row(contribution: Contribution) -> Dict[str, Any]:
    return {
        "id": contribution.id,
        "claim": contribution.claim,
        "reasoning": contribution.reasoning,
        "applicability": contribution.applicability,
        "limitations": contribution.limitations,
        "confidence": contribution.confidence,
        "domain_tags": contribution.domain_tags,
        "agent_id": contribution.author_id,
        "embedding": json.dumps(contribution.embedding),
        "created_at": contribution.created_at.isoformat(),
        "updated_at": contribution.updated_at.isoformat(),
    }


def _search_filters(options: SearchOptions) -> Dict[str, Any]:
    return {
        "match_count": options.max_results,
        "min_confidence": options.min_confidence or 0,
        "filter_domain_tags": options.domain_tags or [],
    }


class SupabaseContributionStore:
    """Contribution store over the ``contributions`` table and its search functions."""

    def __init__(self, client: SupabaseClient):
        self._db = client

    async def insert(self, contribution: Contribution) -> Contribution:
        response = await self._db.request(
            "insert contribution", "POST", "contributions",
            payload=contribution_to_row(contribution), prefer="return=representation",
        )
        return contribution_from_row(response.json()[0])

    async def get(self, contribution_id: str) -> Optional[Contribution]:
        response = await self._db.request(
            "find contribution", "GET", "contributions",
            params={"id": f"eq.{contribution_id}", "select": "*"},
        )
        rows = response.json()
        return contribution_from_row(rows[0]) if rows else None

    async def update(self, contribution: Contribution) -> Contribution:
        row = contribution_to_row(contribution)
        del row["id"], row["created_at"]
        response = await self._db.request(
            "update contribution", "PATCH", "contributions",
            params={"id": f"eq.{contribution.id}"}, payload=row, prefer="return=representation",
        )
        rows = response.json()
        if not rows:
            raise NotFoundError(f'Contribution "{contribution.id}" not found')
        return contribution_from_row(rows[0])

    async def delete(self, contribution_id: str) -> None:
        await self._db.request(
            "delete contribution", "DELETE", "contributions",
            params={"id": f"eq.{contribution_id}"},
        )

    async def list_by_author(
        self,
        author_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Contribution]:
        response = await self._db.request(
            "find contributions", "GET", "contributions",
            params={
                "agent_id": f"eq.{author_id}",
                "select": "*",
                "order": "created_at.desc",
                "limit": limit,
                "offset": offset,
            },
        )
        return [contribution_from_row(row) for row in response.json()]

    async def count_by_author(self, author_id: str) -> int:
        return await self._db.count(
            "count contributions", "contributions", {"agent_id": f"eq.{author_id}"}
        )

    async def vector_search(
        self,
        vector: List[float],
        options: SearchOptions,
    ) -> List[RankedContribution]:
        rows = await self._db.rpc(
            "search contributions",
            "search_contributions",
            {"query_embedding": json.dumps(vector), **_search_filters(options)},
        )
        return [
            RankedContribution(contribution=contribution_from_row(row), score=row["similarity"])
            for row in rows
        ]

    async def lexical_search(
        self,
        text: str,
        options: SearchOptions,
    ) -> List[RankedContribution]:
        rows = await self._db.rpc(
            "run lexical search",
            "bm25_search",
            {"query_text": text, **_search_filters(options)},
        )
        return [
            RankedContribution(contribution=contribution_from_row(row), score=row["rank"])
            for row in rows
        ]

    async def find_similar(
        self,
        vector: List[float],
        threshold: float,
    ) -> List[RankedContribution]:
        rows = await self._db.rpc(
            "find similar contributions",
            "find_similar_contributions",
            {
                "query_embedding": json.dumps(vector),
                "similarity_threshold": threshold,
                "max_results": SIMILAR_MAX_RESULTS,
            },
        )
        # The function filters by similarity but does not return it.
        matches = []
        for row in rows:
            contribution = contribution_from_row(row)
            matches.append(
                RankedContribution(
                    contribution=contribution,
                    score=cosine_similarity(vector, contribution.embedding),
                )
            )
        return sorted(matches, key=lambda match: match.score, reverse=True)

    async def domain_stats(self) -> List[DomainStat]:
        rows = await self._db.rpc("get domain stats", "get_domain_stats", {})
        return [
            DomainStat(
                domain=row["domain"],
                contribution_count=int(row["contribution_count"]),
                avg_confidence=float(row["avg_confidence"] or 0.0),
                latest_contribution=row.get("latest_contribution"),
            )
            for row in rows
        ]


class SupabaseValidationStore:
    """Validation store over the ``validations`` table."""

    def __init__(self, client: SupabaseClient):
        self._db = client

    async def upsert(self, validation: Validation) -> Validation:
        response = await self._db.request(
            "upsert validation", "POST", "validations",
            params={"on_conflict": "contribution_id,agent_id"},
            payload={
                "contribution_id": validation.contribution_id,
                "agent_id": validation.agent_id,
                "signal": validation.signal.value,
                "context": validation.context,
            },
            prefer="resolution=merge-duplicates,return=representation",
        )
        return Validation(**response.json()[0])

    async def list_for_contribution(self, contribution_id: str) -> List[Validation]:
        return await self._list({"contribution_id": f"eq.{contribution_id}"})

    async def list_by_agent(self, agent_id: str) -> List[Validation]:
        return await self._list({"agent_id": f"eq.{agent_id}"})

    async def delete(self, contribution_id: str, agent_id: str) -> None:
        await self._db.request(
            "delete validation", "DELETE", "validations",
            params={"contribution_id": f"eq.{contribution_id}", "agent_id": f"eq.{agent_id}"},
        )

    async def summary(self, contribution_id: str) -> ValidationSummary:
        rows = await self._db.rpc(
            "get validation summary",
            "get_validation_summary",
            {"p_contribution_id": contribution_id},
        )
        row = rows[0] if rows else {}
        return ValidationSummary(
            confirmed=int(row.get("confirmed") or 0),
            contradicted=int(row.get("contradicted") or 0),
            refined=int(row.get("refined") or 0),
        )

    async def summaries(self, contribution_ids: List[str]) -> Dict[str, ValidationSummary]:
        """Count signals for many contributions with a single ``in.(...)`` query."""
        if not contribution_ids:
            return {}

        response = await self._db.request(
            "fetch validations", "GET", "validations",
            params={
                "contribution_id": f"in.({','.join(contribution_ids)})",
                "select": "contribution_id,signal",
            },
        )
        counts: Dict[str, Counter] = {cid: Counter() for cid in contribution_ids}
        for row in response.json():
            counts[str(row["contribution_id"])][row["signal"]] += 1

        return {
            cid: ValidationSummary(
                confirmed=counter[ValidationSignal.CONFIRMED.value],
                contradicted=counter[ValidationSignal.CONTRADICTED.value],
                refined=counter[ValidationSignal.REFINED.value],
            )
            for cid, counter in counts.items()
        }

    async def _list(self, params: Dict[str, Any]) -> List[Validation]:
        response = await self._db.request(
            "fetch validations", "GET", "validations",
            params={**params, "select": "*", "order": "created_at.desc"},
        )
        return [Validation(**row) for row in response.json()]


class SupabaseAgentDirectory:
    """Agent lookups over the ``agents`` table."""

    def __init__(self, client: SupabaseClient):
        self._db = client

    async def get(self, agent_id: str) -> Optional[Agent]:
        response = await self._db.request(
            "find agent", "GET", "agents",
            params={"id": f"eq.{agent_id}", "select": AGENT_COLUMNS},
        )
        rows = response.json()
        return Agent(**rows[0]) if rows else None

    async def update_trust_score(self, agent_id: str, trust_score: float) -> Agent:
        response = await self._db.request(
            "update agent", "PATCH", "agents",
            params={"id": f"eq.{agent_id}", "select": AGENT_COLUMNS},
            payload={"trust_score": trust_score},
            prefer="return=representation",
        )
        rows = response.json()
        if not rows:
            raise NotFoundError(f'Agent "{agent_id}" not found')
        return Agent(**rows[0])
