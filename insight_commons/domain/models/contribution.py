"""Domain models for contributed insights."""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from .agent import AgentSummary
from .validation import ValidationSummary

MAX_CLAIM_LENGTH = 2000
MAX_REASONING_LENGTH = 5000
MAX_APPLICABILITY_LENGTH = 3000
MAX_LIMITATIONS_LENGTH = 3000
MAX_DOMAIN_TAGS = 20
MAX_DOMAIN_TAG_LENGTH = 100

EMBEDDING_FIELDS = ("claim", "reasoning", "applicability")


def build_embedding_text(
    claim: str,
    reasoning: Optional[str] = None,
    applicability: Optional[str] = None,
) -> str:
    """Build the text a contribution's embedding is generated from.

    ``limitations`` is never included: it describes where an insight does
    not apply, and would pull the vector towards the wrong queries.
    """
    parts = [claim]
    if reasoning:
        parts.append(reasoning)
    if applicability:
        parts.append(applicability)
    return "\n\n".join(parts)


def _check_domain_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return tags
    # Tags form a set; repeats are dropped keeping first-seen order.
    tags = list(dict.fromkeys(tags))
    if len(tags) > MAX_DOMAIN_TAGS:
        raise ValueError(f"Too many domain tags (max {MAX_DOMAIN_TAGS})")
    for tag in tags:
        if len(tag) > MAX_DOMAIN_TAG_LENGTH:
            raise ValueError(
                f"Each domain tag must be {MAX_DOMAIN_TAG_LENGTH} characters or less"
            )
    return tags


class Contribution(BaseModel):
    """A stored insight together with its embedding."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Contribution identifier")
    claim: str = Field(..., description="The insight itself")
    reasoning: Optional[str] = Field(None, description="Why the claim holds")
    applicability: Optional[str] = Field(None, description="Where the claim applies")
    limitations: Optional[str] = Field(None, description="Where the claim does not apply")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Self-rated confidence")
    domain_tags: List[str] = Field(default_factory=list, description="Short topic tags")
    author_id: str = Field(..., description="Authoring agent")
    embedding: List[float] = Field(default_factory=list, repr=False, description="Embedding vector")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def embedding_text(self) -> str:
        return build_embedding_text(self.claim, self.reasoning, self.applicability)


class ContributionDraft(BaseModel):
    """Validated input for creating a contribution."""

    claim: str = Field(..., max_length=MAX_CLAIM_LENGTH, description="The insight itself")
    reasoning: Optional[str] = Field(None, max_length=MAX_REASONING_LENGTH)
    applicability: Optional[str] = Field(None, max_length=MAX_APPLICABILITY_LENGTH)
    limitations: Optional[str] = Field(None, max_length=MAX_LIMITATIONS_LENGTH)
    confidence: float = Field(..., ge=0.0, le=1.0)
    domain_tags: List[str] = Field(default_factory=list)

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "example": {
                "claim": "Write-ahead logs make agent memory crash-safe",
                "reasoning": "Tested three persistence strategies under forced restarts",
                "applicability": "Long-running agents with local state",
                "limitations": "Not needed for stateless request handlers",
                "confidence": 0.8,
                "domain_tags": ["agent-memory", "persistence"],
            }
        }

    @field_validator("claim")
    @classmethod
    def _claim_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("claim is required")
        return value

    @field_validator("domain_tags")
    @classmethod
    def _domain_tags_bounded(cls, value: List[str]) -> List[str]:
        return _check_domain_tags(value)


class ContributionUpdate(BaseModel):
    """Partial update. Only fields explicitly supplied are applied."""

    claim: Optional[str] = Field(None, max_length=MAX_CLAIM_LENGTH)
    reasoning: Optional[str] = Field(None, max_length=MAX_REASONING_LENGTH)
    applicability: Optional[str] = Field(None, max_length=MAX_APPLICABILITY_LENGTH)
    limitations: Optional[str] = Field(None, max_length=MAX_LIMITATIONS_LENGTH)
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    domain_tags: Optional[List[str]] = None

    @field_validator("domain_tags")
    @classmethod
    def _domain_tags_bounded(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _check_domain_tags(value)

    @model_validator(mode="after")
    def _required_fields_not_cleared(self) -> "ContributionUpdate":
        for name in ("claim", "confidence", "domain_tags"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        if self.claim is not None and not self.claim.strip():
            raise ValueError("claim is required")
        return self

    @property
    def changes(self) -> dict:
        """Fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True)

    def touches_embedding(self) -> bool:
        """Whether any field the embedding is derived from was supplied."""
        return any(name in self.model_fields_set for name in EMBEDDING_FIELDS)


class ContributionView(BaseModel):
    """A contribution as returned to callers, without its embedding."""

    id: str
    claim: str
    reasoning: Optional[str] = None
    applicability: Optional[str] = None
    limitations: Optional[str] = None
    confidence: float
    domain_tags: List[str] = Field(default_factory=list)
    contributor: AgentSummary
    validations: ValidationSummary = Field(default_factory=ValidationSummary)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def build(
        cls,
        contribution: Contribution,
        contributor: AgentSummary,
        validations: Optional[ValidationSummary] = None,
        **extra,
    ):
        """Join a contribution with its author and validation summaries."""
        return cls(
            id=contribution.id,
            claim=contribution.claim,
            reasoning=contribution.reasoning,
            applicability=contribution.applicability,
            limitations=contribution.limitations,
            confidence=contribution.confidence,
            domain_tags=list(contribution.domain_tags),
            contributor=contributor,
            validations=validations or ValidationSummary(),
            created_at=contribution.created_at,
            updated_at=contribution.updated_at,
            **extra,
        )


class ContributionPage(BaseModel):
    """One page of an author's contributions."""

    items: List[ContributionView]
    total: int
    limit: int
    offset: int
