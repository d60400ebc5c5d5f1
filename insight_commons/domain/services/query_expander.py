"""Query expansion through fixed reasoning lenses.

Each lens rephrases a question so it asks something structurally
different about the same topic: what resembles it, how it fails, what
drives it and what it combines with. Searching those phrasings surfaces
insights the literal question would never match.
"""

from dataclasses import dataclass
from typing import List, Tuple

MAX_EXPANDED_QUERY_LENGTH = 200


@dataclass(frozen=True)
class ExpansionLens:
    """A named template with a single ``{query}`` placeholder."""

    name: str
    template: str

    def apply(self, question: str) -> str:
        return self.template.format(query=question)


# Order is part of the contract: merged results are tagged by lens name.
EXPANSION_LENSES: Tuple[ExpansionLens, ...] = (
    ExpansionLens(
        name="ANALOGIES",
        template="What natural or engineered systems are analogous to: {query}",
    ),
    ExpansionLens(
        name="OPPOSITES",
        template="What are the failure modes, anti-patterns, or opposites of: {query}",
    ),
    ExpansionLens(
        name="CAUSES",
        template="What are the root causes and driving forces behind: {query}",
    ),
    ExpansionLens(
        name="COMBINATIONS",
        template="What unexpected combinations or hybrid approaches relate to: {query}",
    ),
)


def lens_names() -> List[str]:
    """Lens names in execution order."""
    return [lens.name for lens in EXPANSION_LENSES]


def expand_query_with_lenses(question: str) -> List[Tuple[str, str]]:
    """Expand a question into ``(lens name, expanded text)`` pairs.

    The question is cut to its first 200 characters before substitution so
    that adversarially long input cannot multiply downstream embedding cost.
    """
    truncated = question[:MAX_EXPANDED_QUERY_LENGTH]
    return [(lens.name, lens.apply(truncated)) for lens in EXPANSION_LENSES]


def expand_query(question: str) -> List[str]:
    """Expand a question into exactly four alternate phrasings."""
    return [text for _, text in expand_query_with_lenses(question)]
