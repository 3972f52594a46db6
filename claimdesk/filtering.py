from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from .schemas import STATUS_FILTER_ALL, WITHDRAWN, Claim, Policy


def index_policies(policies: Iterable[Policy]) -> dict[Any, Policy]:
    index: dict[Any, Policy] = {}
    for policy in policies:
        # first policy with a given id wins
        index.setdefault(policy.policy_id, policy)
    return index


def resolve_policy_name(policy_id: Any, policies: dict[Any, Policy]) -> str:
    """Return ``"{insurer} - {policyType}"`` or an empty string for unknown policies."""
    policy = policies.get(policy_id)
    return policy.display_name if policy else ""


def _matches_search(claim: Claim, query: str, policies: dict[Any, Policy]) -> bool:
    return (
        query in resolve_policy_name(claim.policy_id, policies).lower()
        or query in (claim.description or "").lower()
        or query in (claim.status or "").lower()
    )


def filter_claims(
    claims: Sequence[Claim],
    policies: Iterable[Policy],
    search_text: str = "",
    status_filter: str = STATUS_FILTER_ALL,
) -> list[Claim]:
    """Derive the visible claim list.

    Withdrawn claims are dropped before any other criterion is applied, so no
    status filter (not even ``"Withdrawn"``) can bring them back. The status
    filter is an exact match; the search text is trimmed, lower-cased and
    matched as a substring of the policy display name, the description or the
    status. Relative order of ``claims`` is preserved.
    """
    query = (search_text or "").strip().lower()
    filtered = [c for c in claims if c.status != WITHDRAWN]

    if status_filter != STATUS_FILTER_ALL:
        filtered = [c for c in filtered if c.status == status_filter]

    if query:
        policy_index = index_policies(policies)
        filtered = [c for c in filtered if _matches_search(c, query, policy_index)]

    return filtered
