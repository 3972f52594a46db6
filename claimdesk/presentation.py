from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .filtering import index_policies
from .schemas import (
    APPROVED,
    PROCESSED_STATUSES,
    REJECTED,
    STATUS_FILTER_OPTIONS,
    SUBMITTED,
    UNDER_REVIEW,
    WITHDRAWN,
    Claim,
    Policy,
)

if TYPE_CHECKING:
    from .controller import ViewState

UNKNOWN_POLICY = "Unknown Policy"

STATUS_TONES: dict[str, str] = {
    SUBMITTED: "blue",
    UNDER_REVIEW: "yellow",
    APPROVED: "green",
    REJECTED: "red",
}
DEFAULT_TONE = "gray"

EMPTY_STATE = {
    "title": "No claims found",
    "message": "File your first claim to get started",
}


@dataclass(slots=True)
class ClaimCard:
    claim_id: Any
    policy_name: str
    status: str
    status_tone: str
    amount: str
    description: str
    submitted: str
    can_edit: bool
    can_withdraw: bool


@dataclass(slots=True)
class HistoryEntry:
    claim_id: Any
    policy_name: str
    status: str
    amount: str
    submitted: str
    muted: bool


def status_tone(status: str) -> str:
    return STATUS_TONES.get(status, DEFAULT_TONE)


def can_edit(claim: Claim) -> bool:
    return claim.status != WITHDRAWN


def can_withdraw(claim: Claim) -> bool:
    return claim.status not in PROCESSED_STATUSES and claim.status != WITHDRAWN


def format_amount(amount: Any, currency_symbol: str = "₹") -> str:
    if amount is None:
        return ""
    try:
        return f"{currency_symbol}{float(amount):.2f}"
    except (TypeError, ValueError):
        return str(amount)


def format_submitted(value: str | None) -> str:
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.date().isoformat()


def policy_label(policy_id: Any, policies: dict[Any, Policy]) -> str:
    policy = policies.get(policy_id)
    return policy.display_name if policy else UNKNOWN_POLICY


def build_card(claim: Claim, policies: dict[Any, Policy], currency_symbol: str = "₹") -> ClaimCard:
    return ClaimCard(
        claim_id=claim.claim_id,
        policy_name=policy_label(claim.policy_id, policies),
        status=claim.status,
        status_tone=status_tone(claim.status),
        amount=format_amount(claim.claim_amt, currency_symbol),
        description=claim.description or "",
        submitted=format_submitted(claim.submitted_at),
        can_edit=can_edit(claim),
        can_withdraw=can_withdraw(claim),
    )


def build_history_entry(
    claim: Claim, policies: dict[Any, Policy], currency_symbol: str = "₹"
) -> HistoryEntry:
    return HistoryEntry(
        claim_id=claim.claim_id,
        policy_name=policy_label(claim.policy_id, policies),
        status=claim.status,
        amount=format_amount(claim.claim_amt, currency_symbol),
        submitted=format_submitted(claim.submitted_at),
        muted=claim.status == WITHDRAWN,
    )


def render_view(state: ViewState, currency_symbol: str = "₹") -> dict[str, Any]:
    policies = index_policies(state.policies)
    cards = [asdict(build_card(c, policies, currency_symbol)) for c in state.filtered_claims]
    history = (
        [asdict(build_history_entry(c, policies, currency_symbol)) for c in state.claims]
        if state.show_history
        else []
    )
    selected = state.selected_claim
    return {
        "loading": state.loading,
        "search_text": state.search_text,
        "status_filter": state.status_filter,
        "status_options": list(STATUS_FILTER_OPTIONS),
        "cards": cards,
        "empty_state": EMPTY_STATE if not cards else None,
        "show_history": state.show_history,
        "history": history,
        "show_modal": state.show_modal,
        "modal_mode": "edit" if selected is not None else "create",
        "selected_claim": selected.to_payload() if selected is not None else None,
        "policies": [
            {"policy_id": p.policy_id, "name": p.display_name} for p in state.policies
        ],
    }
