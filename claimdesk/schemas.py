from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

SUBMITTED = "Submitted"
UNDER_REVIEW = "Under Review"
APPROVED = "Approved"
REJECTED = "Rejected"
WITHDRAWN = "Withdrawn"

CLAIM_STATUSES: tuple[str, ...] = (SUBMITTED, UNDER_REVIEW, APPROVED, REJECTED, WITHDRAWN)
PROCESSED_STATUSES = frozenset({APPROVED, REJECTED})

STATUS_FILTER_ALL = "All"
# Withdrawn is never offered in the dropdown; withdrawn claims only show up in history.
STATUS_FILTER_OPTIONS: tuple[str, ...] = (STATUS_FILTER_ALL, SUBMITTED, UNDER_REVIEW, APPROVED, REJECTED)

_CLAIM_KEYS = ("claimId", "policyId", "claimAmt", "description", "status", "submittedAt")
_POLICY_KEYS = ("policyId", "insurer", "policyType")


@dataclass(slots=True)
class Claim:
    claim_id: Any
    policy_id: Any
    claim_amt: float | None
    description: str | None
    status: str
    submitted_at: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Claim:
        return cls(
            claim_id=data.get("claimId"),
            policy_id=data.get("policyId"),
            claim_amt=data.get("claimAmt"),
            description=data.get("description"),
            status=data.get("status") or "",
            submitted_at=data.get("submittedAt"),
            extra={k: v for k, v in data.items() if k not in _CLAIM_KEYS},
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.extra)
        if self.claim_id is not None:
            payload["claimId"] = self.claim_id
        payload.update(
            {
                "policyId": self.policy_id,
                "claimAmt": self.claim_amt,
                "description": self.description,
                "status": self.status,
                "submittedAt": self.submitted_at,
            }
        )
        return payload

    def with_status(self, status: str) -> Claim:
        return replace(self, status=status, extra=dict(self.extra))

    @property
    def is_processed(self) -> bool:
        return self.status in PROCESSED_STATUSES

    @property
    def is_withdrawn(self) -> bool:
        return self.status == WITHDRAWN


@dataclass(slots=True)
class Policy:
    policy_id: Any
    insurer: str
    policy_type: str
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Policy:
        return cls(
            policy_id=data.get("policyId"),
            insurer=data.get("insurer") or "",
            policy_type=data.get("policyType") or "",
            extra={k: v for k, v in data.items() if k not in _POLICY_KEYS},
        )

    @property
    def display_name(self) -> str:
        return f"{self.insurer} - {self.policy_type}"


@dataclass(slots=True)
class ClaimForm:
    policy_id: Any
    claim_amt: float
    description: str


@dataclass(slots=True)
class ConfirmationRequest:
    confirmation_id: str
    action: str
    claim_id: Any
    prompt: str


@dataclass(slots=True)
class Notice:
    level: str
    message: str
