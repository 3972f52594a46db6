from __future__ import annotations

from typing import Any

import pytest

from claimdesk.errors import ServiceError
from claimdesk.schemas import Claim, Policy


def claim_payload(claim_id: int, status: str = "Submitted", policy_id: int = 10, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "claimId": claim_id,
        "policyId": policy_id,
        "claimAmt": 500.0,
        "description": "car accident",
        "status": status,
        "submittedAt": "2025-03-14T09:30:00Z",
    }
    payload.update(overrides)
    return payload


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, content: bytes | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = content if content is not None else (b"{}" if payload is not None else b"")

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeClaimService:
    def __init__(self, claims: list[dict[str, Any]] | None = None) -> None:
        self.claims = [dict(c) for c in claims or []]
        self.calls: list[tuple[Any, ...]] = []
        self.fail_on: set[str] = set()
        self.return_none = False

    def _maybe_fail(self, op: str) -> None:
        if op in self.fail_on:
            raise ServiceError(f"{op} failed", status_code=500)

    def get_all_claims(self) -> list[Claim] | None:
        self.calls.append(("list",))
        self._maybe_fail("list")
        if self.return_none:
            return None
        return [Claim.from_payload(c) for c in self.claims]

    def create_claim(self, claim: Claim) -> Claim:
        payload = claim.to_payload()
        self.calls.append(("create", payload))
        self._maybe_fail("create")
        payload["claimId"] = max((c["claimId"] for c in self.claims), default=0) + 1
        self.claims.append(payload)
        return Claim.from_payload(payload)

    def update_claim(self, claim_id: Any, claim: Claim) -> Claim:
        payload = claim.to_payload()
        self.calls.append(("update", claim_id, payload))
        self._maybe_fail("update")
        self.claims = [payload if c["claimId"] == claim_id else c for c in self.claims]
        return Claim.from_payload(payload)

    def delete_claim(self, claim_id: Any) -> None:
        self.calls.append(("delete", claim_id))
        self._maybe_fail("delete")
        self.claims = [c for c in self.claims if c["claimId"] != claim_id]

    def count(self, op: str) -> int:
        return sum(1 for call in self.calls if call[0] == op)


class FakePolicyService:
    def __init__(self, policies: list[dict[str, Any]] | None = None) -> None:
        self.policies = [dict(p) for p in policies or []]
        self.calls = 0
        self.fail = False

    def get_all_policies(self) -> list[Policy]:
        self.calls += 1
        if self.fail:
            raise ServiceError("policies unavailable", status_code=503)
        return [Policy.from_payload(p) for p in self.policies]


@pytest.fixture
def claim_service() -> FakeClaimService:
    return FakeClaimService(
        [
            claim_payload(1, "Submitted", 10, description="car accident"),
            claim_payload(2, "Under Review", 20, description="burst pipe in kitchen", claimAmt=1200),
            claim_payload(3, "Approved", 10, description="windshield crack", claimAmt=80.5),
            claim_payload(4, "Rejected", 20, description="flood damage"),
            claim_payload(5, "Withdrawn", 10, description="car accident duplicate"),
        ]
    )


@pytest.fixture
def policy_service() -> FakePolicyService:
    return FakePolicyService(
        [
            {"policyId": 10, "insurer": "Acme", "policyType": "Auto"},
            {"policyId": 20, "insurer": "Shield", "policyType": "Home"},
        ]
    )
