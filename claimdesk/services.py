from __future__ import annotations

import logging
from typing import Any

import requests

from .config import Settings
from .errors import ServiceError
from .schemas import Claim, Policy

logger = logging.getLogger(__name__)

REQUEST_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "ClaimDesk/1.0",
}


class _JsonServiceClient:
    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        auth_token: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(REQUEST_HEADERS)
        if auth_token:
            self.session.headers["Authorization"] = f"Bearer {auth_token}"

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ServiceError(f"{method} {url} failed: {exc}") from exc

        if not response.ok:
            raise ServiceError(
                f"{method} {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ServiceError(f"{method} {url} returned invalid JSON", status_code=response.status_code) from exc

    def _request_records(self, path: str) -> list[dict[str, Any]] | None:
        data = self._request("GET", path)
        if data is None:
            return None
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise ServiceError(f"GET {self.base_url}/{path} returned unexpected payload")
        return data

    def _request_record(self, method: str, path: str, payload: dict[str, Any]) -> dict[str, Any] | None:
        data = self._request(method, path, payload)
        if not data:
            return None
        if not isinstance(data, dict):
            raise ServiceError(f"{method} {self.base_url}/{path} returned unexpected payload")
        return data


class ClaimService(_JsonServiceClient):
    def get_all_claims(self) -> list[Claim] | None:
        data = self._request_records("claims")
        if data is None:
            return None
        return [Claim.from_payload(item) for item in data]

    def create_claim(self, claim: Claim) -> Claim | None:
        data = self._request_record("POST", "claims", claim.to_payload())
        logger.info("Created claim", extra={"claim_id": (data or {}).get("claimId")})
        return Claim.from_payload(data) if data else None

    def update_claim(self, claim_id: Any, claim: Claim) -> Claim | None:
        data = self._request_record("PUT", f"claims/{claim_id}", claim.to_payload())
        logger.info("Updated claim to status %s", claim.status, extra={"claim_id": claim_id})
        return Claim.from_payload(data) if data else None

    def delete_claim(self, claim_id: Any) -> None:
        self._request("DELETE", f"claims/{claim_id}")
        logger.info("Deleted claim", extra={"claim_id": claim_id})


class PolicyService(_JsonServiceClient):
    def get_all_policies(self) -> list[Policy] | None:
        data = self._request_records("policies")
        if data is None:
            return None
        return [Policy.from_payload(item) for item in data]


def build_services(settings: Settings) -> tuple[ClaimService, PolicyService]:
    claim_service = ClaimService(
        settings.claims_service_url,
        timeout=settings.service_timeout_seconds,
        auth_token=settings.service_auth_token,
    )
    policy_service = PolicyService(
        settings.policies_service_url,
        timeout=settings.service_timeout_seconds,
        auth_token=settings.service_auth_token,
    )
    return claim_service, policy_service
