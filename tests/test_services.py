from typing import Any

import pytest
import requests

from claimdesk.config import load_settings
from claimdesk.errors import ServiceError
from claimdesk.schemas import Claim
from claimdesk.services import ClaimService, PolicyService, build_services

from conftest import FakeResponse


def _record(monkeypatch, response: FakeResponse | Exception) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_request(self, method, url, json=None, timeout=None):
        calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(requests.Session, "request", fake_request)
    return calls


def test_get_all_claims_decodes_camel_case(monkeypatch) -> None:
    calls = _record(
        monkeypatch,
        FakeResponse(
            payload=[
                {
                    "claimId": 1,
                    "policyId": 10,
                    "claimAmt": 500,
                    "description": "car accident",
                    "status": "Submitted",
                    "submittedAt": "2025-03-14T09:30:00Z",
                    "adjuster": "N. Rao",
                }
            ]
        ),
    )
    service = ClaimService("http://claims.local/api/", timeout=5)

    claims = service.get_all_claims()

    assert calls[0]["method"] == "GET"
    assert calls[0]["url"] == "http://claims.local/api/claims"
    assert calls[0]["timeout"] == 5
    assert claims[0].claim_id == 1
    assert claims[0].policy_id == 10
    assert claims[0].extra == {"adjuster": "N. Rao"}


def test_update_sends_unknown_fields_back(monkeypatch) -> None:
    calls = _record(monkeypatch, FakeResponse(status_code=204))
    claim = Claim.from_payload(
        {"claimId": 7, "policyId": 10, "claimAmt": 10, "status": "Submitted", "adjuster": "N. Rao"}
    )

    result = ClaimService("http://claims.local").update_claim(7, claim.with_status("Withdrawn"))

    assert result is None
    assert calls[0]["method"] == "PUT"
    assert calls[0]["url"] == "http://claims.local/claims/7"
    assert calls[0]["json"]["status"] == "Withdrawn"
    assert calls[0]["json"]["adjuster"] == "N. Rao"
    assert calls[0]["json"]["description"] is None


def test_delete_uses_claim_path(monkeypatch) -> None:
    calls = _record(monkeypatch, FakeResponse(status_code=200, content=b""))
    ClaimService("http://claims.local").delete_claim(3)
    assert calls == [{"method": "DELETE", "url": "http://claims.local/claims/3", "json": None, "timeout": None}]


def test_create_returns_created_claim(monkeypatch) -> None:
    _record(monkeypatch, FakeResponse(status_code=201, payload={"claimId": 9, "status": "Submitted"}))
    claim = Claim(claim_id=None, policy_id=10, claim_amt=1.0, description="x", status="Submitted")
    created = ClaimService("http://claims.local").create_claim(claim)
    assert created.claim_id == 9


def test_http_error_becomes_service_error(monkeypatch) -> None:
    _record(monkeypatch, FakeResponse(status_code=500, payload={"error": "boom"}))
    with pytest.raises(ServiceError) as exc_info:
        PolicyService("http://policies.local").get_all_policies()
    assert exc_info.value.status_code == 500


def test_connection_error_becomes_service_error(monkeypatch) -> None:
    _record(monkeypatch, requests.ConnectionError("refused"))
    with pytest.raises(ServiceError, match="refused"):
        ClaimService("http://claims.local").get_all_claims()


def test_invalid_json_becomes_service_error(monkeypatch) -> None:
    _record(monkeypatch, FakeResponse(status_code=200, content=b"<html>"))
    with pytest.raises(ServiceError, match="invalid JSON"):
        ClaimService("http://claims.local").get_all_claims()


def test_empty_body_means_absent_list(monkeypatch) -> None:
    _record(monkeypatch, FakeResponse(status_code=200, content=b""))
    assert PolicyService("http://policies.local").get_all_policies() is None


def test_build_services_uses_settings(monkeypatch) -> None:
    monkeypatch.setenv("CLAIMS_SERVICE_URL", "http://claims.local/api")
    monkeypatch.setenv("POLICIES_SERVICE_URL", "http://policies.local/api")
    monkeypatch.setenv("SERVICE_AUTH_TOKEN", "secret")
    claim_service, policy_service = build_services(load_settings())
    assert claim_service.base_url == "http://claims.local/api"
    assert policy_service.base_url == "http://policies.local/api"
    assert claim_service.session.headers["Authorization"] == "Bearer secret"


@pytest.mark.parametrize("payload", [{"claims": []}, [1, 2], ["claim"], [{"claimId": 1}, None]])
def test_claim_list_with_unexpected_shape_is_service_error(monkeypatch, payload) -> None:
    _record(monkeypatch, FakeResponse(payload=payload))
    with pytest.raises(ServiceError, match="unexpected payload"):
        ClaimService("http://claims.local").get_all_claims()


def test_policy_list_with_unexpected_shape_is_service_error(monkeypatch) -> None:
    _record(monkeypatch, FakeResponse(payload={"policies": [{"policyId": 10}]}))
    with pytest.raises(ServiceError, match="unexpected payload"):
        PolicyService("http://policies.local").get_all_policies()


def test_empty_list_is_a_valid_payload(monkeypatch) -> None:
    _record(monkeypatch, FakeResponse(payload=[]))
    assert ClaimService("http://claims.local").get_all_claims() == []


def test_update_with_non_object_body_is_service_error(monkeypatch) -> None:
    _record(monkeypatch, FakeResponse(payload=["ok"]))
    claim = Claim(claim_id=7, policy_id=10, claim_amt=1.0, description="x", status="Submitted")
    with pytest.raises(ServiceError, match="unexpected payload"):
        ClaimService("http://claims.local").update_claim(7, claim.with_status("Withdrawn"))
