"""State container and action handlers for the claims page.

The controller owns a single immutable ``ViewState`` snapshot. Every change
goes through ``_update``, which re-derives ``filtered_claims`` when one of its
inputs changed and then notifies subscribers. Remote calls are awaited on the
event loop, with the blocking HTTP clients pushed to worker threads.

Nothing here blocks on the user. Actions that need consent return a
``ConfirmationRequest`` and wait for ``resolve_confirmation``; failures that
the user must see are queued as ``Notice`` objects.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from .errors import ClaimNotFound, ConfirmationNotFound, FormValidationError, ServiceError
from .filtering import filter_claims
from .schemas import (
    CLAIM_STATUSES,
    STATUS_FILTER_ALL,
    SUBMITTED,
    WITHDRAWN,
    Claim,
    ClaimForm,
    ConfirmationRequest,
    Notice,
    Policy,
)

logger = logging.getLogger(__name__)

FILTER_INPUTS = frozenset({"claims", "policies", "search_text", "status_filter"})

ACTION_DELETE = "delete"
ACTION_WITHDRAW = "withdraw"

CONFIRM_DELETE_PROMPT = "Are you sure you want to delete this claim?"
CONFIRM_WITHDRAW_PROMPT = "Are you sure you want to withdraw this claim?"


@dataclass(slots=True)
class ViewState:
    claims: list[Claim] = field(default_factory=list)
    policies: list[Policy] = field(default_factory=list)
    filtered_claims: list[Claim] = field(default_factory=list)
    loading: bool = True
    show_modal: bool = False
    selected_claim: Claim | None = None
    show_history: bool = False
    search_text: str = ""
    status_filter: str = STATUS_FILTER_ALL


Listener = Callable[[ViewState], None]


def validate_form(form: ClaimForm, policies: list[Policy]) -> None:
    if not any(p.policy_id == form.policy_id for p in policies):
        raise FormValidationError("Please select a valid policy")
    try:
        amount = float(form.claim_amt)
    except (TypeError, ValueError) as exc:
        raise FormValidationError("Claim amount must be a number") from exc
    if amount <= 0:
        raise FormValidationError("Claim amount must be greater than zero")
    if not (form.description or "").strip():
        raise FormValidationError("Description is required")


class ClaimsViewController:
    def __init__(self, claim_service: Any, policy_service: Any, view_id: str | None = None) -> None:
        self.view_id = view_id or uuid.uuid4().hex[:12]
        self._claim_service = claim_service
        self._policy_service = policy_service
        self._state = ViewState()
        self._listeners: list[Listener] = []
        self._notices: list[Notice] = []
        # confirmation id -> (request, claim as it was when the user clicked)
        self._pending: dict[str, tuple[ConfirmationRequest, Claim]] = {}

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def pending_confirmations(self) -> list[ConfirmationRequest]:
        return [request for request, _claim in self._pending.values()]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes: Any) -> None:
        state = replace(self._state, **changes)
        if FILTER_INPUTS.intersection(changes):
            state.filtered_claims = filter_claims(
                state.claims, state.policies, state.search_text, state.status_filter
            )
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _log_extra(self, claim_id: Any = None) -> dict[str, Any]:
        extra: dict[str, Any] = {"view_id": self.view_id}
        if claim_id is not None:
            extra["claim_id"] = claim_id
        return extra

    def _notify(self, message: str, level: str = "error") -> None:
        self._notices.append(Notice(level=level, message=message))

    def drain_notices(self) -> list[Notice]:
        notices, self._notices = self._notices, []
        return notices

    def find_claim(self, claim_id: Any) -> Claim:
        for claim in self._state.claims:
            if str(claim.claim_id) == str(claim_id):
                return claim
        raise ClaimNotFound(f"Claim {claim_id} not found")

    async def fetch_data(self) -> bool:
        """Reload claims and policies together.

        Both requests always run to completion. If either fails the previous
        lists are kept and the error is logged. ``loading`` is cleared either way.
        """
        try:
            claims, policies = await asyncio.gather(
                asyncio.to_thread(self._claim_service.get_all_claims),
                asyncio.to_thread(self._policy_service.get_all_policies),
                return_exceptions=True,
            )
            for result in (claims, policies):
                if isinstance(result, ServiceError):
                    logger.error(
                        "Error fetching data: %s", result, exc_info=result, extra=self._log_extra()
                    )
                    return False
                if isinstance(result, BaseException):
                    raise result
            self._update(claims=list(claims or []), policies=list(policies or []))
            logger.debug(
                "Fetched %d claims and %d policies",
                len(self._state.claims),
                len(self._state.policies),
                extra=self._log_extra(),
            )
            return True
        finally:
            self._update(loading=False)

    async def mount(self) -> bool:
        return await self.fetch_data()

    def set_search_text(self, text: str) -> None:
        self._update(search_text=text or "")

    def set_status_filter(self, status: str) -> None:
        if status != STATUS_FILTER_ALL and status not in CLAIM_STATUSES:
            raise ValueError(f"Unknown status filter: {status}")
        self._update(status_filter=status)

    def open_history(self) -> None:
        self._update(show_history=True)

    def close_history(self) -> None:
        self._update(show_history=False)

    def add_claim(self) -> None:
        self._update(selected_claim=None, show_modal=True)

    def edit_claim(self, claim: Claim) -> bool:
        if claim.is_processed:
            self._notify("Cannot edit processed claims")
            return False
        if claim.is_withdrawn:
            self._notify("Cannot edit withdrawn claims")
            return False
        self._update(selected_claim=claim, show_modal=True)
        return True

    def _ask(self, action: str, claim: Claim, prompt: str) -> ConfirmationRequest:
        # at most one open question per claim and action
        for stale_id, (stale, _claim) in list(self._pending.items()):
            if stale.action == action and stale.claim_id == claim.claim_id:
                del self._pending[stale_id]
        request = ConfirmationRequest(
            confirmation_id=uuid.uuid4().hex[:12],
            action=action,
            claim_id=claim.claim_id,
            prompt=prompt,
        )
        self._pending[request.confirmation_id] = (request, claim)
        return request

    def request_delete(self, claim: Claim) -> ConfirmationRequest | None:
        if claim.is_processed:
            self._notify("Cannot delete processed claims")
            return None
        return self._ask(ACTION_DELETE, claim, CONFIRM_DELETE_PROMPT)

    def request_withdraw(self, claim: Claim) -> ConfirmationRequest | None:
        if claim.is_processed:
            self._notify("Cannot withdraw processed claims")
            return None
        if claim.is_withdrawn:
            self._notify("Claim is already withdrawn", level="warning")
            return None
        return self._ask(ACTION_WITHDRAW, claim, CONFIRM_WITHDRAW_PROMPT)

    async def resolve_confirmation(self, confirmation_id: str, accepted: bool) -> bool:
        """Answer a pending confirmation. Returns True when the action went through."""
        pending = self._pending.pop(confirmation_id, None)
        if pending is None:
            raise ConfirmationNotFound(f"Confirmation {confirmation_id} not found")
        request, claim = pending
        if not accepted:
            return False
        if request.action == ACTION_DELETE:
            return await self._delete(claim.claim_id)
        return await self._withdraw(claim)

    async def _delete(self, claim_id: Any) -> bool:
        try:
            await asyncio.to_thread(self._claim_service.delete_claim, claim_id)
        except ServiceError:
            logger.exception("Error deleting claim", extra=self._log_extra(claim_id))
            self._notify("Failed to delete claim")
            return False
        await self.fetch_data()
        return True

    async def _withdraw(self, claim: Claim) -> bool:
        # soft delete: the record stays, only its status changes
        updated = claim.with_status(WITHDRAWN)
        try:
            await asyncio.to_thread(self._claim_service.update_claim, claim.claim_id, updated)
        except ServiceError:
            logger.exception("Error withdrawing claim", extra=self._log_extra(claim.claim_id))
            self._notify("Failed to withdraw claim")
            return False
        await self.fetch_data()
        return True

    async def submit_form(self, form: ClaimForm) -> bool:
        try:
            validate_form(form, self._state.policies)
        except FormValidationError as exc:
            self._notify(str(exc), level="warning")
            return False

        selected = self._state.selected_claim
        try:
            if selected is None:
                claim = Claim(
                    claim_id=None,
                    policy_id=form.policy_id,
                    claim_amt=float(form.claim_amt),
                    description=form.description.strip(),
                    status=SUBMITTED,
                    submitted_at=datetime.now(UTC).isoformat(),
                )
                await asyncio.to_thread(self._claim_service.create_claim, claim)
            else:
                claim = replace(
                    selected,
                    policy_id=form.policy_id,
                    claim_amt=float(form.claim_amt),
                    description=form.description.strip(),
                    extra=dict(selected.extra),
                )
                await asyncio.to_thread(self._claim_service.update_claim, selected.claim_id, claim)
        except ServiceError:
            logger.exception("Error saving claim", extra=self._log_extra(getattr(selected, "claim_id", None)))
            self._notify("Failed to save claim")
            return False

        await self.close_modal()
        return True

    async def close_modal(self) -> None:
        # refetch even on cancel
        self._update(show_modal=False, selected_claim=None)
        await self.fetch_data()
