from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .config import load_settings
from .controller import ClaimsViewController
from .errors import ClaimNotFound
from .observability import configure_logging
from .presentation import render_view
from .schemas import STATUS_FILTER_ALL, STATUS_FILTER_OPTIONS
from .services import build_services


def _json_print(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="claimdesk", description="ClaimDesk CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    web = sub.add_parser("serve-web", help="Run the ClaimDesk web interface")
    web.add_argument("--host", default="127.0.0.1")
    web.add_argument("--port", type=int, default=8000)
    web.add_argument("--reload", action="store_true")

    listing = sub.add_parser("list-claims", help="List active claims with optional filters")
    listing.add_argument("--search", default="")
    listing.add_argument("--status", choices=STATUS_FILTER_OPTIONS, default=STATUS_FILTER_ALL)

    sub.add_parser("history", help="List every claim, including withdrawn ones")

    for name, help_text in (
        ("withdraw", "Withdraw a claim (soft delete)"),
        ("delete", "Permanently delete an unprocessed claim"),
    ):
        action = sub.add_parser(name, help=help_text)
        action.add_argument("claim_id")
        action.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    return parser


def _confirm(prompt: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    answer = input(f"{prompt} [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


async def _run(args: argparse.Namespace, view: ClaimsViewController, currency_symbol: str) -> dict[str, Any]:
    if not await view.mount():
        return {
            "error": "fetch_failed",
            "hint": "Check CLAIMS_SERVICE_URL and POLICIES_SERVICE_URL.",
        }

    if args.command == "list-claims":
        view.set_search_text(args.search)
        view.set_status_filter(args.status)
        rendered = render_view(view.state, currency_symbol=currency_symbol)
        return {"claims": rendered["cards"], "count": len(rendered["cards"])}

    if args.command == "history":
        view.open_history()
        rendered = render_view(view.state, currency_symbol=currency_symbol)
        return {"history": rendered["history"], "count": len(rendered["history"])}

    try:
        claim = view.find_claim(args.claim_id)
    except ClaimNotFound as exc:
        return {"error": "claim_not_found", "detail": str(exc)}

    if args.command == "withdraw":
        request = view.request_withdraw(claim)
    else:
        request = view.request_delete(claim)

    done = False
    if request is not None:
        accepted = _confirm(request.prompt, args.yes)
        done = await view.resolve_confirmation(request.confirmation_id, accepted)

    return {
        "claim_id": claim.claim_id,
        "action": args.command,
        "done": done,
        "notices": [asdict(n) for n in view.drain_notices()],
    }


def main() -> None:
    project_root = Path(__file__).resolve().parents[1]
    load_dotenv(project_root / ".env", override=False)
    settings = load_settings()
    configure_logging(settings.log_level, settings.log_format)
    parser = _build_parser()
    args = parser.parse_args()

    if args.command == "serve-web":
        import uvicorn

        uvicorn.run(
            "claimdesk.web_app:create_web_app",
            host=args.host,
            port=args.port,
            reload=bool(args.reload),
            factory=True,
        )
        return

    claim_service, policy_service = build_services(settings)
    view = ClaimsViewController(claim_service, policy_service)
    _json_print(asyncio.run(_run(args, view, settings.currency_symbol)))


if __name__ == "__main__":
    main()
