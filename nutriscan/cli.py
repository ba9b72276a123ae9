"""
NutriScan command-line front end.

Usage:
    nutriscan login ada@example.com
    nutriscan profile update --weight-kg 80 --height-cm 180
    nutriscan scan --mode enhanced plate1.jpg plate2.jpg
    nutriscan history
    nutriscan history <scan-id>

Exit codes: 0 success, 1 error, 2 session rejected by the backend.
"""

import argparse
import asyncio
import getpass
import sys
from typing import Any, Dict, List, Optional

import structlog
from dotenv import load_dotenv

from nutriscan import __version__
from nutriscan.application.history.history_service import HistoryService
from nutriscan.application.profile.profile_service import ProfileService, UserProfile
from nutriscan.application.scan.orchestrator import ScanOrchestrator
from nutriscan.application.session.session_store import SessionStore
from nutriscan.domain.biometrics.models import CONDITION_FLAGS, NUMERIC_FIELDS
from nutriscan.domain.history.models import HistoryItem, format_relative_time
from nutriscan.domain.scan.models import ImageRef, ScanMode, UploadState
from nutriscan.domain.scan.result_models import ScanResult
from nutriscan.domain.session.events import SessionEnded, SessionEndReason
from nutriscan.domain.shared.errors import BackendError, DomainError, ValidationError
from nutriscan.infrastructure.config import ClientSettings
from nutriscan.infrastructure.events.in_memory_bus import InMemoryEventBus
from nutriscan.infrastructure.http.api_client import NutriScanApiClient
from nutriscan.infrastructure.logging_config import configure_logging
from nutriscan.infrastructure.storage.json_file_store import JsonFileKeyValueStore

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_SESSION_REJECTED = 2


# ═══════════════════════════════════════════════════════════
# RENDERING
# ═══════════════════════════════════════════════════════════


def render_result(result: ScanResult) -> str:
    """Plain-text rendering of a scan result."""
    score = result.health_score
    lines: List[str] = []

    title = result.food_name or ("Food Photo" if result.is_food_photo else "Nutrition Label")
    if result.is_historical:
        title += " (from history)"
    lines.append(title)
    lines.append(
        f"Health score: {score.overall_score:g}/100 "
        f"[{score.tier.value}, {score.tier.color}]"
    )
    if score.category:
        lines.append(f"Category: {score.category}")
    if result.confidence:
        lines.append(f"Confidence: {result.confidence}")

    lines.append("")
    lines.append("Breakdown:")
    for label, value, tier in score.breakdown.bars():
        lines.append(f"  {label:<9} {value:>5g}  {tier.value}")

    facts = result.nutrition_data.facts()
    if facts:
        lines.append("")
        lines.append("Nutrition facts:")
        for label, value in facts:
            lines.append(f"  {label:<14} {value}")

    for heading, items in (("Warnings", score.warnings), ("Recommendations", score.recommendations)):
        if items:
            lines.append("")
            lines.append(f"{heading}:")
            lines.extend(f"  - {item}" for item in items)

    advice = result.ai_advice
    if advice:
        lines.append("")
        lines.append("AI advice:")
        if advice.explanation:
            lines.append(f"  {advice.explanation}")
        if advice.healthy_alternatives:
            lines.append("  Alternatives: " + ", ".join(advice.healthy_alternatives))
        if advice.detailed_advice:
            lines.append(f"  {advice.detailed_advice}")

    if result.disclaimer:
        lines.append("")
        lines.append(result.disclaimer)
    return "\n".join(lines)


def render_profile(profile: UserProfile) -> str:
    """Plain-text rendering of the profile with derived metrics and risks."""
    lines = [f"Email: {profile.user.email}"]
    values = profile.biometrics.model_dump(exclude_none=True)
    for name, value in values.items():
        shown = value.value if hasattr(value, "value") else value
        lines.append(f"  {name:<20} {shown}")

    derived = profile.derived
    bmi = f"{derived.bmi:g}" if derived.bmi is not None else "-"
    lines.append(f"BMI: {bmi} ({derived.bmi_category.value})")
    lines.append(f"Healthy: {'yes' if derived.is_healthy else 'no'}")

    if profile.risks:
        lines.append("Risks:")
        for metric, risk in profile.risks.items():
            flag = "!" if risk.at_risk else " "
            lines.append(f" {flag} {metric:<15} {risk.value:g}  {risk.tier.value}")
    return "\n".join(lines)


def render_history(items: List[HistoryItem]) -> str:
    if not items:
        return "No scans yet"
    return "\n".join(
        f"{item.id}  {item.title:<16} {item.food_name or '':<20} "
        f"{item.overall_score:>5g}  {item.tier.value:<9} {format_relative_time(item.created_at)}"
        for item in items
    )


# ═══════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════


def _password(args: argparse.Namespace) -> str:
    return args.password if args.password is not None else getpass.getpass("Password: ")


async def cmd_login(args: argparse.Namespace, store: SessionStore, client: NutriScanApiClient) -> None:
    session = await store.login(args.email, _password(args))
    print(f"Logged in as {session.user_email}")


async def cmd_register(
    args: argparse.Namespace, store: SessionStore, client: NutriScanApiClient
) -> None:
    session = await store.register(args.email, _password(args))
    print(f"Account created for {session.user_email}")


async def cmd_logout(args: argparse.Namespace, store: SessionStore, client: NutriScanApiClient) -> None:
    await store.logout()
    print("Logged out")


async def cmd_profile(args: argparse.Namespace, store: SessionStore, client: NutriScanApiClient) -> None:
    service = ProfileService(store, client)
    if args.profile_command == "update":
        form: Dict[str, Any] = {
            name: getattr(args, name)
            for name in (*NUMERIC_FIELDS, *CONDITION_FLAGS, "scoring_mode")
            if getattr(args, name) is not None
        }
        profile = await service.update_profile(form)
        print("Profile updated")
    else:
        profile = await service.get_profile()
    print(render_profile(profile))


async def cmd_scan(args: argparse.Namespace, store: SessionStore, client: NutriScanApiClient) -> None:
    orchestrator = ScanOrchestrator(store, client)
    orchestrator.select_mode(args.mode)
    if orchestrator.descriptor.replaces and len(args.images) > 1:
        raise ValidationError(f"{args.mode} mode takes a single image")

    for path in args.images:
        orchestrator.add_image(ImageRef.from_path(path))

    def show_state(state: UploadState) -> None:
        if state is UploadState.UPLOADING:
            print(f"Uploading {len(orchestrator.images)} image(s)...", file=sys.stderr)

    orchestrator.subscribe(show_state)
    result = await orchestrator.submit()
    print(render_result(result))


async def cmd_history(args: argparse.Namespace, store: SessionStore, client: NutriScanApiClient) -> None:
    service = HistoryService(store, client)
    if args.scan_id:
        print(render_result(await service.get_scan(args.scan_id)))
    else:
        print(render_history(await service.list_scans()))


COMMANDS = {
    "login": cmd_login,
    "register": cmd_register,
    "logout": cmd_logout,
    "profile": cmd_profile,
    "scan": cmd_scan,
    "history": cmd_history,
}


# ═══════════════════════════════════════════════════════════
# ENTRY POINT
# ═══════════════════════════════════════════════════════════


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nutriscan", description="NutriScan client")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--api-url", help="Backend base URL (NUTRISCAN_API_BASE_URL)")
    parser.add_argument("--log-level", help="Log level (NUTRISCAN_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    for name in ("login", "register"):
        auth = sub.add_parser(name, help=f"{name.capitalize()} with email and password")
        auth.add_argument("email")
        auth.add_argument("--password", help="Prompted when omitted")

    sub.add_parser("logout", help="Clear the stored session")

    profile = sub.add_parser("profile", help="Show or update the biometric profile")
    profile_sub = profile.add_subparsers(dest="profile_command", required=True)
    profile_sub.add_parser("show", help="Show profile, BMI and risk tiers")
    update = profile_sub.add_parser("update", help="Update profile fields")
    for name in NUMERIC_FIELDS:
        update.add_argument(f"--{name.replace('_', '-')}", dest=name, metavar="VALUE")
    for name in CONDITION_FLAGS:
        update.add_argument(f"--{name.replace('_', '-')}", dest=name, metavar="yes|no")
    update.add_argument(
        "--scoring-mode", dest="scoring_mode", choices=["portion-aware", "per-100g"]
    )

    scan = sub.add_parser("scan", help="Upload images for scoring")
    scan.add_argument(
        "--mode",
        choices=[m.value for m in ScanMode],
        default=ScanMode.ENHANCED.value,
    )
    scan.add_argument("images", nargs="+", metavar="IMAGE")

    history = sub.add_parser("history", help="List past scans or show one")
    history.add_argument("scan_id", nargs="?", metavar="ID")
    return parser


async def run(args: argparse.Namespace, settings: ClientSettings) -> int:
    """Execute one command and return the exit code."""
    bus = InMemoryEventBus()
    rejected: List[SessionEnded] = []

    async def on_session_ended(event: SessionEnded) -> None:
        if event.reason is SessionEndReason.AUTH_REJECTED:
            rejected.append(event)

    bus.subscribe(SessionEnded, on_session_ended)

    async with NutriScanApiClient(
        base_url=settings.api_base_url,
        timeout_seconds=settings.timeout_seconds,
        max_retries=settings.max_retries,
    ) as client:
        store = SessionStore(client, JsonFileKeyValueStore(settings.storage_path), bus)
        await store.restore()
        try:
            await COMMANDS[args.command](args, store, client)
        except DomainError as e:
            if rejected:
                print("Session expired, please login again", file=sys.stderr)
                return EXIT_SESSION_REJECTED
            detail = f" (HTTP {e.status_code})" if isinstance(e, BackendError) and e.status_code else ""
            print(f"Error: {e}{detail}", file=sys.stderr)
            return EXIT_ERROR
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = ClientSettings.from_env(api_base_url=args.api_url)
    configure_logging(level=args.log_level or settings.log_level, json_output=settings.log_json)

    try:
        return asyncio.run(run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
