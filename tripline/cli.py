"""tripline CLI: inspect and apply transport choices against the schedule store."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from tripline.application.context import make_app_context
from tripline.domain.exceptions import DomainError
from tripline.domain.models import MemberBalance, UpdatePreview
from tripline.scheduling.settlement import settle
from tripline.services.feasibility_presenter import present_validation
from tripline.shared.exceptions import StorageError


def _format_preview(preview: UpdatePreview) -> str:
    if preview.is_empty:
        return "No schedule change needed."
    lines = [f"Shift: {preview.total_shift_minutes:+d} min, {len(preview.affected_activities)} activities"]
    for update in preview.affected_activities:
        lines.append(
            f"  {update.activity_id}: {update.old_start:%H:%M}-{update.old_end:%H:%M}"
            f" -> {update.new_start:%H:%M}-{update.new_end:%H:%M}"
        )
    if preview.conflicts:
        unique = list(dict.fromkeys(preview.conflicts))
        lines.append(f"  Conflicts with fixed activities: {', '.join(unique)}")
    return "\n".join(lines)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tripline", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate", help="Check whether alternatives fit the schedule")
    validate.add_argument("alternative_ids", nargs="+")

    impact = sub.add_parser("impact", help="Preview the downstream shift of an alternative")
    impact.add_argument("alternative_id")

    select = sub.add_parser("select", help="Select an alternative and apply its shift")
    select.add_argument("alternative_id")
    select.add_argument("--accept-conflicts", action="store_true")

    settle_cmd = sub.add_parser("settle", help="Turn a JSON list of balances into transfers")
    settle_cmd.add_argument("balances_file", type=Path, help="JSON file: [{\"id\": ..., \"balance\": ...}]")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = _build_parser().parse_args(argv)

    if args.command == "settle":
        raw = json.loads(args.balances_file.read_text(encoding="utf-8"))
        transfers = settle(MemberBalance(**row) for row in raw)
        print(json.dumps([item.model_dump() for item in transfers], ensure_ascii=False, indent=2))
        return 0

    try:
        service = make_app_context().transport_service()
        if args.command == "validate":
            outcomes = service.validate_many(args.alternative_ids)
            report = {
                key: {"error": str(value)} if isinstance(value, DomainError) else present_validation(value)
                for key, value in outcomes.items()
            }
            print(json.dumps(report, ensure_ascii=False, indent=2, default=str))
        elif args.command == "impact":
            print(_format_preview(service.preview(args.alternative_id)))
        elif args.command == "select":
            preview = service.select(args.alternative_id, accept_conflicts=args.accept_conflicts)
            print(_format_preview(preview))
            print(f"Selected {args.alternative_id}.")
    except (DomainError, StorageError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
