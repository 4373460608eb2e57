#!/usr/bin/env python3
"""Send today's upcoming-bill reminder e-mails."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import Dict

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from budget_planner import config
from budget_planner.reminders import HttpEmailSender, ReminderLog, run_reminders
from budget_planner.storage import BudgetStateStore


def load_addresses(path: Path) -> Dict[str, str]:
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object of user id -> e-mail")
    return {str(k): str(v) for k, v in data.items() if v}


def main() -> int:
    parser = argparse.ArgumentParser(description="Send upcoming bill reminders.")
    parser.add_argument("--addresses", type=Path, required=True,
                        help="JSON file mapping user ids to e-mail addresses")
    parser.add_argument("--date", type=date.fromisoformat, default=None,
                        help="Reference date (YYYY-MM-DD), defaults to today in UTC")
    parser.add_argument("--debug", action="store_true", help="Print per-bill skip details")
    args = parser.parse_args()

    config.configure_logging()
    addresses = load_addresses(args.addresses)
    result = run_reminders(
        BudgetStateStore(),
        ReminderLog(),
        addresses.get,
        HttpEmailSender(),
        today=args.date,
    )
    summary = {"sent": result.sent, "skipped": result.skipped}
    if args.debug:
        summary["details"] = result.details
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
