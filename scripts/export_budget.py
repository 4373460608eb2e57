#!/usr/bin/env python3
"""Export one user's budget to CSV."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from budget_planner import config
from budget_planner.export import write_budget_csv
from budget_planner.storage import BudgetStateStore


def main() -> int:
    parser = argparse.ArgumentParser(description="Export a stored budget as CSV.")
    parser.add_argument("user_id", help="Owner of the budget state")
    parser.add_argument("--out", type=Path, default=None,
                        help="Output directory (defaults to the exports folder)")
    args = parser.parse_args()

    config.configure_logging()
    state = BudgetStateStore().load(args.user_id)
    if state is None:
        print(f"No budget stored for {args.user_id}")
        return 1
    target = write_budget_csv(state, directory=args.out)
    print(f"Wrote {target}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
