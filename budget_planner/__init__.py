"""Top-level package for the Budget Planner.

The primary modules are:

* ``models`` - the immutable :class:`~budget_planner.models.BudgetState`
* ``aggregates`` / ``projection`` / ``insights`` - monthly totals, the
  four-week cash-flow projection and the insights built on it
* ``normalizer`` - the only path by which external updates reach state
* ``copilot`` - the confirm-before-apply proposal flow
* ``storage`` / ``reminders`` / ``export`` - persistence, the bill reminder
  batch job and CSV export

The batch jobs are run from the command line:

```bash
python scripts/send_bill_reminders.py
python scripts/export_budget.py USER_ID
```
"""

from .aggregates import BudgetAggregates, compute_aggregates  # noqa: F401
from .insights import build_cashflow  # noqa: F401
from .models import BudgetState, default_state, from_document, to_document  # noqa: F401
from .normalizer import apply_local_action, apply_update  # noqa: F401
from .projection import project_weekly_amounts  # noqa: F401

__all__ = [
    "BudgetAggregates",
    "BudgetState",
    "apply_local_action",
    "apply_update",
    "build_cashflow",
    "compute_aggregates",
    "default_state",
    "from_document",
    "project_weekly_amounts",
    "to_document",
]
