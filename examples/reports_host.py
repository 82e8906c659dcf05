#!/usr/bin/env python3
"""Reports Host - one program that both runs and dispatches its tasks.

WHY ONE PROGRAM
───────────────
A dispatched firing re-invokes the program that registered the task, as a
child process named by ``run <group> <name>``. A crashing or leaking task
then takes down only its own process, while the dispatcher keeps firing
everything else. Tasks marked ``execute_inline`` skip the child process and
run on a thread of the dispatcher instead.

ARCHITECTURE
────────────
    python examples/reports_host.py dispatch
         │
         ▼
    ┌───────────────────────────────┐
    │ TaskContainer.dispatch_tasks  │
    │  reports:daily  0 0 * * *     │──► child: reports_host.py run reports daily
    │  cache:warm     @every 10s    │──► inline thread in this process
    │  ops:backfill   manual        │    (never dispatched)
    └───────────────────────────────┘

ENABLEMENT
──────────
    TASKSPINE_CFG__TASKSPINE__CACHE__WARM=false   switches cache:warm off
    (read by EnvConfig; an unset variable leaves the task enabled)

Run:
    python examples/reports_host.py list
    python examples/reports_host.py run reports daily
    python examples/reports_host.py dispatch --for 30
"""

import random
import time

from taskspine import EnvConfig, TaskContainer, TaskspineSettings
from taskspine.cli import create_app

container = TaskContainer.from_settings(TaskspineSettings(), config=EnvConfig())


@container.task("reports", "daily", schedule="0 0 * * *", error_after=600)
def daily_report():
    """Build the daily report."""
    time.sleep(0.5)
    return {"rows": 1200}


@container.task("cache", "warm", schedule="@every 10s", execute_inline=True, error_after=2)
def warm_cache():
    """Refresh the in-process cache."""
    # Overruns now and then so the watchdog has something to report
    time.sleep(random.choice([0.1, 0.1, 3.0]))


@container.task("ops", "backfill", schedule="manual")
def backfill():
    """Manual backfill, only ever run by hand."""
    raise RuntimeError("backfill source unavailable")


app = create_app(container, name="reports-host")

if __name__ == "__main__":
    app()
