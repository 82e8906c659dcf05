"""Scheduling primitives for taskspine.

┌──────────────────────────────────────────────────────────────────────────────┐
│  SCHEDULING                                                                   │
│                                                                               │
│  ┌─────────────────────┐  add_func(expr, cb)  ┌──────────────────────────┐   │
│  │  CronDispatcher     │ ───────────────────► │  APSchedulerCronEngine   │   │
│  │  (framework)        │                      │  (timing: WHEN)          │   │
│  │                     │ ◄─────── cb() ────── │                          │   │
│  │                     │                      └──────────────────────────┘   │
│  │                     │  launch(args, env)   ┌──────────────────────────┐   │
│  │                     │ ───────────────────► │  SubprocessLauncher      │   │
│  └─────────────────────┘                      │  (re-invokes the host)   │   │
│                                               └──────────────────────────┘   │
│                                                                               │
│  The engine decides when; the dispatcher decides what happens on a firing.   │
└──────────────────────────────────────────────────────────────────────────────┘

Tags:
    taskspine, scheduling, cron, apscheduler, subprocess
"""

from .apscheduler_engine import APSchedulerCronEngine, build_trigger, parse_duration, translate_day_of_week
from .launcher import SubprocessLauncher

__all__ = [
    "APSchedulerCronEngine",
    "SubprocessLauncher",
    "build_trigger",
    "parse_duration",
    "translate_day_of_week",
]
