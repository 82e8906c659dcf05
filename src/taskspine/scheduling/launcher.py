"""Process launcher for out-of-process dispatch.

A dispatched firing re-invokes the host program as a child process with the
task's group and name as arguments. Python has no single "current
executable" for that, so the command is resolved in this order:

1. the explicit ``command`` given to ``SubprocessLauncher``;
2. a frozen application (PyInstaller and friends): ``[sys.executable]``;
3. a program started with ``python -m pkg``: ``[sys.executable, "-m", "pkg"]``;
4. a script or console-script path in ``sys.argv[0]``:
   ``[sys.executable, <absolute script path>]``.

Anything else (an interactive session, ``python -c``) raises
``DispatchError``; such hosts must pass the command explicitly.

The child's stdout goes to the null device. Its stderr is streamed line by
line into the logger collaborator's ``write``.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from taskspine.core.errors import DispatchError
from taskspine.core.protocols import TaskLogger

logger = logging.getLogger(__name__)


def _main_module_name() -> str | None:
    main = sys.modules.get("__main__")
    spec = getattr(main, "__spec__", None)
    name = getattr(spec, "name", None)
    if not name:
        return None
    return name.removesuffix(".__main__")


class SubprocessLauncher:
    """``ProcessLauncher`` built on ``subprocess.Popen``."""

    def __init__(self, command: Sequence[str] | None = None) -> None:
        self._command = list(command) if command else None

    def resolve_command(self) -> list[str]:
        """Return the command prefix that re-invokes the host program.

        Raises:
            DispatchError: If the host program cannot be determined.
        """
        if self._command:
            return list(self._command)

        if getattr(sys, "frozen", False):
            return [sys.executable]

        if not sys.executable:
            raise DispatchError("cannot resolve the Python interpreter path; pass an explicit dispatch command")

        module = _main_module_name()
        if module:
            return [sys.executable, "-m", module]

        script = sys.argv[0] if sys.argv else ""
        if script and script not in ("-c", "-") and Path(script).is_file():
            return [sys.executable, str(Path(script).resolve())]

        raise DispatchError(
            "cannot determine the host program to re-invoke; pass an explicit dispatch command"
        ).with_context(command=[script] if script else None)

    def launch(
        self,
        args: Sequence[str],
        env: Mapping[str, str] | None,
        stderr_sink: TaskLogger,
    ) -> int:
        """Run *args* to completion, streaming stderr into *stderr_sink*.

        Returns:
            The child's exit status.

        Raises:
            DispatchError: If the process cannot be started.
        """
        command = list(args)
        try:
            proc = subprocess.Popen(
                command,
                env=dict(env) if env is not None else None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise DispatchError(f"failed to launch {command[0]}: {e}", cause=e).with_context(command=command) from e

        logger.debug("Launched pid %d: %s", proc.pid, command)
        with proc:
            if proc.stderr is not None:
                for line in proc.stderr:
                    stderr_sink.write(line)

        return proc.returncode
