"""Process re-invocation under refreshed group credentials."""

import os
import shlex
import sys
from typing import Callable, List, Optional, Sequence


def build_group_reexec_command(group: str, cwd: str, argv: Sequence[str]) -> List[str]:
    script = " ".join(shlex.quote(arg) for arg in argv)
    return ["sg", group, "-c", f"cd {shlex.quote(cwd)} && exec {script}"]


class SessionService:
    """Restarts the running entry point so new group membership applies."""

    def __init__(
        self,
        logger,
        console,
        argv: Optional[Sequence[str]] = None,
        execvp: Callable = os.execvp,
    ):
        self.logger = logger
        self.console = console
        self.argv = list(argv if argv is not None else sys.argv)
        self.execvp = execvp

    def entry_argv(self) -> List[str]:
        argv = list(self.argv)
        if argv:
            argv[0] = os.path.abspath(argv[0]) if os.path.exists(argv[0]) else argv[0]
        return argv

    def restart_under_group(self, group: str):
        command = build_group_reexec_command(group, os.getcwd(), self.entry_argv())
        self.console.print(f"Restarting with {group} group...")
        self.logger.debug("Re-executing: %s", " ".join(command))
        self.execvp(command[0], command)
