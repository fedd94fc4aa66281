"""
Launcher: Run a built command line detached from the plugin.

Commands go through `sh -c`. When the plugin itself runs inside a
flatpak sandbox the command is forwarded to the host with
`flatpak-spawn --host` so the application starts outside the sandbox.

Launching is fire and forget: output is discarded, the child gets its own
session, nobody waits on it, and a failure to spawn is only logged.
"""

import functools
import logging
import os
import subprocess
import threading
from subprocess import DEVNULL
from typing import List, Mapping, Optional

logger = logging.getLogger(__name__)

HOST_SPAWN = "flatpak-spawn"
FALLBACK_CWD = "/tmp"


def detect_sandbox(environ: Mapping[str, str]) -> bool:
    """True if the environment marks a flatpak sandbox."""
    if "FLATPAK_ID" in environ:
        return True
    return environ.get("container", "").strip().lower() == "flatpak"


@functools.lru_cache(maxsize=None)
def is_sandboxed() -> bool:
    """Sandbox detection for this process, evaluated once."""
    sandboxed = detect_sandbox(os.environ)
    if sandboxed:
        logger.info("Running inside flatpak, launching through %s --host", HOST_SPAWN)
    return sandboxed


def working_directory(environ: Mapping[str, str]) -> str:
    home = environ.get("HOME")
    if home and os.path.isdir(home):
        return home
    return FALLBACK_CWD


def _reap(proc: subprocess.Popen) -> None:
    proc.wait()


class Launcher:
    """Spawns shell commands, escaping the sandbox when needed."""

    def __init__(self, sandboxed: Optional[bool] = None, popen=subprocess.Popen):
        self.sandboxed = is_sandboxed() if sandboxed is None else sandboxed
        self._popen = popen

    def argv(self, command: str) -> List[str]:
        if self.sandboxed:
            return [HOST_SPAWN, "--host", "sh", "-c", command]
        return ["sh", "-c", command]

    def launch(self, command: str) -> None:
        """Start command detached. Empty commands are ignored."""
        if not command:
            return

        logger.info("Launching: %s", command)
        try:
            proc = self._popen(
                self.argv(command),
                cwd=working_directory(os.environ),
                stdin=DEVNULL,
                stdout=DEVNULL,
                stderr=DEVNULL,
                start_new_session=True,
            )
        except (OSError, ValueError) as exc:
            logger.error("Failed to launch %s: %s", command, exc)
            return

        # Collect the exit status in the background so no zombie is left
        threading.Thread(target=_reap, args=(proc,), daemon=True).start()
