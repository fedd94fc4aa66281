"""
Command Builder: Turn a desktop entry's Exec line into a shell command.

Removes field codes (no file or URL is ever passed), appends the user's
extra arguments verbatim and, for Terminal=true entries, wraps the result
in the first terminal emulator found on PATH.
"""

import logging
import re
import shutil
from typing import Callable, Optional, Sequence, Tuple

from deskentry.desktop_entry import AppInfo

logger = logging.getLogger(__name__)

# (executable, flag placed before the command); "" means no flag
TERMINALS = (
    ("x-terminal-emulator", "-e"),
    ("gnome-terminal", "--"),
    ("konsole", "-e"),
    ("xfce4-terminal", "-e"),
    ("mate-terminal", "-e"),
    ("tilix", "-e"),
    ("alacritty", "-e"),
    ("kitty", "--"),
    ("foot", ""),
    ("xterm", "-e"),
)
FALLBACK_TERMINAL = ("xterm", "-e")

# %% is matched as a single token so a literal percent is never mistaken
# for the start of a field code. Deprecated codes (%d %D %n %N %v %m) are
# dropped as well.
_FIELD_CODE_RE = re.compile(r"%(%|[uUfFickdDnNvm])")

WhichFunc = Callable[[str], Optional[str]]


def strip_field_codes(exec_line: str) -> str:
    """Remove field codes, leaving %% escapes in place."""
    return _FIELD_CODE_RE.sub(lambda m: "%%" if m.group(1) == "%" else "", exec_line)


def unescape_percent(exec_line: str) -> str:
    return exec_line.replace("%%", "%")


def clean_exec(exec_line: str) -> str:
    """Exec line without field codes, %% unescaped, surrounding whitespace trimmed."""
    return unescape_percent(strip_field_codes(exec_line)).strip()


def find_terminal(
    which: WhichFunc = shutil.which,
    candidates: Sequence[Tuple[str, str]] = TERMINALS,
    preferred: Optional[Tuple[str, str]] = None,
) -> Tuple[str, str]:
    """First (terminal, flag) whose executable is on PATH, else xterm."""
    if preferred is not None:
        candidates = (preferred, *candidates)

    for terminal, flag in candidates:
        if which(terminal):
            return terminal, flag

    logger.warning("No terminal emulator found, defaulting to %s", FALLBACK_TERMINAL[0])
    return FALLBACK_TERMINAL


def wrap_in_terminal(command: str, terminal: str, flag: str) -> str:
    if flag:
        return f"{terminal} {flag} {command}"
    return f"{terminal} {command}"


def build_command(
    app: AppInfo,
    custom_args: Optional[str] = None,
    which: WhichFunc = shutil.which,
    preferred_terminal: Optional[Tuple[str, str]] = None,
) -> str:
    """
    Build the shell command line for an application.

    custom_args is appended as-is: the command runs through sh -c, so
    quoting and shell syntax in it are honored. Returns "" when the Exec
    line is empty after cleaning.
    """
    command = clean_exec(app.exec)
    if not command:
        return ""

    if custom_args and custom_args.strip():
        command = f"{command} {custom_args}"

    if app.terminal:
        terminal, flag = find_terminal(which, preferred=preferred_terminal)
        command = wrap_in_terminal(command, terminal, flag)

    return command
