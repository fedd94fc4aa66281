"""
Desktop Entry: Parse a single .desktop file into an application record.

Reads the [Desktop Entry] group with configparser and extracts the fields
the launcher cares about: Name, Exec, Icon and Terminal. Localized keys
(Name[de], ...) are ignored; the unlocalized value is always used.
"""

import configparser
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DESKTOP_GROUP = "Desktop Entry"

# Escape sequences allowed in desktop entry string values
_ESCAPES = {"s": " ", "n": "\n", "t": "\t", "r": "\r", "\\": "\\"}


@dataclass
class AppInfo:
    """Represents one launchable application."""
    path: str      # descriptor path, used as the selection key
    name: str
    exec: str      # raw Exec line, field codes included
    icon: Optional[str] = None
    terminal: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "exec": self.exec,
            "icon": self.icon,
            "terminal": self.terminal,
        }


def _unescape(value: str) -> str:
    out = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, "")
        out.append(_ESCAPES.get(nxt, "\\" + nxt))
    return "".join(out)


def _get_bool(entry, key: str) -> bool:
    return (entry.get(key) or "false").strip().lower() == "true"


def read_entry(path) -> Optional[configparser.SectionProxy]:
    """Read the [Desktop Entry] group of a file, or None if unreadable."""
    cp = configparser.ConfigParser(
        interpolation=None,
        delimiters=("=",),
        comment_prefixes=("#",),
        strict=False,
        allow_no_value=True,
        default_section="\0defaults",
    )
    # Keys are case-sensitive in desktop entries
    cp.optionxform = str
    try:
        with open(path, "r", encoding="utf-8") as f:
            # Leading whitespace is not a continuation line here
            cp.read_string("".join(line.lstrip() for line in f), source=os.fspath(path))
    except (OSError, UnicodeDecodeError, configparser.Error) as exc:
        logger.debug("Skipping unreadable desktop entry %s: %s", path, exc)
        return None

    if not cp.has_section(DESKTOP_GROUP):
        return None
    return cp[DESKTOP_GROUP]


def is_hidden(entry) -> bool:
    """True when the entry asks not to be shown in menus."""
    return _get_bool(entry, "NoDisplay") or _get_bool(entry, "Hidden")


def entry_to_app(path, entry) -> Optional[AppInfo]:
    """Build an AppInfo from a parsed group. Needs a non-empty Name and Exec."""
    name = _unescape(entry.get("Name") or "").strip()
    exec_cmd = (entry.get("Exec") or "").strip()
    if not name or not exec_cmd:
        return None

    icon = _unescape(entry.get("Icon") or "").strip() or None
    return AppInfo(
        path=os.fspath(path),
        name=name,
        exec=exec_cmd,
        icon=icon,
        terminal=_get_bool(entry, "Terminal"),
    )


def parse_desktop_file(path) -> Optional[AppInfo]:
    """Parse a .desktop file. Returns None when it is unusable."""
    entry = read_entry(path)
    if entry is None:
        return None
    return entry_to_app(path, entry)


def desktop_file_id(path: str, root: str) -> str:
    """
    Desktop-file ID of a file found below a search root.

    Subdirectory separators become dashes, so
    <root>/kde4/konsole.desktop has the ID kde4-konsole.desktop.
    """
    rel = os.path.relpath(path, root)
    return rel.replace(os.sep, "-")
