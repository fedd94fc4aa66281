"""
App Scanner: Discover installed Linux applications from .desktop files.

Walks the XDG application directories (user directories first), parses
each .desktop entry and returns a catalog sorted by name for the
property inspector's app picker.
"""

import logging
import os
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from deskentry.desktop_entry import (
    AppInfo,
    desktop_file_id,
    entry_to_app,
    is_hidden,
    parse_desktop_file,
    read_entry,
)
from deskentry.launcher import is_sandboxed

logger = logging.getLogger(__name__)

# Host directories visible from inside a flatpak sandbox
FLATPAK_HOST_DIRS = [
    "/run/host/usr/share/applications",
    "/run/host/usr/local/share/applications",
    "/run/host/share/flatpak/exports/share/applications",
]


def default_search_paths(extra_dirs: Sequence[str] = ()) -> List[str]:
    """
    Ordered application directories, highest precedence first.

    User data dir, user flatpak exports, configured extra dirs, then each
    XDG_DATA_DIRS entry and the system flatpak exports.
    """
    home = os.path.expanduser("~")
    data_home = os.environ.get("XDG_DATA_HOME") or os.path.join(home, ".local", "share")
    data_dirs = os.environ.get("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"

    paths = [
        os.path.join(data_home, "applications"),
        os.path.join(data_home, "flatpak", "exports", "share", "applications"),
    ]
    paths.extend(extra_dirs)
    for data_dir in data_dirs.split(":"):
        if data_dir:
            paths.append(os.path.join(data_dir, "applications"))
    paths.append("/var/lib/flatpak/exports/share/applications")

    if is_sandboxed():
        paths.extend(FLATPAK_HOST_DIRS)

    # Drop duplicates, keep first occurrence
    seen = set()
    ordered = []
    for path in paths:
        norm = os.path.normpath(path)
        if norm not in seen:
            seen.add(norm)
            ordered.append(norm)
    return ordered


def iter_desktop_files(search_paths: Sequence[str]) -> Iterator[Tuple[str, str]]:
    """Yield (desktop_file_id, path) for every .desktop file, in search order."""
    for app_dir in search_paths:
        if not os.path.isdir(app_dir):
            continue

        for dirpath, dirnames, filenames in os.walk(app_dir, onerror=_log_walk_error):
            dirnames.sort()
            for file_name in sorted(filenames):
                if not file_name.endswith(".desktop"):
                    continue
                path = os.path.join(dirpath, file_name)
                yield desktop_file_id(path, app_dir), path


def _log_walk_error(exc: OSError) -> None:
    logger.debug("Cannot list %s: %s", exc.filename, exc)


def scan_applications(search_paths: Optional[Sequence[str]] = None) -> List[AppInfo]:
    """
    Scan the system for launchable applications.

    The first file found for a desktop-file ID shadows later ones, so a
    user override (even a hidden one) replaces the system entry. Entries
    marked NoDisplay or Hidden are left out. Returns AppInfo objects sorted
    case-insensitively by name, discovery order breaking ties.
    """
    if search_paths is None:
        search_paths = default_search_paths()

    apps = []
    claimed: Dict[str, str] = {}

    for file_id, path in iter_desktop_files(search_paths):
        if file_id in claimed:
            logger.debug("%s shadowed by %s", path, claimed[file_id])
            continue

        entry = read_entry(path)
        if entry is None:
            continue
        claimed[file_id] = path

        if is_hidden(entry):
            continue

        app = entry_to_app(path, entry)
        if app is None:
            logger.debug("Skipping %s: missing Name or Exec", path)
            continue
        apps.append(app)

    apps.sort(key=lambda a: a.name.lower())
    logger.debug("Found %d applications in %d directories", len(apps), len(search_paths))
    return apps


def find_app(identifier: str) -> Optional[AppInfo]:
    """Look up one application by its descriptor path. Hidden entries still resolve."""
    if not identifier:
        return None
    return parse_desktop_file(identifier)
