"""
Icon Resolver: Find an application's icon and encode it as a data URI.

Resolves the Icon= value of a desktop entry against the active icon
theme (and the themes it inherits from, ending with hicolor), picking the
file whose size directory is closest to the requested size. The file's
bytes are passed through untouched and wrapped in a base64 data URI that
the remote surface can display directly.
"""

import base64
import configparser
import glob
import logging
import os
import re
import subprocess
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from deskentry.app_scanner import find_app
from deskentry.config_manager import DEFAULT_ICON_SIZE

logger = logging.getLogger(__name__)

# Literal understood by the host as "show the action's default icon"
DEFAULT_ICON = "icon"

ICON_EXTENSIONS = (".png", ".svg", ".xpm")
PIXMAPS_DIR = "/usr/share/pixmaps"
FALLBACK_THEME = "hicolor"

# File extension -> image/<subtype>
MIME_SUBTYPES = {
    "svg": "svg+xml",
    "png": "png",
    "xpm": "x-xpixmap",
    "ico": "x-icon",
    "jpg": "jpeg",
    "jpeg": "jpeg",
}

# 48x48, 48x48@2, 48 (Papirus style apps/48/)
_SIZE_DIR_RE = re.compile(r"^(\d+)(?:x\d+)?(?:@(\d+)x?)?$")


# ---------------------------------------------------------------------------
# Theme discovery
# ---------------------------------------------------------------------------

def get_icon_theme() -> str:
    """Get the active GTK icon theme name."""
    try:
        result = subprocess.run(
            ["gtk-query-settings", "gtk-icon-theme-name"],
            capture_output=True, text=True, timeout=5
        )
        for line in result.stdout.splitlines():
            if "gtk-icon-theme-name" in line:
                # Format: gtk-icon-theme-name: "kora"
                parts = line.split('"')
                if len(parts) >= 2 and parts[1]:
                    return parts[1]
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as exc:
        logger.debug("gtk-query-settings unavailable: %s", exc)

    settings_ini = os.path.expanduser("~/.config/gtk-3.0/settings.ini")
    cp = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        cp.read(settings_ini, encoding="utf-8")
        theme = cp.get("Settings", "gtk-icon-theme-name", fallback="").strip()
        if theme:
            return theme
    except (configparser.Error, UnicodeDecodeError) as exc:
        logger.debug("Cannot read %s: %s", settings_ini, exc)

    return FALLBACK_THEME


def icon_base_dirs() -> List[str]:
    """Directories that hold icon themes, highest precedence first."""
    home = os.path.expanduser("~")
    data_home = os.environ.get("XDG_DATA_HOME") or os.path.join(home, ".local", "share")
    data_dirs = os.environ.get("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"

    dirs = [os.path.join(data_home, "icons"), os.path.join(home, ".icons")]
    dirs.extend(os.path.join(d, "icons") for d in data_dirs.split(":") if d)
    return dirs


def _theme_dirs(theme: str, base_dirs: List[str]) -> List[str]:
    return [os.path.join(b, theme) for b in base_dirs if os.path.isdir(os.path.join(b, theme))]


def _theme_parents(theme_dirs: List[str]) -> List[str]:
    """Inherits= list from the first index.theme found for a theme."""
    for theme_dir in theme_dirs:
        index = os.path.join(theme_dir, "index.theme")
        if not os.path.isfile(index):
            continue
        cp = configparser.ConfigParser(interpolation=None, strict=False)
        try:
            cp.read(index, encoding="utf-8")
        except (configparser.Error, UnicodeDecodeError) as exc:
            logger.debug("Bad index.theme %s: %s", index, exc)
            return []
        inherits = cp.get("Icon Theme", "Inherits", fallback="")
        return [t.strip() for t in inherits.split(",") if t.strip()]
    return []


def theme_chain(theme: str, base_dirs: List[str]) -> List[str]:
    """The theme followed by its ancestors (breadth first), hicolor last."""
    chain = []
    queue = [theme]
    while queue:
        name = queue.pop(0)
        if name in chain or name == FALLBACK_THEME:
            continue
        chain.append(name)
        queue.extend(_theme_parents(_theme_dirs(name, base_dirs)))
    chain.append(FALLBACK_THEME)
    return chain


# ---------------------------------------------------------------------------
# Candidate ranking
# ---------------------------------------------------------------------------

def _dir_size(rel_dir: str) -> Optional[int]:
    """Nominal pixel size of a theme subdirectory, 0 for scalable, None if unknown."""
    for part in rel_dir.split(os.sep):
        if part == "scalable":
            return 0
        m = _SIZE_DIR_RE.match(part)
        if m:
            return int(m.group(1)) * int(m.group(2) or 1)
    return None


def _rank(path: str, size: Optional[int], target: int) -> Tuple[int, int, int]:
    """Sort key: size distance, then larger size, then extension preference."""
    ext_order = ICON_EXTENSIONS.index(os.path.splitext(path)[1])
    if size == 0 or (size is None and path.endswith(".svg")):
        return (0, -target, ext_order)
    if size is None:
        return (target, 0, ext_order)
    return (abs(size - target), -size, ext_order)


def _theme_candidates(theme_dir: str, icon_name: str) -> List[Tuple[str, Optional[int]]]:
    candidates = []
    for ext in ICON_EXTENSIONS:
        # Layouts: <size>/<context>/<name> and <context>/<size>/<name>
        for path in glob.glob(os.path.join(glob.escape(theme_dir), "*", "*", glob.escape(icon_name) + ext)):
            rel_dir = os.path.relpath(os.path.dirname(path), theme_dir)
            candidates.append((path, _dir_size(rel_dir)))
    return candidates


def _pixmap_size(path: str) -> Optional[int]:
    """Real pixel size of a raster image (header read only)."""
    if path.endswith(".svg"):
        return 0
    try:
        with Image.open(path) as img:
            return max(img.size)
    except (OSError, UnidentifiedImageError) as exc:
        logger.debug("Cannot read image size of %s: %s", path, exc)
        return None


def _resolve_absolute(icon_path: str) -> Optional[str]:
    if os.path.isfile(icon_path):
        return icon_path
    # Try adding common extensions
    for ext in ICON_EXTENSIONS:
        if os.path.isfile(icon_path + ext):
            return icon_path + ext
    return None


def lookup_icon(
    icon_name: str,
    size: int = DEFAULT_ICON_SIZE,
    theme: Optional[str] = None,
    base_dirs: Optional[List[str]] = None,
    pixmaps_dir: str = PIXMAPS_DIR,
) -> Optional[str]:
    """
    Resolve an icon name to a filesystem path.

    Search order:
    1. If icon_name is an absolute path, use it
    2. The theme and its parents, closest size wins within a theme
    3. hicolor
    4. The pixmaps directory, ranked by real image size
    """
    if not icon_name:
        return None

    if os.path.isabs(icon_name):
        return _resolve_absolute(icon_name)

    if base_dirs is None:
        base_dirs = icon_base_dirs()
    if not theme:
        theme = get_icon_theme()

    for theme_name in theme_chain(theme, base_dirs):
        candidates = []
        for theme_dir in _theme_dirs(theme_name, base_dirs):
            candidates.extend(_theme_candidates(theme_dir, icon_name))
        if candidates:
            path, _ = min(candidates, key=lambda c: _rank(c[0], c[1], size))
            logger.debug("Icon %s -> %s (theme %s)", icon_name, path, theme_name)
            return path

    pixmaps = []
    for ext in ICON_EXTENSIONS:
        path = os.path.join(pixmaps_dir, icon_name + ext)
        if os.path.isfile(path):
            pixmaps.append((path, _pixmap_size(path)))
    if pixmaps:
        return min(pixmaps, key=lambda c: _rank(c[0], c[1], size))[0]

    return None


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def icon_to_data_uri(path: str) -> Optional[str]:
    """Read an icon file and return data:image/<subtype>;base64,<bytes>."""
    ext = os.path.splitext(path)[1][1:]
    if not ext:
        return None
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as exc:
        logger.debug("Cannot read icon %s: %s", path, exc)
        return None

    mime = MIME_SUBTYPES.get(ext, ext)
    return f"data:image/{mime};base64,{base64.b64encode(data).decode('ascii')}"


def resolve_icon(
    identifier: Optional[str],
    size: int = DEFAULT_ICON_SIZE,
    theme: Optional[str] = None,
) -> Optional[str]:
    """
    Icon of the application behind a descriptor path, as a data URI.

    Returns None when the identifier is empty, the descriptor cannot be
    parsed, it has no Icon= key, or no matching file exists. Callers fall
    back to DEFAULT_ICON.
    """
    if not identifier:
        return None

    app = find_app(identifier)
    if app is None or not app.icon:
        return None

    path = lookup_icon(app.icon, size=size, theme=theme)
    if path is None:
        logger.debug("No icon file for %s (%s)", app.name, app.icon)
        return None

    return icon_to_data_uri(path)
