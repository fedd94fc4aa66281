#!/usr/bin/env python3
"""Inspect what the launcher sees on this machine.

Lists the app catalog (or the exact JSON sent to the property inspector),
shows the command a key would run for an app, or the icon file it would use.

Run from project root:
    python3 scripts/list_apps.py
    python3 scripts/list_apps.py --json
    python3 scripts/list_apps.py --command /usr/share/applications/htop.desktop --args "-d 10"
    python3 scripts/list_apps.py --icon /usr/share/applications/firefox.desktop
"""

import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from deskentry.app_scanner import default_search_paths, find_app, scan_applications  # noqa: E402
from deskentry.command_builder import build_command  # noqa: E402
from deskentry.config_manager import get_config_manager  # noqa: E402
from deskentry.icon_resolver import lookup_icon  # noqa: E402
from deskentry.launcher import Launcher  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect desktop entry discovery")
    parser.add_argument("--json", action="store_true", help="Print the property inspector payload")
    parser.add_argument("--command", metavar="DESKTOP_FILE", help="Show the launch command for an app")
    parser.add_argument("--args", default=None, help="Extra arguments used with --command")
    parser.add_argument("--icon", metavar="DESKTOP_FILE", help="Show the icon file for an app")
    parser.add_argument("--show-config", action="store_true", help="Print the effective plugin config")
    args = parser.parse_args()

    config = get_config_manager()

    if args.show_config:
        print(config.to_json())
        return 0

    if args.command or args.icon:
        app = find_app(args.command or args.icon)
        if app is None:
            print(f"Cannot read desktop entry: {args.command or args.icon}", file=sys.stderr)
            return 1
        if args.command:
            command = build_command(app, args.args, preferred_terminal=config.preferred_terminal)
            print(" ".join(Launcher().argv(command)))
        else:
            path = lookup_icon(app.icon or "", size=config.icon_size, theme=config.icon_theme or None)
            print(path or "(default icon)")
        return 0

    search_paths = default_search_paths(config.extra_search_dirs)
    apps = scan_applications(search_paths)
    if args.json:
        print(json.dumps({"apps": [a.to_dict() for a in apps]}, indent=2))
        return 0

    for path in search_paths:
        print(f"# {path}")
    for app in apps:
        flag = " [terminal]" if app.terminal else ""
        print(f"{app.name:40s} {app.exec}{flag}")
    print(f"\n{len(apps)} applications")
    return 0


if __name__ == "__main__":
    sys.exit(main())
