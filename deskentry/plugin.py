#!/usr/bin/env python3
"""
Desktop Entry Launcher: OpenAction plugin entry point

Started by the OpenAction host with the connection parameters on the
command line. Connects, registers the "Launch App" action and serves
events until the host goes away.

Usage:
    python -m deskentry.plugin -port 12345 -pluginUUID <uuid> \
        -registerEvent registerPlugin -info '{...}'
"""

import argparse
import json
import logging
import sys

from deskentry.config_manager import ConfigManager, DEFAULT_CONFIG_PATH
from deskentry.launch_action import LaunchAppAction
from deskentry.openaction_client import OpenActionClient


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Desktop entry launcher for OpenAction")
    # Host-provided connection parameters (single dash, Stream Deck style)
    parser.add_argument("-port", type=int, required=True, help="Host WebSocket port")
    parser.add_argument("-pluginUUID", required=True, help="Plugin UUID for registration")
    parser.add_argument("-registerEvent", required=True, help="Registration event name")
    parser.add_argument("-info", default="{}", help="Host/device info as JSON")
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help=f"Plugin config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--log-level", default=None, help="Override config log level")
    return parser.parse_known_args(argv)


def _parse_info(raw: str) -> dict:
    try:
        info = json.loads(raw)
    except json.JSONDecodeError:
        logging.warning("Invalid -info JSON, ignoring")
        return {}
    return info if isinstance(info, dict) else {}


def main(argv=None):
    args, unknown = parse_args(argv)

    config = ConfigManager(args.config)
    config.load()
    level = (args.log_level or config.log_level).upper()

    # Logging setup
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.info("Desktop entry launcher starting...")
    if unknown:
        logging.debug("Ignoring unknown arguments: %s", unknown)

    client = OpenActionClient(
        port=args.port,
        plugin_uuid=args.pluginUUID,
        register_event=args.registerEvent,
        info=_parse_info(args.info),
    )
    LaunchAppAction(client, config).register()

    try:
        client.run()
    except KeyboardInterrupt:
        client.close()
    logging.info("Plugin stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
