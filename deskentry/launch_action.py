"""
Launch Action: The "Launch App" key/dial action.

Bridges host events to the core:
- willAppear: send the app catalog to the property inspector
- didReceiveSettings: refresh the key image with the selected app's icon
- keyUp / dialUp: resend the catalog, then launch the selected app
"""

import logging
import shutil
from typing import Any, Dict, Optional

from deskentry.app_scanner import default_search_paths, find_app, scan_applications
from deskentry.command_builder import build_command
from deskentry.config_manager import ConfigManager, LaunchSettings
from deskentry.icon_resolver import DEFAULT_ICON, resolve_icon
from deskentry.launcher import Launcher
from deskentry.openaction_client import OpenActionClient

logger = logging.getLogger(__name__)

ACTION_UUID = "me.amankhanna.oadesktopentry.launchapp"


def launch_app(
    app_path: Optional[str],
    custom_args: Optional[str],
    launcher: Launcher,
    config: ConfigManager,
    which=shutil.which,
) -> None:
    """Build and start the command for a selected app. Unset or unknown apps do nothing."""
    if not app_path:
        return

    app = find_app(app_path)
    if app is None:
        logger.warning("Selected app %s could not be read", app_path)
        return

    command = build_command(
        app, custom_args, which=which, preferred_terminal=config.preferred_terminal
    )
    launcher.launch(command)


class LaunchAppAction:
    """Event handlers for the launch action."""

    def __init__(self, client: OpenActionClient, config: ConfigManager,
                 launcher: Optional[Launcher] = None):
        self.client = client
        self.config = config
        self.launcher = launcher or Launcher()

    def register(self) -> None:
        self.client.on("willAppear", self._for_action(self.will_appear))
        self.client.on("didReceiveSettings", self._for_action(self.did_receive_settings))
        self.client.on("keyUp", self._for_action(self.key_up))
        self.client.on("dialUp", self._for_action(self.key_up))

    def _for_action(self, handler):
        def wrapper(event: Dict[str, Any]) -> None:
            if event.get("action") != ACTION_UUID:
                return
            context = event.get("context", "")
            settings = LaunchSettings.from_payload(
                (event.get("payload") or {}).get("settings")
            )
            handler(context, settings)
        return wrapper

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def will_appear(self, context: str, settings: LaunchSettings) -> None:
        self.send_apps_to_pi(context)

    def did_receive_settings(self, context: str, settings: LaunchSettings) -> None:
        self.update_icon(context, settings)

    def key_up(self, context: str, settings: LaunchSettings) -> None:
        self.send_apps_to_pi(context)
        launch_app(settings.app, settings.args, self.launcher, self.config)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def send_apps_to_pi(self, context: str) -> None:
        apps = scan_applications(default_search_paths(self.config.extra_search_dirs))
        logger.debug("Sending %d apps to property inspector", len(apps))
        self.client.send_to_property_inspector(
            context, {"apps": [app.to_dict() for app in apps]}
        )

    def update_icon(self, context: str, settings: LaunchSettings) -> None:
        icon = resolve_icon(
            settings.app,
            size=self.config.icon_size,
            theme=self.config.icon_theme or None,
        )
        self.client.set_image(context, icon or DEFAULT_ICON)
