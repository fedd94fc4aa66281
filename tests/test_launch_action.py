import base64

import pytest

from deskentry import launch_action
from deskentry.config_manager import ConfigManager
from deskentry.desktop_entry import AppInfo
from deskentry.launch_action import ACTION_UUID, LaunchAppAction, launch_app


class FakeClient:
    def __init__(self):
        self.handlers = {}
        self.pi_messages = []
        self.images = []

    def on(self, event, handler):
        self.handlers[event] = handler

    def send_to_property_inspector(self, context, payload):
        self.pi_messages.append((context, payload))

    def set_image(self, context, image, state=None):
        self.images.append((context, image))


class FakeLauncher:
    def __init__(self):
        self.commands = []

    def launch(self, command):
        self.commands.append(command)


def _event(name, settings=None, action=ACTION_UUID, context="ctx"):
    return {
        "event": name,
        "action": action,
        "context": context,
        "device": "dev",
        "payload": {"settings": settings or {}, "coordinates": {"column": 0, "row": 0}},
    }


@pytest.fixture
def action(monkeypatch):
    catalog = [AppInfo(path="/apps/a.desktop", name="A", exec="a %u", icon="a")]
    monkeypatch.setattr(launch_action, "scan_applications", lambda paths: list(catalog))
    client = FakeClient()
    act = LaunchAppAction(client, ConfigManager(), launcher=FakeLauncher())
    act.register()
    return act


def test_registers_all_events(action):
    assert set(action.client.handlers) == {"willAppear", "didReceiveSettings", "keyUp", "dialUp"}


def test_will_appear_sends_catalog(action):
    action.client.handlers["willAppear"](_event("willAppear"))

    assert action.client.pi_messages == [(
        "ctx",
        {"apps": [{"path": "/apps/a.desktop", "name": "A", "exec": "a %u", "icon": "a", "terminal": False}]},
    )]


def test_other_actions_are_ignored(action):
    action.client.handlers["willAppear"](_event("willAppear", action="com.other.action"))
    assert action.client.pi_messages == []


def test_settings_without_app_show_default_icon(action):
    action.client.handlers["didReceiveSettings"](_event("didReceiveSettings", {"app": ""}))
    assert action.client.images == [("ctx", "icon")]
    assert action.client.pi_messages == []


def test_settings_with_app_show_its_icon(action, tmp_path, write_entry):
    icon = tmp_path / "a.png"
    icon.write_bytes(b"PNG")
    entry = write_entry(tmp_path, "a.desktop", Name="A", Exec="a", Icon=str(icon))

    action.client.handlers["didReceiveSettings"](_event("didReceiveSettings", {"app": str(entry)}))

    assert action.client.images == [("ctx", "data:image/png;base64," + base64.b64encode(b"PNG").decode())]
    assert action.client.pi_messages == []


def test_key_up_sends_catalog_and_launches(action, tmp_path, write_entry):
    entry = write_entry(tmp_path, "firefox.desktop", Name="Firefox", Exec="firefox %u", Terminal="false")

    action.client.handlers["keyUp"](_event("keyUp", {"app": str(entry), "args": "--private"}))

    assert len(action.client.pi_messages) == 1
    assert action.launcher.commands == ["firefox --private"]


def test_dial_up_behaves_like_key_up(action, tmp_path, write_entry):
    entry = write_entry(tmp_path, "calc.desktop", Name="Calc", Exec="calc")
    action.client.handlers["dialUp"](_event("dialUp", {"app": str(entry)}))
    assert action.launcher.commands == ["calc"]


def test_key_up_without_app_launches_nothing(action):
    action.client.handlers["keyUp"](_event("keyUp", {}))
    assert len(action.client.pi_messages) == 1
    assert action.launcher.commands == []


def test_launch_app_terminal_fallback(tmp_path, write_entry):
    entry = write_entry(tmp_path, "htop.desktop", Name="htop", Exec="htop", Terminal="true")
    launcher = FakeLauncher()

    launch_app(str(entry), None, launcher, ConfigManager(), which=lambda name: None)

    assert launcher.commands == ["xterm -e htop"]


def test_launch_app_uses_configured_terminal(tmp_path, write_entry):
    entry = write_entry(tmp_path, "htop.desktop", Name="htop", Exec="htop", Terminal="true")
    config = ConfigManager()
    config.config["terminal"] = {"name": "wezterm", "flag": "start --"}
    launcher = FakeLauncher()

    launch_app(str(entry), None, launcher, config, which=lambda name: "/usr/bin/wezterm" if name == "wezterm" else None)

    assert launcher.commands == ["wezterm start -- htop"]


def test_launch_app_unknown_entry(tmp_path):
    launcher = FakeLauncher()
    launch_app(str(tmp_path / "gone.desktop"), "--x", launcher, ConfigManager())
    launch_app(None, None, launcher, ConfigManager())
    assert launcher.commands == []
